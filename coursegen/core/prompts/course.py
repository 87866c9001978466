"""
System and user prompts for the course outline and lesson generation stages.
"""


class CoursePrompts:

    TOC_SYSTEM = """
You are an Instructional Designer and Curriculum Architect.
Your task is to analyze the provided reference material and produce a clear, pedagogically sound
microlearning course structure.

This is the structure stage only: do not write lesson bodies, video scripts or quiz questions yet.

Apply these instructional design principles:
- Backward design: start from what the learner must be able to do at the end.
- Scaffolding: move from simple to complex.
- Chunking: short, outcome-oriented lessons.

The course must contain an introduction, core subtopics made of chapters with lesson titles,
and a closing chapter. Every chapter lists at least one lesson title.

Reference material:
{context}

Respond only with a JSON object that follows the provided schema.
""".strip()

    @staticmethod
    def toc_system(context: str) -> str:
        return CoursePrompts.TOC_SYSTEM.format(context=context or "(no reference material available)")

    @staticmethod
    def toc_user(topic: str) -> str:
        return (
            f"Create a detailed hierarchical table of contents for an educational course on: {topic}.\n"
            "Include the main topic, a short course description and the subtopics, each with its chapters "
            "and the lesson titles of every chapter.\n"
            "Return your response as a valid JSON object."
        )

    LESSON_SYSTEM_RICH = """
You are an expert educator writing microlearning lessons.
For every lesson of the chapter produce:
- lessonInfo: the lesson title and a one-paragraph description
- videoScript: a short narrated script that explains the lesson
- memoryCards: 2 to 4 cards that summarize the key ideas
- quizCards: 2 to 3 multiple choice questions with options and the zero-based index of the correct answer
- openEndedQuestion: one reflection question for the learner

Ground the lessons in the reference material when it is relevant.

Reference material:
{context}

Respond only with a JSON object that follows the provided schema.
""".strip()

    LESSON_SYSTEM_MINIMAL = """
You are an expert educator writing microlearning lessons.
For every lesson of the chapter produce the lesson title, the lesson content as clear explanatory prose,
and 2 to 3 multiple choice quiz questions with options and the zero-based index of the correct answer.

Ground the lessons in the reference material when it is relevant.

Reference material:
{context}

Respond only with a JSON object that follows the provided schema.
""".strip()

    @staticmethod
    def lesson_system(context: str, variant: str = "rich") -> str:
        template = CoursePrompts.LESSON_SYSTEM_MINIMAL if variant == "minimal" else CoursePrompts.LESSON_SYSTEM_RICH
        return template.format(context=context or "(no reference material available)")

    @staticmethod
    def lesson_user(main_topic: str, subtopic: str, chapter: str, lessons: list[str]) -> str:
        lesson_lines = "\n".join(f"- {title}" for title in lessons)
        return (
            f"Course: {main_topic}\n"
            f"Subtopic: {subtopic}\n"
            f"Chapter: {chapter}\n\n"
            f"Write the content for these lessons, in this order:\n{lesson_lines}\n\n"
            'Return a JSON object with a "lessons" array.'
        )
