class CourseGenerationError(Exception):
    """Base error for the course generation pipeline."""


class CompletionProviderError(CourseGenerationError):
    """The JSON completion provider returned an unusable response."""


class InvalidCourseRequestError(CourseGenerationError):
    """The request carries neither a topic nor document text."""


def describe_error(exc: BaseException) -> str:
    message = str(exc).strip()
    return message or exc.__class__.__name__
