"""
Question resolution errors.

NoBoundaryFound and NoEnglishName abort a question. ProviderTimeout and
ProviderOverflow are raised by the safety gates and turned into an empty
result by the caller. GeometryOperationFailed wraps failures of the geometry
primitives on degenerate input.
"""


class QuestionResolutionError(Exception):
    """Base class for everything that stops a question from resolving"""


class NoBoundaryFound(QuestionResolutionError):
    pass


class NoEnglishName(QuestionResolutionError):
    pass


class ProviderTimeout(QuestionResolutionError):
    pass


class ProviderOverflow(QuestionResolutionError):
    def __init__(self, message: str, count: int):
        super().__init__(message)
        self.count = count


class GeometryOperationFailed(QuestionResolutionError):
    pass
