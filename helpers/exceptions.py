class CourseMarketplaceError(Exception):
    """Base class for errors raised by the enrollment and progress helpers."""


class CourseNotFoundError(CourseMarketplaceError):
    def __init__(self, course_id: str):
        super().__init__(f"Course not found: {course_id}")
        self.course_id = course_id


class ProgressValidationError(CourseMarketplaceError):
    """Incoming progress payload is malformed; nothing was written."""


class StoreUnavailableError(CourseMarketplaceError):
    """A read or write against the backing store failed. Safe to retry."""


class ProgressConflictError(CourseMarketplaceError):
    """Progress record kept changing underneath us. Safe to retry."""


class PartialPipelineError(CourseMarketplaceError):
    """Transaction was recorded but enrollment bootstrap did not finish.

    Re-running the same purchase event completes the pipeline.
    """

    def __init__(self, message: str, transaction_id: str):
        super().__init__(message)
        self.transaction_id = transaction_id
