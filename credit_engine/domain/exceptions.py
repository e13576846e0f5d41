"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class MalformedApplicationError(DomainException):
    """Application is missing required numeric data"""

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Malformed credit application: invalid or missing {', '.join(fields)}")


class BatchItemFailure(DomainException):
    """A single application failed inside a batch; siblings are unaffected"""

    def __init__(self, applicant_id: str, cause: Exception):
        self.applicant_id = applicant_id
        self.cause = cause
        super().__init__(f"Decision failed for {applicant_id}: {cause}")
