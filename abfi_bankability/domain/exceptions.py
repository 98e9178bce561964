"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Scoring input is missing, malformed, or out of range"""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class PolicyError(DomainException):
    """Scoring policy tables are malformed or inconsistent"""

    pass

