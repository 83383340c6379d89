class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when an actor lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a requested row does not exist."""


class EmployeeNotFoundError(NotFoundError):
    """Raised when a punch carries an employee code with no directory match."""

    def __init__(self, employee_code: str):
        self.employee_code = employee_code
        super().__init__(f"No employee for code {employee_code!r}")


class ConfigurationError(DomainError):
    """Raised when no shift or policy can be resolved for an employee-day."""


class ConsistencyError(DomainError):
    """Raised when the penalty tracking cache disagrees with the incident log."""

    def __init__(self, employee_id: int, year: int, month: int, differences: dict):
        self.employee_id = employee_id
        self.year = year
        self.month = month
        self.differences = differences
        super().__init__(
            f"Penalty tracking drift for employee {employee_id} {year}-{month:02d}: {sorted(differences)}"
        )


class RunCancelledError(DomainError):
    """Raised inside a run when cancellation was requested between units."""
