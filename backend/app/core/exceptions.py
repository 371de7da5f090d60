class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationError(AppError):
    """Raised when scheduling input breaks a time, date or weekday rule."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class DateRangeViolation(ValidationError):
    """Raised when an exception date falls outside its pattern's active range."""

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConflictError(AppError):
    """Raised when a period would double-book a facility or teacher assignment."""
    def __init__(self, message: str, conflicts: list):
        self.conflicts = conflicts
        super().__init__(
            message,
            status_code=409,
            details={"conflicts": [conflict.as_detail() for conflict in conflicts]},
        )
