"""
Domain-specific exception hierarchy for the task projector.
"""


class ProjectionError(Exception):
    """Base class for all application-level errors."""


class InvalidEstimateError(ProjectionError):
    """Raised when the estimated workload is not a positive number of hours."""

    def __init__(self, message: str = "Por favor ingresa un número válido de horas estimadas."):
        super().__init__(message)


class ScheduleConfigurationError(ProjectionError):
    """Raised when the work schedule provides no working capacity."""


class CalendarAPIError(ProjectionError):
    """Raised when calendar data cannot be fetched or parsed."""


class CalculationFailedError(ProjectionError):
    """Raised when an estimation request fails after validation."""

    def __init__(self, message: str = "Error al calcular las fechas. Por favor verifica la configuración."):
        super().__init__(message)
