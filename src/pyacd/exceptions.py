"""
Custom exceptions for PyACD.
Provides domain-specific error handling with informative messages.
"""


class ACDError(Exception):
    """Base exception for all PyACD errors."""
    pass


class ConfigurationError(ACDError):
    """Raised when there are configuration-related issues."""
    pass


class InvalidParameterError(ConfigurationError):
    """Raised when a parameter value is invalid."""
    def __init__(self, param_name: str, value, reason: str = ""):
        self.param_name = param_name
        self.value = value
        self.reason = reason
        message = f"Invalid value for parameter '{param_name}': {value}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class SpeciesResolutionError(ACDError):
    """Raised when a species code cannot be resolved through the species
    table or the species crosswalk."""
    def __init__(self, species_code, detail: str = ""):
        self.species_code = species_code
        message = (f"Species {species_code} not found in the species table "
                   f"or the species crosswalk")
        if detail:
            message += f": {detail}"
        super().__init__(message)


SpeciesNotFoundError = SpeciesResolutionError


class SimulationError(ACDError):
    """Raised when simulation encounters an error."""
    pass


class ComputationError(SimulationError):
    """Raised when an internal invariant is violated or an equation fails.

    Always fatal for the growth call that raised it.
    """
    pass


class GrowthModelError(ComputationError):
    """Raised when a growth or mortality equation cannot be evaluated."""
    def __init__(self, model_name: str, reason: str):
        self.model_name = model_name
        self.reason = reason
        super().__init__(f"Growth model '{model_name}' failed: {reason}")


class DataError(ACDError):
    """Raised when there are data-related issues."""
    pass


class InvalidDataError(DataError):
    """Raised when data is malformed or invalid."""
    def __init__(self, data_description: str, reason: str):
        self.data_description = data_description
        self.reason = reason
        super().__init__(f"Invalid {data_description}: {reason}")


def validate_positive(value: float, param_name: str) -> float:
    """Validate that a value is positive.

    Args:
        value: Value to validate
        param_name: Parameter name for error message

    Returns:
        The validated value

    Raises:
        InvalidParameterError: If value is not positive
    """
    if not value > 0:
        raise InvalidParameterError(param_name, value, "must be positive")
    return value


def validate_proportion(value: float, param_name: str) -> float:
    """Validate that a value is a valid proportion (0-1).

    Raises:
        InvalidParameterError: If value is not in [0, 1]
    """
    if not 0 <= value <= 1:
        raise InvalidParameterError(param_name, value, "must be between 0 and 1")
    return value
