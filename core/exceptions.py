"""
Centralized exception hierarchy for domain-specific errors.

This module provides custom exception classes that represent specific
error conditions in the engine, so callers can tell a missing credential
apart from a refused location permission or a provider outage.
"""


class NavigationError(Exception):
    """Base exception for all engine-specific errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(NavigationError):
    """Exception raised when data validation fails."""


class ConfigurationError(NavigationError):
    """Exception raised when required configuration is missing."""


class ExternalServiceError(NavigationError):
    """Exception raised when service calls fail."""


class ProviderUnavailableError(ExternalServiceError):
    """Exception raised when the geocoding or routing provider call fails."""


class LocationError(NavigationError):
    """Exception raised when the device position cannot be obtained."""


class PermissionDeniedError(LocationError):
    """Exception raised when location access is refused."""


class AcquisitionTimeoutError(LocationError):
    """Exception raised when a one-shot location fix takes too long."""


class AlreadyTrackingError(LocationError):
    """Exception raised when continuous tracking is already running."""


NavigationException = NavigationError
ValidationException = ValidationError
ConfigurationException = ConfigurationError
ExternalServiceException = ExternalServiceError
ProviderUnavailableException = ProviderUnavailableError
PermissionDeniedException = PermissionDeniedError
AcquisitionTimeoutException = AcquisitionTimeoutError
AlreadyTrackingException = AlreadyTrackingError
