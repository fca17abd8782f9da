"""Custom exceptions for Email Thread Engine."""


class EmailEngineError(Exception):
    """Base exception for all Email Thread Engine errors."""


class NotFoundError(EmailEngineError):
    """Exception raised when a message or thread id has no matching row."""


class InvalidOperationError(EmailEngineError):
    """Exception raised when an operation is not allowed in the current state.

    Examples are changing the read or importance flag of a deleted message,
    or requesting a threaded listing without a direction.
    """


class ValidationError(EmailEngineError):
    """Exception raised for data validation errors."""


class ConfigurationError(EmailEngineError):
    """Exception raised for configuration related errors."""
