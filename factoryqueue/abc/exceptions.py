"""abstract module for exceptions"""


class FactoryQueueException(Exception):
    """Base class for factoryqueue related exceptions."""

    def __init__(self, message: str, *args) -> None:
        self.message = message
        super().__init__(message, *args)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FactoryQueueException):
            return self.args == other.args
        return NotImplemented

    __hash__ = Exception.__hash__


class InvalidConfigurationError(FactoryQueueException):
    """Raise if configuration is invalid."""
