"""Custom exceptions for devrun."""

from typing import Optional


class DevRunError(Exception):
    """Base exception for all devrun errors."""
    
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ConfigurationError(DevRunError):
    """Configuration error."""
    pass


class SpawnError(DevRunError):
    """A child process could not be created."""

    def __init__(self, command: str, error: BaseException):
        super().__init__(f"{command}: {error}", code="spawn_failed")
        self.command = command
        self.error = error
