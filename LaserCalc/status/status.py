"""Status definitions and exceptions for LaserCalc.

This module provides:
    - Status: enumeration of outcome codes reported by the preset store
    - STATUS_MESSAGE: user-facing messages for each status
    - get_message: retrieve the message for a status
    - BaseStatusException: base exception carrying a Status
    - Specific exceptions raised by storage backends and settings loading
"""
import enum
import logging
from typing import Dict


class Status(enum.StrEnum):
    """Enumeration of application status codes."""
    UnknownStatus = enum.auto()
    Okay = enum.auto()

    # Preset status
    PresetNotFound = enum.auto()
    PresetInvalid = enum.auto()
    ValidationFailed = enum.auto()

    # Storage status
    PersistenceFailure = enum.auto()
    StorageCorrupt = enum.auto()

    # Configuration status
    SettingsNotFound = enum.auto()
    SettingsInvalid = enum.auto()


STATUS_MESSAGE: Dict[Status, str] = {
    Status.UnknownStatus: 'Unknown status.',
    Status.Okay: 'Everything is okay.',

    Status.PresetNotFound: 'The preset could not be found. It may have been deleted.',
    Status.PresetInvalid: 'The preset is incomplete, or contains invalid values.',
    Status.ValidationFailed: 'Some fields contain invalid values.',

    Status.PersistenceFailure: 'The presets could not be saved. Check available disk space and permissions.',
    Status.StorageCorrupt: 'The preset storage file is corrupt and could not be read.',

    Status.SettingsNotFound: 'Could not find the settings file.',
    Status.SettingsInvalid: 'The settings file seems to be incomplete, or contains invalid values.',
}


def get_message(status: Status) -> str:
    """
    Get the message for a given status.

    Args:
        status (Status): The status enum.

    Returns:
        str: The message associated with the status.
    """
    return STATUS_MESSAGE.get(status, 'Unknown status')


class BaseStatusException(Exception):
    """Base exception for status-based errors in LaserCalc.

    Attributes:
        status (Status): Status code associated with this error.
        status_message (str): User-facing message for the status.

    Args:
        message (str): Optional additional context for the error.
    """
    status = Status.UnknownStatus

    def __init__(self, message: str = None):
        self.status_message = get_message(self.status)
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        super().__init__(exception_message)

        logging.error(exception_message)

        from ..ui.actions import signals
        signals.error.emit(message or self.status_message)


class UnknownException(BaseStatusException):
    """Exception for an unknown error during status processing."""
    pass


class PresetNotFoundException(BaseStatusException):
    """Exception raised when a preset id does not exist in the store."""
    status = Status.PresetNotFound


class PresetInvalidException(BaseStatusException):
    """Exception raised when a preset record is malformed."""
    status = Status.PresetInvalid


class PersistenceFailureException(BaseStatusException):
    """Exception raised when the storage medium rejects a write."""
    status = Status.PersistenceFailure


class StorageCorruptException(BaseStatusException):
    """Exception raised when the storage medium holds unreadable data."""
    status = Status.StorageCorrupt


class SettingsNotFoundException(BaseStatusException):
    """Exception raised when the settings file cannot be found."""
    status = Status.SettingsNotFound


class SettingsInvalidException(BaseStatusException):
    """Exception raised when the settings file is invalid or malformed."""
    status = Status.SettingsInvalid
