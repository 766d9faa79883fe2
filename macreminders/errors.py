"""
Error kinds raised while talking to the Reminders app. Every error carries the name of the locale event used to build
the message shown to the user, and keeps the technical detail for the log file.
"""

from __future__ import annotations


class ReminderError(Exception):
    """
    Base class for every failure surfaced by the dispatcher.
    """

    #: Locale event used to render this error for the user.
    event: str = 'error_transport'

    def __init__(self, message: str, detail: str | None = None):
        """
        Create a new error.

        :param message: a short, technical description of what went wrong.
        :param detail: raw output from the failing call (stderr, malformed JSON...), kept for diagnostics.
        """
        super().__init__(message)
        self.message: str = message
        self.detail: str | None = detail

    def __str__(self):
        if self.detail:
            return '{0} ({1})'.format(self.message, self.detail)
        return self.message


class ValidationError(ReminderError):
    """A required flag is missing or empty, or a flag value is invalid."""
    event = 'error_validation'


class NotFoundError(ReminderError):
    """The given id does not resolve to a reminder."""
    event = 'error_not_found'


class AccessDeniedError(ReminderError):
    """Access to Reminders was refused."""
    event = 'error_access'


class TransportError(ReminderError):
    """The AppleScript or EventKit call itself failed to run or returned something unreadable."""
    event = 'error_transport'


class BridgeTimeoutError(TransportError):
    """The bridge process did not answer in time."""
    event = 'error_timeout'
