"""
This is a helper file for the reminder bridge: subprocess runners and date handling.
"""

from __future__ import annotations

import argparse
import logging
from datetime import date, datetime, time, timedelta
from subprocess import Popen, PIPE, TimeoutExpired
from typing import List, NamedTuple

from macreminders.errors import TransportError, BridgeTimeoutError, ValidationError


def run_applescript(script: str, *args) -> tuple[int, str, str]:
    """
    Runs an AppleScript script.

    :param script: the script to run.
    :param args: a list of arguments to send to the script.

    :returns:

        - return_code (:py:class:`int`) - the script's return code.
        - stdout (:py:class:`str`) - standard output from the script.
        - stderr (:py:class:`str`) - standard error from the script.

    """
    arguments = [str(a) for a in args]
    try:
        p = Popen(['osascript', '-'] + arguments, stdin=PIPE, stdout=PIPE, stderr=PIPE, universal_newlines=True)
    except FileNotFoundError as e:
        raise TransportError('osascript is not available on this system', str(e))
    stdout, stderr = p.communicate(script)
    return p.returncode, stdout, stderr


def run_bridge(command: List[str], timeout: float | None = None) -> tuple[int, str, str]:
    """
    Runs a bridge process and waits for it to finish.

    :param command: the full command line, starting with the executable.
    :param timeout: seconds to wait before the process is killed. ``None`` or ``0`` waits forever.

    :returns:

        - return_code (:py:class:`int`) - the process's return code.
        - stdout (:py:class:`str`) - standard output from the process.
        - stderr (:py:class:`str`) - standard error from the process.

    """
    try:
        p = Popen(command, stdout=PIPE, stderr=PIPE, universal_newlines=True)
    except FileNotFoundError as e:
        raise TransportError('Bridge executable not found: {}'.format(command[0]), str(e))
    try:
        stdout, stderr = p.communicate(timeout=timeout or None)
    except TimeoutExpired:
        p.kill()
        stdout, stderr = p.communicate()
        raise BridgeTimeoutError('Bridge did not answer within {} seconds'.format(timeout), stderr.strip() or None)
    return p.returncode, stdout, stderr


class DueComponents(NamedTuple):
    """
    Calendar components of a due date, in the local time zone. This is how Reminders stores due dates.
    """
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int = 0


class DateUtil:
    """
    Utility class for converting between the ISO-8601 strings used on the command line and the calendar components
    stored by Reminders.
    """

    ISO_DATETIME_FORMATS = [
        "%Y-%m-%dT%H:%M:%S.%f%z",
        "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%dT%H:%M%z",
        "%Y-%m-%dT%H:%M:%S.%f",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M",
    ]
    ISO_DATE = "%Y-%m-%d"
    BRIDGE_DATETIME = "%Y-%m-%dT%H:%M:%S"

    @staticmethod
    def parse_due(value: str | None) -> datetime | None:
        """
        Parse a due date string into an aware datetime in the local time zone.

        A string without an offset is read as local wall-clock time. Anything that does not match one of
        ``ISO_DATETIME_FORMATS`` is treated as no due date at all, rather than failing the command.

        :param value: the due date string, e.g. ``2026-02-05T09:00:00+09:00``.

        :return: the due date in the local time zone, or None.
        """
        if not value:
            return None
        for fmt in DateUtil.ISO_DATETIME_FORMATS:
            try:
                parsed = datetime.strptime(value.strip(), fmt)
            except ValueError:
                continue
            return parsed.astimezone()
        logging.warning('Ignoring malformed due date: {}'.format(value))
        return None

    @staticmethod
    def parse_end_date(value: str | None) -> date | None:
        """
        Parse a repeat end date (``YYYY-MM-DD``) as a local calendar date. Malformed dates are ignored.

        :param value: the end date string.

        :return: the end date, or None.
        """
        if not value:
            return None
        try:
            return datetime.strptime(value.strip(), DateUtil.ISO_DATE).date()
        except ValueError:
            logging.warning('Ignoring malformed repeat end date: {}'.format(value))
            return None

    @staticmethod
    def to_components(due: datetime) -> DueComponents:
        """
        Decompose a due date into local calendar components.

        This conversion is lossy: the offset of the original string only decides which local wall-clock time is
        recorded, and is not kept. Reading the reminder back gives the same instant in the local time zone.

        :param due: the due date, naive (local) or aware.

        :return: the local calendar components.
        """
        local = due.astimezone()
        return DueComponents(local.year, local.month, local.day, local.hour, local.minute, local.second)

    @staticmethod
    def components_to_string(components: DueComponents) -> str:
        """
        Format calendar components as the offset-free string passed to the transports.

        :param components: the calendar components.

        :return: a ``YYYY-MM-DDTHH:MM:SS`` string.
        """
        return datetime(*components).strftime(DateUtil.BRIDGE_DATETIME)

    @staticmethod
    def parse_local(value: str | None) -> datetime | None:
        """
        Parse a date returned by a transport. Offset-free values are local wall-clock times.

        :param value: the date string returned by the transport.

        :return: an aware datetime in the local time zone, or None if the value is empty or unreadable.
        """
        if not value:
            return None
        try:
            return datetime.fromisoformat(value.strip()).astimezone()
        except ValueError:
            logging.warning('Unreadable date from Reminders: {}'.format(value))
            return None

    @staticmethod
    def to_iso(value: datetime | None) -> str | None:
        """
        Format a datetime as ISO-8601 with its offset, to the second.
        """
        if value is None:
            return None
        return value.isoformat(timespec='seconds')

    @staticmethod
    def in_scope(due: datetime | None, scope: str, now: datetime) -> bool:
        """
        Check whether a due date falls in a list scope.

        - ``today`` - the local calendar day containing ``now``.
        - ``week`` - from one day before ``now`` to seven days after it, both ends included. The one-day lookback keeps
          reminders that have only just passed.
        - anything else - every reminder, with or without a due date.

        :param due: the reminder's due date.
        :param scope: the scope requested.
        :param now: the current time, timezone-aware.

        :return: True if the reminder should be listed.
        """
        if scope == 'today':
            if due is None:
                return False
            # Local midnights, which are not always 24 hours apart
            day = now.astimezone().date()
            start = datetime.combine(day, time()).astimezone()
            end = datetime.combine(day + timedelta(days=1), time()).astimezone()
            return start <= due < end
        if scope == 'week':
            if due is None:
                return False
            return now - timedelta(days=1) <= due <= now + timedelta(days=7)
        return True


class ArgumentParser(argparse.ArgumentParser):
    """
    Argument parser which raises ``ValidationError`` on bad arguments instead of printing usage and exiting with code 2.
    """

    def error(self, message):
        raise ValidationError(message)
