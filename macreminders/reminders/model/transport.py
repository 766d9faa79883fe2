"""
Contains the transports used to reach the Reminders app:

- ``AppleScriptTransport`` - the simple transport, which drives Reminders through ``osascript``. It cannot express repeat
  rules.
- ``EventKitTransport`` - the recurrence-capable transport, which runs the EventKit bridge in a separate process.

Both implement ``TaskStoreClient``, and ``select_transport`` decides which one a request needs.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from macreminders import helpers, settings
from macreminders.errors import (ReminderError, ValidationError, NotFoundError, AccessDeniedError, TransportError)
from macreminders.helpers import DateUtil, DueComponents
from macreminders.reminders.model import reminderscript
from macreminders.reminders.model.reminder import Reminder, Recurrence, ID_PREFIX


class TaskStoreClient(ABC):
    """
    A synchronous request/response connection to the Reminders app. Every method makes exactly one call.
    """

    #: Name used in log messages.
    name: str = ''
    #: True if this transport can store repeat rules.
    supports_recurrence: bool = False

    @abstractmethod
    def list(self) -> List[Reminder]:
        """
        Fetch the incomplete reminders of the default list.
        """

    @abstractmethod
    def create(self, title: str, due: DueComponents | None = None, note: str | None = None,
               recurrence: Recurrence | None = None) -> Reminder:
        """
        Create a reminder in the default list, with an alarm at the due date.
        """

    @abstractmethod
    def update(self, uuid: str, title: str | None = None, due: DueComponents | None = None, note: str | None = None,
               recurrence: Recurrence | None = None) -> tuple[Reminder, str]:
        """
        Update the given fields of a reminder. ``None`` leaves a field alone; an empty note clears it.

        :returns:

            -reminder (:py:class:`Reminder`) - the updated reminder.

            -old_title (:py:class:`str`) - the title before the update.
        """

    @abstractmethod
    def delete(self, uuid: str) -> Reminder:
        """
        Delete a reminder, returning it as it was before deletion.
        """

    @abstractmethod
    def complete(self, uuid: str) -> Reminder:
        """
        Mark a reminder as completed now.
        """


def needs_recurrence(repeat: str | None) -> bool:
    """
    True if the request carries a repeat rule, which only the EventKit transport can store.
    """
    return bool(repeat)


def select_transport(recurrence_requested: bool, simple: TaskStoreClient, recurrence: TaskStoreClient) \
        -> TaskStoreClient:
    """
    Choose the transport for a request.

    :param recurrence_requested: True if the request sets a repeat rule.
    :param simple: the AppleScript transport.
    :param recurrence: the EventKit transport.

    :return: the recurrence-capable transport when a repeat rule is requested, the simple one otherwise.
    """
    return recurrence if recurrence_requested else simple


class AppleScriptTransport(TaskStoreClient):
    """
    Drives Reminders through AppleScript. AppleScript cannot read repeat rules, so the reminders it reads back leave
    ``recurrence`` unknown.
    """

    name = 'applescript'
    supports_recurrence = False

    @staticmethod
    def _check(return_code: int, stdout: str, stderr: str, action: str) -> str:
        """
        Turn a failed ``osascript`` run into the matching error, or return the script's output.

        :param return_code: return code of ``osascript``.
        :param stdout: standard output of the script.
        :param stderr: standard error of the script.
        :param action: what was being attempted, for the error message.

        :return: the script output, without the trailing newline added by ``osascript``.
        """
        if return_code != 0:
            if '-1743' in stderr or 'Not authorized' in stderr:
                raise AccessDeniedError('Not authorised to control Reminders', stderr.strip())
            if '-1728' in stderr:
                raise NotFoundError('Reminder not found', stderr.strip())
            raise TransportError('Failed to {}'.format(action), stderr.strip())
        output = stdout.rstrip('\n')
        if output == reminderscript.NOT_FOUND:
            raise NotFoundError('Reminder not found')
        return output

    @staticmethod
    def _due_argument(due: DueComponents | None) -> str:
        return DateUtil.components_to_string(due) if due else ''

    def list(self) -> List[Reminder]:
        return_code, stdout, stderr = helpers.run_applescript(reminderscript.get_reminders_script)
        output = self._check(return_code, stdout, stderr, 'fetch reminders')

        reminders = []
        for record in output.split(reminderscript.RECORD_SEPARATOR):
            if record == '':
                continue
            values = record.split(reminderscript.FIELD_SEPARATOR)
            if len(values) < 4:
                raise TransportError('Unexpected reminder record from AppleScript', record)
            reminders.append(Reminder.create_from_bridge({
                'id': values[0],
                'title': values[1],
                'due': values[2],
                # A note may contain the field separator itself
                'note': reminderscript.FIELD_SEPARATOR.join(values[3:]),
            }, recurrence_known=False))
        return reminders

    def create(self, title: str, due: DueComponents | None = None, note: str | None = None,
               recurrence: Recurrence | None = None) -> Reminder:
        if recurrence is not None:
            raise TransportError('AppleScript cannot store repeat rules')
        return_code, stdout, stderr = helpers.run_applescript(reminderscript.add_reminder_script,
                                                              title,
                                                              note if note else '',
                                                              self._due_argument(due))
        uuid = self._check(return_code, stdout, stderr, 'add reminder {}'.format(title))
        return Reminder(
            uuid=uuid,
            title=title,
            due_date=datetime(*due).astimezone() if due else None,
            note=note or None,
        )

    def update(self, uuid: str, title: str | None = None, due: DueComponents | None = None, note: str | None = None,
               recurrence: Recurrence | None = None) -> tuple[Reminder, str]:
        if recurrence is not None:
            raise TransportError('AppleScript cannot store repeat rules')
        return_code, stdout, stderr = helpers.run_applescript(reminderscript.edit_reminder_script,
                                                              uuid,
                                                              title if title else '',
                                                              'keep' if note is None else 'set',
                                                              note if note else '',
                                                              self._due_argument(due))
        output = self._check(return_code, stdout, stderr, 'update reminder {}'.format(uuid))
        values = output.split(reminderscript.FIELD_SEPARATOR)
        if len(values) < 5:
            raise TransportError('Unexpected reminder record from AppleScript', output)
        reminder = Reminder.create_from_bridge({
            'id': values[0],
            'title': values[1],
            'due': values[2],
            'note': values[3],
        }, recurrence_known=False)
        return reminder, values[4]

    def delete(self, uuid: str) -> Reminder:
        return_code, stdout, stderr = helpers.run_applescript(reminderscript.delete_reminder_script, uuid)
        title = self._check(return_code, stdout, stderr, 'delete reminder {}'.format(uuid))
        return Reminder(uuid=uuid, title=title)

    def complete(self, uuid: str) -> Reminder:
        return_code, stdout, stderr = helpers.run_applescript(reminderscript.complete_reminder_script, uuid)
        title = self._check(return_code, stdout, stderr, 'complete reminder {}'.format(uuid))
        return Reminder(uuid=uuid, title=title, completed=True, completion_date=datetime.now().astimezone())


class EventKitTransport(TaskStoreClient):
    """
    Runs ``macreminders.reminders.eventkit_bridge`` in a separate process. The bridge is called with a command and
    ``--flag value`` pairs, and answers with a single JSON line.

    EventKit identifies a reminder by its bare identifier, while AppleScript ids carry the ``x-apple-reminder://``
    prefix. Ids are converted on the way in and out, so callers only ever see the AppleScript form.
    """

    name = 'eventkit'
    supports_recurrence = True
    BRIDGE_MODULE = 'macreminders.reminders.eventkit_bridge'

    #: Maps the ``code`` of a failed bridge response to the error raised.
    ERRORS = {
        'not_found': NotFoundError,
        'access_denied': AccessDeniedError,
        'validation': ValidationError,
    }

    def __init__(self, python: str | None = None, timeout: float | None = None, access_timeout: float | None = None):
        """
        Create a new EventKit transport.

        :param python: the interpreter used to run the bridge. Defaults to ``settings.PYTHON``.
        :param timeout: seconds to wait for the bridge. Defaults to ``settings.BRIDGE_TIMEOUT``.
        :param access_timeout: seconds the bridge waits for the permission prompt. Defaults to
            ``settings.ACCESS_TIMEOUT``.
        """
        self.python: str = python or settings.PYTHON
        self.timeout: float = settings.BRIDGE_TIMEOUT if timeout is None else timeout
        self.access_timeout: float = settings.ACCESS_TIMEOUT if access_timeout is None else access_timeout

    @staticmethod
    def to_bridge_id(uuid: str) -> str:
        return uuid[len(ID_PREFIX):] if uuid.startswith(ID_PREFIX) else uuid

    @staticmethod
    def from_bridge_id(uuid: str | None) -> str | None:
        if not uuid or uuid.startswith(ID_PREFIX):
            return uuid
        return ID_PREFIX + uuid

    @staticmethod
    def _field_arguments(title: str | None, due: DueComponents | None, note: str | None,
                         recurrence: Recurrence | None) -> List[str]:
        arguments = []
        if title:
            arguments += ['--title', title]
        if due:
            arguments += ['--due', DateUtil.components_to_string(due)]
        if note is not None:
            arguments += ['--note', note]
        if recurrence is not None:
            arguments += ['--repeat', recurrence.frequency, '--interval', str(recurrence.interval)]
            if recurrence.end:
                arguments += ['--repeat-end', recurrence.end.isoformat()]
        return arguments

    def call(self, command: str, *arguments: str) -> dict:
        """
        Run one bridge command.

        :param command: the bridge command, e.g. ``add``.
        :param arguments: ``--flag value`` pairs for the command.

        :return: the bridge's JSON response.
        """
        command_line = [self.python, '-m', EventKitTransport.BRIDGE_MODULE, command,
                        '--access-timeout', str(self.access_timeout)] + list(arguments)
        logging.debug('Running EventKit bridge: {}'.format(command))
        return_code, stdout, stderr = helpers.run_bridge(command_line, self.timeout)

        lines = [line for line in stdout.splitlines() if line.strip()]
        if not lines:
            raise TransportError('EventKit bridge returned no output (exit code {})'.format(return_code),
                                 stderr.strip() or None)
        try:
            response = json.loads(lines[-1])
        except json.decoder.JSONDecodeError:
            raise TransportError('EventKit bridge returned invalid JSON', lines[-1][:200])
        if not isinstance(response, dict):
            raise TransportError('EventKit bridge returned invalid JSON', lines[-1][:200])

        if not response.get('ok', False):
            error_class = EventKitTransport.ERRORS.get(response.get('code'), TransportError)
            error: ReminderError = error_class(response.get('error') or 'EventKit bridge failed',
                                               stderr.strip() or None)
            raise error
        if return_code != 0:
            raise TransportError('EventKit bridge exited with code {}'.format(return_code), stderr.strip() or None)
        return response

    @staticmethod
    def _reminder(item: dict) -> Reminder:
        reminder = Reminder.create_from_bridge(item)
        reminder.uuid = EventKitTransport.from_bridge_id(reminder.uuid)
        return reminder

    @staticmethod
    def _item(response: dict) -> Reminder:
        if not isinstance(response.get('item'), dict):
            raise TransportError('EventKit bridge response has no item', json.dumps(response)[:200])
        return EventKitTransport._reminder(response['item'])

    def list(self) -> List[Reminder]:
        response = self.call('list')
        return [self._reminder(item) for item in response.get('items', [])]

    def create(self, title: str, due: DueComponents | None = None, note: str | None = None,
               recurrence: Recurrence | None = None) -> Reminder:
        response = self.call('add', *self._field_arguments(title, due, note or None, recurrence))
        return self._item(response)

    def update(self, uuid: str, title: str | None = None, due: DueComponents | None = None, note: str | None = None,
               recurrence: Recurrence | None = None) -> tuple[Reminder, str]:
        response = self.call('edit', '--id', self.to_bridge_id(uuid),
                             *self._field_arguments(title, due, note, recurrence))
        reminder = self._item(response)
        return reminder, response.get('oldTitle', reminder.title)

    def delete(self, uuid: str) -> Reminder:
        return self._item(self.call('delete', '--id', self.to_bridge_id(uuid)))

    def complete(self, uuid: str) -> Reminder:
        return self._item(self.call('complete', '--id', self.to_bridge_id(uuid)))
