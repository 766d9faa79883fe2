"""
This is the reminder controller. It validates every command, chooses the transport which can carry it, and renders the
result in the requested language. It is called by the CLI, but can be used separately if imported.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from macreminders.errors import ReminderError, ValidationError, TransportError
from macreminders.helpers import DateUtil
from macreminders.locales.bundle import LocaleBundle
from macreminders.reminders.model.reminder import Recurrence, FREQUENCIES
from macreminders.reminders.model.transport import TaskStoreClient, needs_recurrence, select_transport


class ReminderController:
    """
    Contains one method per command. Each method validates its input before making a single call to a transport, so a
    malformed request never reaches the Reminders app.
    """

    #: Scopes understood by ``list``. Anything else lists every reminder.
    SCOPES = ('today', 'week', 'all')
    #: Scope used when none is given.
    DEFAULT_SCOPE = 'week'

    def __init__(self,
                 bundle: LocaleBundle,
                 simple: TaskStoreClient,
                 recurrence: TaskStoreClient,
                 now: Callable[[], datetime] | None = None):
        """
        Create a new controller.

        :param bundle: the locale bundle used to render messages.
        :param simple: the transport used when no repeat rule is involved.
        :param recurrence: the transport used whenever a repeat rule is requested.
        :param now: returns the current, timezone-aware time. Used by ``list``.
        """
        self.bundle: LocaleBundle = bundle
        self.simple: TaskStoreClient = simple
        self.recurrence: TaskStoreClient = recurrence
        self.now: Callable[[], datetime] = now or (lambda: datetime.now().astimezone())

    @staticmethod
    def _call(action: str, func: Callable, *args):
        """
        Make the single transport call of a command. Failures are logged with their technical detail, and anything which
        is not already a ``ReminderError`` is reported as a ``TransportError``.

        :param action: what is being attempted, for the log.
        :param func: the transport method to call.
        :param args: arguments for the transport method.

        :return: whatever the transport method returns.
        """
        try:
            return func(*args)
        except ReminderError as e:
            logging.critical('Failed to {0}: {1}'.format(action, e))
            raise
        except (OSError, ValueError) as e:
            logging.critical('Failed to {0}: {1}'.format(action, e))
            raise TransportError('Failed to {}'.format(action), str(e)) from e

    @staticmethod
    def _require_id(uuid: str | None, command: str) -> str:
        if not uuid or not uuid.strip():
            raise ValidationError('--id is required for {}'.format(command))
        return uuid.strip()

    @staticmethod
    def _recurrence(repeat: str | None, interval: int | str | None, repeat_end: str | None) -> Recurrence | None:
        """
        Build the repeat rule for a request. The interval defaults to 1, and a malformed end date is ignored. An interval
        or end date without a frequency is rejected.

        :return: the repeat rule, or None if no repeat was requested.
        """
        if not needs_recurrence(repeat):
            if interval not in (None, '') or repeat_end:
                raise ValidationError('--interval and --repeat-end need --repeat')
            return None
        if repeat not in FREQUENCIES:
            raise ValidationError('--repeat must be one of {}'.format(', '.join(FREQUENCIES)))
        try:
            interval = 1 if interval in (None, '') else int(interval)
        except ValueError:
            raise ValidationError('--interval must be a whole number')
        if interval < 1:
            raise ValidationError('--interval must be at least 1')
        return Recurrence(repeat, interval, DateUtil.parse_end_date(repeat_end))

    def _result(self, values: dict, event: str, **variables) -> dict:
        result = {'ok': True}
        result.update(values)
        result['locale'] = self.bundle.code
        result['message'] = self.bundle.message(event, **variables)
        return result

    def error_message(self, error: ReminderError) -> str:
        """
        Render an error for the user: the localized description, followed by the short technical message.

        :param error: the error to render.

        :return: a single line of text.
        """
        return '{0}: {1}'.format(self.bundle.message(error.event), error.message)

    def list(self, scope: str | None = None) -> dict:
        """
        List incomplete reminders in a scope.

        - ``today`` - reminders due on the local calendar day.
        - ``week`` - reminders due from one day ago to seven days from now, both ends included.
        - ``all``, or any unknown scope - every incomplete reminder.

        :param scope: the scope to list. Defaults to ``week``.

        :return: a dictionary with the locale, its labels, the reminders found and a summary message.
        """
        scope = scope or ReminderController.DEFAULT_SCOPE
        if scope not in ReminderController.SCOPES:
            logging.info('Unknown scope {}, listing all reminders'.format(scope))
        reminders = ReminderController._call('fetch reminders', self.simple.list)
        now = self.now()
        items = [r.to_dict() for r in reminders if DateUtil.in_scope(r.due_date, scope, now)]
        logging.debug('Found {0} reminder(s) in scope {1}'.format(len(items), scope))
        return {
            'locale': self.bundle.code,
            'labels': dict(self.bundle.responses),
            'items': items,
            'message': (self.bundle.message('listed', count=len(items))
                        if items else self.bundle.message('list_empty')),
        }

    def add(self,
            title: str | None,
            due: str | None = None,
            note: str | None = None,
            repeat: str | None = None,
            interval: int | str | None = None,
            repeat_end: str | None = None) -> dict:
        """
        Add a reminder to the default list. Requests with a repeat rule always go through the EventKit transport.

        :param title: the title of the reminder. Required.
        :param due: the due date, as ISO-8601 with an offset. A malformed date is ignored.
        :param note: the note of the reminder.
        :param repeat: ``daily``, ``weekly``, ``monthly`` or ``yearly``.
        :param interval: repeat every ``interval`` periods. Defaults to 1.
        :param repeat_end: ``YYYY-MM-DD`` date after which the reminder stops repeating.

        :return: the created reminder, with a confirmation message.
        """
        if not title or not title.strip():
            raise ValidationError('--title is required for add')
        recurrence = ReminderController._recurrence(repeat, interval, repeat_end)
        due_date = DateUtil.parse_due(due)
        components = DateUtil.to_components(due_date) if due_date else None

        transport = select_transport(needs_recurrence(repeat), self.simple, self.recurrence)
        logging.info('Adding reminder {0} via {1}'.format(title, transport.name))
        reminder = ReminderController._call('add reminder {}'.format(title), transport.create,
                                            title, components, note or None, recurrence)

        due_text = (self.bundle.message('added_with_due', due=due)
                    if due_date else self.bundle.message('added_no_due'))
        return self._result(reminder.to_dict(), 'added', title=reminder.title or title, due_text=due_text)

    def edit(self,
             uuid: str | None,
             title: str | None = None,
             due: str | None = None,
             note: str | None = None,
             repeat: str | None = None,
             interval: int | str | None = None,
             repeat_end: str | None = None) -> dict:
        """
        Update a reminder. Only the fields given are changed; an empty note clears the note. A new due date replaces the
        reminder's alarm. Requests with a repeat rule go through the EventKit transport.

        :param uuid: the id of the reminder. Required.
        :param title: the new title.
        :param due: the new due date, as ISO-8601 with an offset. A malformed date leaves the due date unchanged.
        :param note: the new note. ``None`` leaves it alone, an empty string clears it.
        :param repeat: the new repeat frequency.
        :param interval: the new repeat interval. Defaults to 1 when ``repeat`` is given.
        :param repeat_end: the new repeat end date.

        :return: the updated reminder and its previous title, with a confirmation message.
        """
        uuid = ReminderController._require_id(uuid, 'edit')
        recurrence = ReminderController._recurrence(repeat, interval, repeat_end)
        due_date = DateUtil.parse_due(due)
        components = DateUtil.to_components(due_date) if due_date else None

        transport = select_transport(needs_recurrence(repeat), self.simple, self.recurrence)
        logging.info('Updating reminder {0} via {1}'.format(uuid, transport.name))
        reminder, old_title = ReminderController._call('update reminder {}'.format(uuid), transport.update,
                                                       uuid, title or None, components, note, recurrence)

        values = reminder.to_dict()
        values['oldTitle'] = old_title
        return self._result(values, 'edited', title=reminder.title, old_title=old_title)

    def delete(self, uuid: str | None) -> dict:
        """
        Delete a reminder.

        :param uuid: the id of the reminder. Required.

        :return: the id and former title of the reminder, with a confirmation message.
        """
        uuid = ReminderController._require_id(uuid, 'delete')
        logging.info('Deleting reminder {}'.format(uuid))
        reminder = ReminderController._call('delete reminder {}'.format(uuid), self.simple.delete, uuid)
        return self._result({'id': uuid, 'title': reminder.title}, 'deleted', title=reminder.title)

    def complete(self, uuid: str | None) -> dict:
        """
        Mark a reminder as completed now.

        :param uuid: the id of the reminder. Required.

        :return: the id and title of the reminder, with a confirmation message.
        """
        uuid = ReminderController._require_id(uuid, 'complete')
        logging.info('Completing reminder {}'.format(uuid))
        reminder = ReminderController._call('complete reminder {}'.format(uuid), self.simple.complete, uuid)
        return self._result({
            'id': uuid,
            'title': reminder.title,
            'completed': True,
            'completionDate': DateUtil.to_iso(reminder.completion_date),
        }, 'completed', title=reminder.title)
