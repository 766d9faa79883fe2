from __future__ import annotations

import copy
import json
import time
from datetime import datetime, timezone
from typing import Dict, List
from unittest import mock

import pytest

from macreminders.errors import NotFoundError, TransportError
from macreminders.locales.bundle import load_locales, get_bundle
from macreminders.reminders.controller import ReminderController
from macreminders.reminders.model import reminderscript
from macreminders.reminders.model.reminder import Reminder, ID_PREFIX
from macreminders.reminders.model.transport import TaskStoreClient, AppleScriptTransport, EventKitTransport

#: Fixed "now" used by list tests.
NOW = datetime(2026, 2, 5, 12, 0, 0, tzinfo=timezone.utc)


class FakeStore:
    """
    In-memory stand-in for the Reminders app, shared by both fake transports. Ids are kept in the
    ``x-apple-reminder://`` form every transport returns.
    """

    def __init__(self):
        self.reminders: Dict[str, Reminder] = {}
        self.calls: List[tuple] = []
        self.next_id = 1

    def put(self, reminder: Reminder) -> Reminder:
        if reminder.uuid is None:
            reminder.uuid = 'x-apple-reminder://{}'.format(self.next_id)
            self.next_id += 1
        self.reminders[reminder.uuid] = reminder
        return reminder

    def get(self, uuid: str) -> Reminder:
        if uuid not in self.reminders:
            raise NotFoundError('Reminder not found')
        return self.reminders[uuid]


class FakeTransport(TaskStoreClient):
    """
    Records every call, then works on the shared ``FakeStore``.
    """

    def __init__(self, store: FakeStore, name: str, supports_recurrence: bool):
        self.store = store
        self.name = name
        self.supports_recurrence = supports_recurrence

    def _record(self, method: str, *args):
        self.store.calls.append((self.name, method) + args)

    def list(self):
        self._record('list')
        return [copy.copy(r) for r in self.store.reminders.values() if not r.completed]

    def create(self, title, due=None, note=None, recurrence=None):
        self._record('create', title, due, note, recurrence)
        if recurrence is not None and not self.supports_recurrence:
            raise TransportError('AppleScript cannot store repeat rules')
        return copy.copy(self.store.put(Reminder(
            uuid=None,
            title=title,
            due_date=datetime(*due).astimezone() if due else None,
            note=note,
            recurrence=recurrence,
        )))

    def update(self, uuid, title=None, due=None, note=None, recurrence=None):
        self._record('update', uuid, title, due, note, recurrence)
        if recurrence is not None and not self.supports_recurrence:
            raise TransportError('AppleScript cannot store repeat rules')
        reminder = self.store.get(uuid)
        old_title = reminder.title
        if title:
            reminder.title = title
        if due:
            reminder.due_date = datetime(*due).astimezone()
        if note is not None:
            reminder.note = note or None
        if recurrence is not None:
            reminder.recurrence = recurrence
        return copy.copy(reminder), old_title

    def delete(self, uuid):
        self._record('delete', uuid)
        reminder = self.store.get(uuid)
        del self.store.reminders[uuid]
        return reminder

    def complete(self, uuid):
        self._record('complete', uuid)
        reminder = self.store.get(uuid)
        reminder.completed = True
        reminder.completion_date = NOW
        return copy.copy(reminder)


class RemindersApp:
    """
    Simulated Reminders app behind both real transports. It stores bare identifiers, as EventKit does; AppleScript sees
    them with the ``x-apple-reminder://`` prefix.
    """

    def __init__(self):
        self.reminders: Dict[str, dict] = {}
        self.next_id = 1

    def _new_id(self) -> str:
        uuid = 'UUID-{}'.format(self.next_id)
        self.next_id += 1
        return uuid

    def _lookup(self, uuid: str) -> str | None:
        if uuid.startswith(ID_PREFIX) and uuid[len(ID_PREFIX):] in self.reminders:
            return uuid[len(ID_PREFIX):]
        return None

    def run_applescript(self, script: str, *args):
        fs, rs = reminderscript.FIELD_SEPARATOR, reminderscript.RECORD_SEPARATOR
        if script is reminderscript.add_reminder_script:
            uuid = self._new_id()
            self.reminders[uuid] = {'title': args[0], 'note': args[1] or None, 'completed': False}
            return 0, ID_PREFIX + uuid + '\n', ''
        if script is reminderscript.get_reminders_script:
            output = ''.join(ID_PREFIX + uuid + fs + r['title'] + fs + '' + fs + (r['note'] or '') + rs
                             for uuid, r in self.reminders.items() if not r['completed'])
            return 0, output + '\n', ''

        key = self._lookup(args[0])
        if key is None:
            return 0, reminderscript.NOT_FOUND + '\n', ''
        if script is reminderscript.delete_reminder_script:
            return 0, self.reminders.pop(key)['title'] + '\n', ''
        if script is reminderscript.complete_reminder_script:
            self.reminders[key]['completed'] = True
            return 0, self.reminders[key]['title'] + '\n', ''
        raise AssertionError('Unexpected script')

    def _item(self, uuid: str) -> dict:
        reminder = self.reminders[uuid]
        item = {'id': uuid, 'title': reminder['title'], 'completed': reminder['completed']}
        if reminder.get('repeat'):
            item['repeat'] = reminder['repeat']
            item['interval'] = reminder['interval']
        return item

    def run_bridge(self, command_line: List[str], timeout=None):
        command = command_line[3]
        flags = dict(zip(command_line[6::2], command_line[7::2]))
        if command == 'add':
            uuid = self._new_id()
            self.reminders[uuid] = {'title': flags['--title'], 'note': flags.get('--note'), 'completed': False}
        else:
            uuid = flags['--id']
            if uuid not in self.reminders:
                return 1, json.dumps({'ok': False, 'error': 'Reminder not found', 'code': 'not_found'}) + '\n', ''
        reminder = self.reminders[uuid]
        response = {'ok': True, 'oldTitle': reminder['title']}
        if '--title' in flags:
            reminder['title'] = flags['--title']
        if '--repeat' in flags:
            reminder['repeat'] = flags['--repeat']
            reminder['interval'] = int(flags['--interval'])
        if command == 'complete':
            reminder['completed'] = True
        response['item'] = self._item(uuid)
        if command == 'delete':
            del self.reminders[uuid]
        return 0, json.dumps(response) + '\n', ''


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def simple(store: FakeStore) -> FakeTransport:
    return FakeTransport(store, 'applescript', False)


@pytest.fixture()
def recurring(store: FakeStore) -> FakeTransport:
    return FakeTransport(store, 'eventkit', True)


@pytest.fixture()
def locales():
    return load_locales()


@pytest.fixture()
def make_controller(locales, simple, recurring):
    def make(code: str = 'en') -> ReminderController:
        return ReminderController(get_bundle(locales, code), simple, recurring, now=lambda: NOW)
    return make


@pytest.fixture()
def controller(make_controller) -> ReminderController:
    return make_controller('en')


@pytest.fixture()
def local_tz(monkeypatch):
    """
    Switch the process's local time zone. Takes a POSIX TZ string, so no zone database is needed.
    """
    if not hasattr(time, 'tzset'):
        pytest.skip("Requires time.tzset")

    def set_tz(tz: str):
        monkeypatch.setenv('TZ', tz)
        time.tzset()

    yield set_tz
    monkeypatch.undo()
    time.tzset()


@pytest.fixture()
def app() -> RemindersApp:
    return RemindersApp()


@pytest.fixture()
def app_controller(app, locales):
    """
    A controller over the real transports, with ``osascript`` and the bridge process replaced by ``app``.
    """
    with mock.patch('macreminders.helpers.run_applescript', side_effect=app.run_applescript), \
            mock.patch('macreminders.helpers.run_bridge', side_effect=app.run_bridge):
        yield ReminderController(get_bundle(locales, 'en'), AppleScriptTransport(),
                                 EventKitTransport(python='python3', timeout=5, access_timeout=1), now=lambda: NOW)
