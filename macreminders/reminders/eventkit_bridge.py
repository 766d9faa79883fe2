"""
EventKit bridge for the Reminders app. Unlike AppleScript, EventKit can store repeat rules, so any request carrying a
repeat rule goes through here.

This module runs in its own process and answers with a single JSON line::

    python -m macreminders.reminders.eventkit_bridge list
    python -m macreminders.reminders.eventkit_bridge add --title "Standup" --due 2026-02-10T09:00:00 --repeat weekly
    python -m macreminders.reminders.eventkit_bridge edit --id "ABC123" --title "New title" --note ""
    python -m macreminders.reminders.eventkit_bridge delete --id "ABC123"
    python -m macreminders.reminders.eventkit_bridge complete --id "ABC123"

Due dates are local ``YYYY-MM-DDTHH:MM:SS`` strings; the caller has already converted them to the local time zone.
Failures are reported as ``{"ok": false, "error": "...", "code": "..."}``.
"""

from __future__ import annotations

import json
import sys
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from datetime import datetime
from typing import Callable, List

import EventKit
from Foundation import NSCalendar, NSDate, NSDateComponents

from macreminders.errors import ReminderError, ValidationError, NotFoundError, AccessDeniedError, TransportError
from macreminders.helpers import ArgumentParser, DateUtil
from macreminders.reminders.model.reminder import FREQUENCIES

FREQUENCY_VALUES = {
    'daily': EventKit.EKRecurrenceFrequencyDaily,
    'weekly': EventKit.EKRecurrenceFrequencyWeekly,
    'monthly': EventKit.EKRecurrenceFrequencyMonthly,
    'yearly': EventKit.EKRecurrenceFrequencyYearly,
}
FREQUENCY_NAMES = {value: name for name, value in FREQUENCY_VALUES.items()}

#: ``code`` reported for each error kind.
ERROR_CODES = {
    NotFoundError: 'not_found',
    AccessDeniedError: 'access_denied',
    ValidationError: 'validation',
}


def wait_for(register: Callable[[Future], None], timeout: float | None):
    """
    Block until an EventKit completion handler resolves a future.

    :param register: starts the EventKit call, passing it a handler which resolves the future.
    :param timeout: seconds to wait. ``None`` or ``0`` waits forever.

    :return: the future's result.
    """
    future = Future()
    register(future)
    return future.result(timeout=timeout or None)


def request_access(store, timeout: float | None) -> None:
    """
    Ask for access to Reminders, blocking until the user answers the permission prompt. There is no retry.

    :param store: the event store.
    :param timeout: seconds to wait for an answer.
    """

    def register(future: Future):
        def completion(granted, error):
            if not future.done():
                future.set_result(bool(granted))

        if hasattr(store, 'requestFullAccessToRemindersWithCompletion_'):
            store.requestFullAccessToRemindersWithCompletion_(completion)
        else:
            store.requestAccessToEntityType_completion_(EventKit.EKEntityTypeReminder, completion)

    try:
        granted = wait_for(register, timeout)
    except FutureTimeoutError:
        raise AccessDeniedError('Timed out waiting for access to Reminders')
    if not granted:
        raise AccessDeniedError('Reminders access denied')


def open_store(timeout: float | None):
    store = EventKit.EKEventStore.alloc().init()
    request_access(store, timeout)
    return store


def default_calendar(store):
    calendar = store.defaultCalendarForNewReminders()
    if calendar is None:
        raise TransportError('No default reminder list')
    return calendar


def fetch_reminder(store, uuid: str):
    item = store.calendarItemWithIdentifier_(uuid)
    if item is None or not item.isKindOfClass_(EventKit.EKReminder):
        raise NotFoundError('Reminder not found')
    return item


def save(store, reminder) -> None:
    success, error = store.saveReminder_commit_error_(reminder, True, None)
    if not success:
        raise TransportError('Failed to save reminder', str(error))


def to_components(value: str):
    """
    Convert a local ``YYYY-MM-DDTHH:MM:SS`` string to ``NSDateComponents``.
    """
    try:
        parsed = datetime.strptime(value, DateUtil.BRIDGE_DATETIME)
    except ValueError:
        raise ValidationError('Invalid due date: {}'.format(value))
    components = NSDateComponents.alloc().init()
    components.setYear_(parsed.year)
    components.setMonth_(parsed.month)
    components.setDay_(parsed.day)
    components.setHour_(parsed.hour)
    components.setMinute_(parsed.minute)
    components.setSecond_(parsed.second)
    return components


def to_nsdate(value: datetime):
    return NSDate.dateWithTimeIntervalSince1970_(value.timestamp())


def from_nsdate(value) -> datetime:
    return datetime.fromtimestamp(value.timeIntervalSince1970())


def set_due(reminder, value: str) -> None:
    """
    Set the due date of a reminder, replacing any alarm with one at the new due date.
    """
    components = to_components(value)
    reminder.setDueDateComponents_(components)
    for alarm in list(reminder.alarms() or []):
        reminder.removeAlarm_(alarm)
    due = NSCalendar.currentCalendar().dateFromComponents_(components)
    if due is not None:
        reminder.addAlarm_(EventKit.EKAlarm.alarmWithAbsoluteDate_(due))


def set_recurrence(reminder, repeat: str, interval: int, repeat_end: str | None) -> None:
    end = None
    end_date = DateUtil.parse_end_date(repeat_end)
    if end_date is not None:
        end = EventKit.EKRecurrenceEnd.recurrenceEndWithEndDate_(
            to_nsdate(datetime(end_date.year, end_date.month, end_date.day)))
    rule = EventKit.EKRecurrenceRule.alloc().initRecurrenceWithFrequency_interval_end_(
        FREQUENCY_VALUES[repeat], interval, end)
    reminder.setRecurrenceRules_([rule])


def reminder_to_dict(reminder) -> dict:
    """
    Convert an ``EKReminder`` to the item format understood by ``Reminder.create_from_bridge``.
    """
    item = {
        'id': reminder.calendarItemIdentifier(),
        'title': reminder.title() or '',
        'completed': bool(reminder.isCompleted()),
    }
    components = reminder.dueDateComponents()
    if components is not None:
        due = NSCalendar.currentCalendar().dateFromComponents_(components)
        if due is not None:
            item['due'] = from_nsdate(due).strftime(DateUtil.BRIDGE_DATETIME)
    if reminder.notes():
        item['note'] = reminder.notes()
    if reminder.completionDate() is not None:
        item['completionDate'] = from_nsdate(reminder.completionDate()).strftime(DateUtil.BRIDGE_DATETIME)
    rules = reminder.recurrenceRules() or []
    if len(rules) > 0:
        rule = rules[0]
        item['repeat'] = FREQUENCY_NAMES.get(rule.frequency(), '')
        item['interval'] = int(rule.interval())
        end = rule.recurrenceEnd()
        if end is not None and end.endDate() is not None:
            item['repeatEnd'] = from_nsdate(end.endDate()).strftime(DateUtil.ISO_DATE)
    return item


def list_reminders(args) -> dict:
    store = open_store(args.access_timeout)
    predicate = store.predicateForIncompleteRemindersWithDueDateStarting_ending_calendars_(
        None, None, [default_calendar(store)])

    def register(future: Future):
        store.fetchRemindersMatchingPredicate_completion_(predicate, lambda reminders: future.set_result(reminders))

    try:
        fetched = wait_for(register, args.access_timeout) or []
    except FutureTimeoutError:
        raise TransportError('Timed out fetching reminders')
    return {'ok': True, 'items': [reminder_to_dict(r) for r in fetched]}


def add_reminder(args) -> dict:
    if not args.title:
        raise ValidationError('--title is required')
    store = open_store(args.access_timeout)
    reminder = EventKit.EKReminder.reminderWithEventStore_(store)
    reminder.setTitle_(args.title)
    reminder.setCalendar_(default_calendar(store))
    if args.note:
        reminder.setNotes_(args.note)
    if args.due:
        set_due(reminder, args.due)
    if args.repeat:
        set_recurrence(reminder, args.repeat, args.interval or 1, args.repeat_end)
    save(store, reminder)
    return {'ok': True, 'item': reminder_to_dict(reminder)}


def edit_reminder(args) -> dict:
    store = open_store(args.access_timeout)
    reminder = fetch_reminder(store, args.id)
    old_title = reminder.title() or ''
    if args.title:
        reminder.setTitle_(args.title)
    if args.note is not None:
        reminder.setNotes_(args.note if args.note else None)
    if args.due:
        set_due(reminder, args.due)
    if args.repeat:
        set_recurrence(reminder, args.repeat, args.interval or 1, args.repeat_end)
    save(store, reminder)
    return {'ok': True, 'item': reminder_to_dict(reminder), 'oldTitle': old_title}


def delete_reminder(args) -> dict:
    store = open_store(args.access_timeout)
    reminder = fetch_reminder(store, args.id)
    item = reminder_to_dict(reminder)
    success, error = store.removeReminder_commit_error_(reminder, True, None)
    if not success:
        raise TransportError('Failed to delete reminder', str(error))
    return {'ok': True, 'item': item}


def complete_reminder(args) -> dict:
    store = open_store(args.access_timeout)
    reminder = fetch_reminder(store, args.id)
    reminder.setCompleted_(True)
    reminder.setCompletionDate_(NSDate.date())
    save(store, reminder)
    return {'ok': True, 'item': reminder_to_dict(reminder)}


COMMANDS = {
    'list': list_reminders,
    'add': add_reminder,
    'edit': edit_reminder,
    'delete': delete_reminder,
    'complete': complete_reminder,
}


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog='eventkit_bridge', description='EventKit bridge for the Reminders app.')
    parser.add_argument('command', choices=list(COMMANDS.keys()))
    parser.add_argument('--access-timeout', type=float, default=30)
    parser.add_argument('--id', type=str, default=None)
    parser.add_argument('--title', type=str, default=None)
    parser.add_argument('--due', type=str, default=None)
    parser.add_argument('--note', type=str, default=None)
    parser.add_argument('--repeat', type=str, choices=FREQUENCIES, default=None)
    parser.add_argument('--interval', type=int, default=None)
    parser.add_argument('--repeat-end', type=str, default=None)
    return parser


def print_json(response: dict) -> None:
    print(json.dumps(response, ensure_ascii=False))


def main(argv: List[str] | None = None) -> int:
    try:
        args = build_parser().parse_args(argv)
        if args.command in ('edit', 'delete', 'complete') and not args.id:
            raise ValidationError('--id is required')
        response = COMMANDS[args.command](args)
    except ReminderError as e:
        print_json({'ok': False, 'error': e.message, 'code': ERROR_CODES.get(type(e), 'failed')})
        return 1
    print_json(response)
    return 0


if __name__ == "__main__":
    sys.exit(main())
