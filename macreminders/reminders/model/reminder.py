"""
Contains the ``Reminder`` class, which represents a reminder in the Reminders app, and the ``Recurrence`` class, which
represents its repeat rule.
"""

from __future__ import annotations

import datetime

from macreminders.helpers import DateUtil

#: Repeat frequencies understood by Reminders.
FREQUENCIES = ('daily', 'weekly', 'monthly', 'yearly')
#: Prefix of reminder ids as AppleScript reports them. Every id leaving a transport has this form.
ID_PREFIX = 'x-apple-reminder://'


class Recurrence:
    """
    A repeat rule attached to a single reminder.
    """

    def __init__(self, frequency: str, interval: int = 1, end: datetime.date | None = None):
        """
        Create a new repeat rule.

        :param frequency: one of ``daily``, ``weekly``, ``monthly`` or ``yearly``.
        :param interval: repeat every ``interval`` periods. Must be at least 1.
        :param end: no occurrences on or after this date. None repeats forever.
        """
        self.frequency: str = frequency
        self.interval: int = interval
        self.end: datetime.date | None = end

    def to_dict(self) -> dict:
        return {
            'frequency': self.frequency,
            'interval': self.interval,
            'end': self.end.isoformat() if self.end else None,
        }

    def __eq__(self, other):
        if not isinstance(other, Recurrence):
            return NotImplemented
        return (self.frequency, self.interval, self.end) == (other.frequency, other.interval, other.end)

    def __repr__(self):
        return 'Recurrence({0}, {1}, {2})'.format(self.frequency, self.interval, self.end)


class Reminder:
    """
    Represents a reminder. Reminders are owned by the Reminders app; instances of this class are only ever built from
    what a transport returns, and are never cached.
    """

    def __init__(self,
                 uuid: str | None,
                 title: str,
                 due_date: datetime.datetime | None = None,
                 note: str | None = None,
                 completed: bool = False,
                 completion_date: datetime.datetime | None = None,
                 recurrence: Recurrence | None = None,
                 recurrence_known: bool = True,
                 ):
        """
        Create a new reminder.

        :param uuid: the identifier assigned by Reminders.
        :param title: the title of this reminder.
        :param due_date: the datetime when the reminder is due, in the local time zone.
        :param note: the note (i.e. body) of the reminder.
        :param completed: True if this reminder has been completed.
        :param completion_date: if completed, the datetime when this reminder was completed.
        :param recurrence: the repeat rule of this reminder, if any.
        :param recurrence_known: False if the transport cannot read repeat rules, so ``recurrence`` says nothing.
        """
        self.uuid: str | None = uuid
        self.title: str = title
        self.due_date: datetime.datetime | None = due_date
        self.note: str | None = note
        self.completed: bool = completed
        self.completion_date: datetime.datetime | None = completion_date
        self.recurrence: Recurrence | None = recurrence
        self.recurrence_known: bool = recurrence_known

    @staticmethod
    def create_from_bridge(values: dict, recurrence_known: bool = True) -> Reminder:
        """
        Creates a Reminder instance from an item returned by a transport.

        The item may have the following keys: ``id``, ``title``, ``due`` (``YYYY-MM-DDTHH:MM:SS``, local, with or without
        an offset), ``note``, ``completed``, ``completionDate``, ``repeat``, ``interval`` and ``repeatEnd``.

        :param values: the item as returned by the transport.
        :param recurrence_known: False if the transport cannot read repeat rules.

        :return: a Reminder instance representing the item.
        """
        recurrence = None
        if values.get('repeat') in FREQUENCIES:
            recurrence = Recurrence(
                frequency=values['repeat'],
                interval=int(values.get('interval') or 1),
                end=DateUtil.parse_end_date(values.get('repeatEnd')),
            )
        return Reminder(
            uuid=values.get('id'),
            title=values.get('title') or '',
            due_date=DateUtil.parse_local(values.get('due')),
            note=values.get('note') or None,
            completed=bool(values.get('completed', False)),
            completion_date=DateUtil.parse_local(values.get('completionDate')),
            recurrence=recurrence,
            recurrence_known=recurrence_known,
        )

    def to_dict(self) -> dict:
        """
        Returns this reminder as a dictionary, ready for JSON output. ``recurrence`` is left out when the transport
        could not read it.
        """
        values = {
            'id': self.uuid,
            'title': self.title,
            'due': DateUtil.to_iso(self.due_date),
            'note': self.note,
            'completed': self.completed,
            'recurrence': self.recurrence.to_dict() if self.recurrence else None,
        }
        if not self.recurrence_known:
            del values['recurrence']
        return values

    def __str__(self):
        return self.title

    def __repr__(self):
        return self.title
