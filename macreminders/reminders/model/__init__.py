"""
This is the model of the reminders package. Here, you'll find the following:

- ``reminder.py`` - Contains the ``Reminder`` class which represents a reminder, and the ``Recurrence`` class which
  represents its repeat rule.
- ``reminderscript.py`` - Contains the AppleScript scripts used by the simple transport.
- ``transport.py`` - Contains ``AppleScriptTransport`` and ``EventKitTransport``, and the predicate choosing between them.

"""

from . import reminder, reminderscript, transport

__all__ = ['reminder', 'reminderscript', 'transport', ]
