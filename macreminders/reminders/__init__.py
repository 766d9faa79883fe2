"""
This is the reminders package of mac-reminders-agent. Here, you'll find the following:

- ``model`` - the ``Reminder`` class, the AppleScript sources and the transports.
- ``controller.py`` - the ``ReminderController`` class, which validates and dispatches every command.
- ``eventkit_bridge.py`` - the EventKit bridge, run in its own process by ``EventKitTransport``. It needs PyObjC, so it is
  not imported here.

"""

from . import model
from . import controller

__all__ = ['model', 'controller', ]
