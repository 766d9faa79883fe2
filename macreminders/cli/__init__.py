"""
This is the command-line interface of mac-reminders-agent.

- ``mracli.py`` - the ``mac-reminders`` command, which parses flags, runs one command and prints one JSON line.

"""

from . import mracli

__all__ = ['mracli', ]
