"""
Settings for mac-reminders-agent. Values are read with `python-decouple <https://pypi.org/project/python-decouple/>`_, so
they can come from environment variables, a ``settings.ini`` or a ``.env`` file.
"""

from __future__ import annotations

import sys
from pathlib import Path

from decouple import config

#: Locale used when ``--locale`` is not given.
DEFAULT_LOCALE: str = config('MRA_LOCALE', default='en')
#: Seconds to wait for the EventKit bridge process. 0 waits forever.
BRIDGE_TIMEOUT: float = config('MRA_BRIDGE_TIMEOUT', default=60, cast=float)
#: Seconds the EventKit bridge waits for the user to answer the permission prompt.
ACCESS_TIMEOUT: float = config('MRA_ACCESS_TIMEOUT', default=30, cast=float)
#: Default logging level.
LOG_LEVEL: str = config('MRA_LOG_LEVEL', default='info')
#: Default folder for log files.
LOG_DIR: Path = config('MRA_LOG_DIR', default=str(Path.home() / "Library" / "Logs" / "MacReminders"), cast=Path)
#: Interpreter used to launch the EventKit bridge.
PYTHON: str = config('MRA_PYTHON', default=sys.executable)
