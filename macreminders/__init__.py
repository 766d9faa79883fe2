"""
This is the main package for mac-reminders-agent.

- ``reminders`` - the models, transports and dispatcher used to talk to the Reminders app.
- ``locales`` - the response templates for every supported language.
- ``cli`` - the command-line interface.
- ``helpers`` - subprocess and date helpers.
- ``errors`` - the error kinds reported to the user.
- ``settings`` - configuration, read from the environment.

"""

from . import errors, helpers, settings

__all__ = ['errors', 'helpers', 'settings', ]
