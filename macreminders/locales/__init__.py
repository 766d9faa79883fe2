"""
This is the locale package of mac-reminders-agent. Here, you'll find the following:

- ``locales.json`` - the trigger phrases and response templates for every supported language.
- ``bundle.py`` - Contains the ``LocaleBundle`` class, plus the functions to load and render templates.

"""

from . import bundle

__all__ = ['bundle', ]
