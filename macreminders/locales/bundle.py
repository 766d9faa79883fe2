"""
Contains the ``LocaleBundle`` class, which holds the trigger phrases and response templates of one language, and the
functions used to load and render them.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List

#: Location of the bundled locale table.
LOCALES_FILE: Path = Path(__file__).parent / 'locales.json'
#: Locale used when the requested one is not available.
FALLBACK_LOCALE = 'en'

#: Used when a template is missing from the locale table altogether.
DEFAULT_RESPONSES: Dict[str, str] = {
    'added': "Added '{title}' reminder{due_text}.",
    'added_with_due': ' for {due}',
    'added_no_due': ' without a due date',
    'edited': "Updated '{title}' reminder.",
    'deleted': "Deleted '{title}' reminder.",
    'completed': "Marked '{title}' as completed.",
    'listed': 'Found {count} reminder(s).',
    'list_empty': 'No reminders found.',
    'error_validation': 'Invalid request',
    'error_not_found': 'Reminder not found',
    'error_access': 'Error accessing Reminders app',
    'error_transport': 'Error accessing Reminders app',
    'error_timeout': 'Reminders app did not respond',
}


class LocaleBundle:
    """
    Represents the trigger phrases and response templates of one language.
    """

    def __init__(self, code: str, triggers: List[str], responses: Dict[str, str]):
        """
        Create a new locale bundle.

        :param code: the language code, e.g. ``en``.
        :param triggers: phrases which should make an agent use this tool. Documentation only.
        :param responses: templates keyed by event name, e.g. ``added`` or ``error_access``.
        """
        self.code: str = code
        self.triggers: List[str] = triggers
        self.responses: Dict[str, str] = responses

    @staticmethod
    def create_from_dict(code: str, values: dict) -> LocaleBundle:
        """
        Creates a LocaleBundle from one entry of the locale table.

        :param code: the language code.
        :param values: the entry, with ``triggers`` and ``responses`` keys.

        :return: the locale bundle.
        """
        return LocaleBundle(code, list(values.get('triggers', [])), dict(values.get('responses', {})))

    def template(self, event: str) -> str:
        """
        Get the template for an event, falling back to the built-in English text.

        :param event: the event name.

        :return: the template, or an empty string if the event is unknown everywhere.
        """
        return self.responses.get(event, DEFAULT_RESPONSES.get(event, ''))

    def message(self, event: str, **variables) -> str:
        """
        Render the template for an event.

        :param event: the event name.
        :param variables: values for the template's placeholders.

        :return: the rendered message.
        """
        return render(self.template(event), variables)

    def __str__(self):
        return self.code

    def __repr__(self):
        return self.code


def render(template: str, variables: dict) -> str:
    """
    Replace every ``{name}`` in the template with the matching value. ``None`` renders as an empty string. Placeholders
    with no matching variable are left as they are.

    :param template: the template to render.
    :param variables: the values to substitute.

    :return: the rendered string.
    """
    result = template
    for key, value in variables.items():
        result = result.replace('{' + key + '}', '' if value is None else str(value))
    return result


def load_locales(path: Path | None = None) -> Dict[str, LocaleBundle]:
    """
    Load the locale table. A missing or invalid file gives an empty table, so messages fall back to the built-in text.

    :param path: location of the locale table. Defaults to the bundled ``locales.json``.

    :return: locale bundles keyed by language code.
    """
    path = path or LOCALES_FILE
    try:
        with open(path, encoding='utf-8') as fp:
            table = json.load(fp)
    except (OSError, json.decoder.JSONDecodeError) as e:
        logging.warning('Unable to load locale table {0}: {1}'.format(path, e))
        return {}
    return {code: LocaleBundle.create_from_dict(code, values) for code, values in table.items()}


def get_bundle(locales: Dict[str, LocaleBundle], code: str | None) -> LocaleBundle:
    """
    Get the bundle for a language code. Unknown codes fall back to ``en``, and if that is missing too, to an empty bundle.

    :param locales: the loaded locale table.
    :param code: the requested language code.

    :return: the locale bundle to use.
    """
    if code in locales:
        return locales[code]
    if code is not None:
        logging.info('Locale {0} not available, using {1}'.format(code, FALLBACK_LOCALE))
    return locales.get(FALLBACK_LOCALE, LocaleBundle(FALLBACK_LOCALE, [], {}))
