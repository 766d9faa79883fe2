from __future__ import annotations

import argparse
import json
import logging
import os
import pathlib
import sys
from datetime import datetime
from typing import List

from macreminders import settings
from macreminders.errors import ReminderError, ValidationError
from macreminders.helpers import ArgumentParser
from macreminders.locales.bundle import load_locales, get_bundle
from macreminders.reminders.controller import ReminderController
from macreminders.reminders.model.reminder import FREQUENCIES
from macreminders.reminders.model.transport import AppleScriptTransport, EventKitTransport

LOCALES = ['en', 'ko', 'ja', 'zh']
LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'critical': logging.CRITICAL
}


class MacRemindersCli:
    """
    Defines the functionality of the mac-reminders CLI. Each invocation runs exactly one command, prints one JSON line
    on standard output on success, or one localized error line on standard error on failure.
    """

    def __init__(self, args):
        self.args = args
        self.logger = self.setup_logging()
        self.bundle = get_bundle(load_locales(), args.locale)
        self.controller = ReminderController(self.bundle, AppleScriptTransport(), EventKitTransport())

    def run(self) -> int:
        """
        Run the requested command.

        :return: the exit code, 0 on success and 1 on failure.
        """
        try:
            result = self.dispatch()
        except ReminderError as e:
            logging.critical('{0} failed: {1}'.format(self.args.command, e))
            print(self.controller.error_message(e), file=sys.stderr)
            return 1
        print(json.dumps(result, ensure_ascii=False))
        return 0

    def dispatch(self) -> dict:
        """
        Call the controller method matching the command.

        :return: the controller's result.
        """
        args = self.args
        if args.command == 'list':
            return self.controller.list(args.scope)
        if args.command == 'add':
            return self.controller.add(args.title, args.due, args.note, args.repeat, args.interval, args.repeat_end)
        if args.command == 'edit':
            return self.controller.edit(args.id, args.title, args.due, args.note, args.repeat, args.interval,
                                        args.repeat_end)
        if args.command == 'delete':
            return self.controller.delete(args.id)
        if args.command == 'complete':
            return self.controller.complete(args.id)
        raise ValidationError('Unknown command: {}'.format(args.command))

    def setup_logging(self) -> logging.Logger:
        """
        Sets up the logging system. Log messages only go to a file, since standard output carries the JSON result and
        standard error the message shown to the user. If the log directory cannot be used, nothing is logged.

        :return: the logging helper for the CLI.
        """
        logger = logging.getLogger()
        logger.setLevel(LOG_LEVELS[self.args.log_level])

        log_folder = pathlib.Path(self.args.log_dir)
        log_file = datetime.now().strftime("MacReminders_%Y%m%d-%H%M%S") + '.log'
        try:
            log_folder.mkdir(parents=True, exist_ok=True)
            if not os.access(log_folder, os.W_OK | os.X_OK):
                raise PermissionError('Log directory {} is not writable'.format(log_folder))
            handler = logging.FileHandler(log_folder / log_file, encoding='utf-8')
        except OSError:
            logger.addHandler(logging.NullHandler())
            return logger
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s: %(message)s'))
        logger.addHandler(handler)
        return logger


def scan_locale(argv: List[str]) -> str:
    """
    Find the ``--locale`` value in raw arguments, for errors raised before the arguments are parsed.
    """
    for i, token in enumerate(argv):
        if token == '--locale' and i + 1 < len(argv):
            return argv[i + 1]
        if token.startswith('--locale='):
            return token.split('=', 1)[1]
    return settings.DEFAULT_LOCALE


def build_parser() -> ArgumentParser:
    """
    Defines arguments accepted by the CLI.
    """

    # Options accepted both before and after the command
    common = ArgumentParser(add_help=False)
    common.add_argument(
        "--locale",
        type=str,
        default=argparse.SUPPRESS,
        help="language of the messages: {}. Unknown languages fall back to en.".format('|'.join(LOCALES)))
    common.add_argument(
        "--log-level",
        type=str,
        choices=list(LOG_LEVELS.keys()),
        default=argparse.SUPPRESS,
        help="specify the logging level.")
    common.add_argument(
        "--log-dir",
        type=pathlib.Path,
        default=argparse.SUPPRESS,
        help="specify a custom directory to use for logging.")

    parser = ArgumentParser(
        prog="mac-reminders",
        description="View, add, edit, delete and complete Apple Reminders, with messages in en, ko, ja or zh.",
    )
    parser.add_argument("--locale", type=str, default=settings.DEFAULT_LOCALE, help=argparse.SUPPRESS)
    parser.add_argument("--log-level", type=str, choices=list(LOG_LEVELS.keys()), default=settings.LOG_LEVEL,
                        help=argparse.SUPPRESS)
    parser.add_argument("--log-dir", type=pathlib.Path, default=settings.LOG_DIR, help=argparse.SUPPRESS)
    commands = parser.add_subparsers(dest='command', metavar='command')

    list_parser = commands.add_parser('list', parents=[common], help="list incomplete reminders.")
    list_parser.add_argument(
        "--scope",
        type=str,
        default=None,
        help="today, week (default: from yesterday to a week from now) or all.")

    add_parser = commands.add_parser('add', parents=[common], help="add a reminder.")
    add_parser.add_argument("--title", type=str, default=None, help="title of the reminder (required).")
    edit_parser = commands.add_parser('edit', parents=[common], help="change a reminder.")
    edit_parser.add_argument("--id", type=str, default=None, help="id of the reminder (required).")
    edit_parser.add_argument("--title", type=str, default=None, help="new title of the reminder.")

    for p in [add_parser, edit_parser]:
        p.add_argument(
            "--due",
            type=str,
            default=None,
            help="due date as ISO-8601 with offset, e.g. 2026-02-05T09:00:00+09:00.")
        p.add_argument("--note", type=str, default=None, help="note of the reminder. An empty note clears it on edit.")
        p.add_argument("--repeat", type=str, choices=FREQUENCIES, default=None, help="repeat frequency.")
        p.add_argument("--interval", type=int, default=None, help="repeat every N periods (default: 1).")
        p.add_argument("--repeat-end", type=str, default=None, help="stop repeating on this date (YYYY-MM-DD).")

    for name, description in [('delete', "delete a reminder."), ('complete', "mark a reminder as completed.")]:
        p = commands.add_parser(name, parents=[common], help=description)
        p.add_argument("--id", type=str, default=None, help="id of the reminder (required).")

    commands.add_parser('help', help="show this message.")
    return parser


def main(argv: List[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()

    if len(argv) == 0 or argv[0] == 'help':
        parser.print_help()
        return 0

    try:
        args = parser.parse_args(argv)
    except ValidationError as e:
        bundle = get_bundle(load_locales(), scan_locale(argv))
        print('{0}: {1}'.format(bundle.message(e.event), e.message), file=sys.stderr)
        return 1

    if args.command is None or args.command == 'help':
        parser.print_help()
        return 0
    return MacRemindersCli(args).run()


if __name__ == "__main__":
    sys.exit(main())
