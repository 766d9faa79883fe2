import datetime
from datetime import timedelta, timezone
from subprocess import TimeoutExpired
from unittest import mock

import pytest
from decouple import config

from macreminders import helpers
from macreminders.errors import TransportError, BridgeTimeoutError, ValidationError
from macreminders.helpers import DateUtil, DueComponents
from macreminders.reminders.model import reminderscript

TEST_ENV = config('TEST_ENV', default='remote')

NOW = datetime.datetime(2026, 2, 5, 12, 0, 0, tzinfo=timezone.utc)


class TestHelpers:

    @staticmethod
    def __mock_process(stdout='', stderr='', returncode=0):
        process = mock.MagicMock()
        process.communicate.return_value = (stdout, stderr)
        process.returncode = returncode
        return process

    def test_run_applescript(self):
        process = TestHelpers.__mock_process(stdout='done\n')
        with mock.patch('macreminders.helpers.Popen', return_value=process) as popen:
            return_code, stdout, stderr = helpers.run_applescript('return "done"', 'a', 1)
        assert return_code == 0
        assert stdout == 'done\n'
        assert popen.call_args[0][0] == ['osascript', '-', 'a', '1']
        process.communicate.assert_called_once_with('return "done"')

    def test_run_applescript_missing(self):
        with mock.patch('macreminders.helpers.Popen', side_effect=FileNotFoundError('osascript')):
            with pytest.raises(TransportError):
                helpers.run_applescript('return 1')

    @pytest.mark.skipif(TEST_ENV != 'local', reason="Requires Mac system")
    def test_run_applescript_local(self):
        return_code, stdout, stderr = helpers.run_applescript(reminderscript.get_reminders_script)
        assert return_code == 0

    def test_run_bridge(self):
        process = TestHelpers.__mock_process(stdout='{"ok": true}\n', returncode=0)
        with mock.patch('macreminders.helpers.Popen', return_value=process) as popen:
            return_code, stdout, stderr = helpers.run_bridge(['python', '-m', 'bridge', 'list'], 5)
        assert return_code == 0
        assert stdout == '{"ok": true}\n'
        assert popen.call_args[0][0] == ['python', '-m', 'bridge', 'list']
        process.communicate.assert_called_once_with(timeout=5)

    def test_run_bridge_no_timeout(self):
        process = TestHelpers.__mock_process()
        with mock.patch('macreminders.helpers.Popen', return_value=process):
            helpers.run_bridge(['python'], 0)
        process.communicate.assert_called_once_with(timeout=None)

    def test_run_bridge_timeout(self):
        process = mock.MagicMock()
        process.communicate.side_effect = [TimeoutExpired('python', 5), ('', 'waiting for access')]
        with mock.patch('macreminders.helpers.Popen', return_value=process):
            with pytest.raises(BridgeTimeoutError) as e:
                helpers.run_bridge(['python'], 5)
        process.kill.assert_called_once()
        assert e.value.detail == 'waiting for access'
        assert isinstance(e.value, TransportError)

    def test_run_bridge_missing(self):
        with mock.patch('macreminders.helpers.Popen', side_effect=FileNotFoundError('python')):
            with pytest.raises(TransportError):
                helpers.run_bridge(['python'])

    def test_argument_parser(self):
        parser = helpers.ArgumentParser(prog='test')
        parser.add_argument('--interval', type=int)
        with pytest.raises(ValidationError):
            parser.parse_args(['--interval', 'two'])


class TestDateUtil:

    def test_parse_due(self, local_tz):
        local_tz('UTC0')
        result = DateUtil.parse_due('2026-02-05T09:00:00+09:00')
        assert result == datetime.datetime(2026, 2, 5, 0, 0, 0, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

        assert DateUtil.parse_due('2026-02-05T09:00:00Z') == datetime.datetime(2026, 2, 5, 9, 0, tzinfo=timezone.utc)
        assert DateUtil.parse_due('2026-02-05T09:00+09:00') == datetime.datetime(2026, 2, 5, 0, 0, tzinfo=timezone.utc)
        assert (DateUtil.parse_due('2026-02-05T09:00:00.500+09:00') ==
                datetime.datetime(2026, 2, 5, 0, 0, 0, 500000, tzinfo=timezone.utc))
        assert DateUtil.parse_due(None) is None
        assert DateUtil.parse_due('') is None

    def test_parse_due_without_offset_is_local(self, local_tz):
        local_tz('KST-9')
        result = DateUtil.parse_due('2026-02-05T09:00:00')
        assert DateUtil.to_components(result) == DueComponents(2026, 2, 5, 9, 0, 0)
        assert result.utcoffset() == timedelta(hours=9)

    def test_malformed_due_is_treated_as_absent(self):
        # Lenient on purpose: a bad date drops the due date instead of failing the command
        assert DateUtil.parse_due('next tuesday') is None
        assert DateUtil.parse_due('2026-13-01T09:00:00+09:00') is None
        assert DateUtil.parse_due('2026-02-05') is None

    def test_to_components_utc(self, local_tz):
        local_tz('UTC0')
        due = DateUtil.parse_due('2026-02-05T09:00:00+09:00')
        assert DateUtil.to_components(due) == DueComponents(2026, 2, 5, 0, 0, 0)

    def test_to_components_local_zone(self, local_tz):
        # Neither UTC nor the original +09:00: the wall-clock time of the process's zone
        local_tz('EST5EDT,M3.2.0,M11.1.0')
        due = DateUtil.parse_due('2026-02-05T09:00:00+09:00')
        assert DateUtil.to_components(due) == DueComponents(2026, 2, 4, 19, 0, 0)

    def test_components_to_string(self):
        assert DateUtil.components_to_string(DueComponents(2026, 2, 4, 19, 5, 0)) == '2026-02-04T19:05:00'

    def test_parse_end_date(self):
        assert DateUtil.parse_end_date('2026-06-30') == datetime.date(2026, 6, 30)
        assert DateUtil.parse_end_date(None) is None

    def test_malformed_end_date_is_treated_as_absent(self):
        assert DateUtil.parse_end_date('2026-06-30T00:00:00') is None
        assert DateUtil.parse_end_date('30/06/2026') is None

    def test_parse_local(self, local_tz):
        local_tz('KST-9')
        result = DateUtil.parse_local('2026-02-05T09:00:00')
        assert result.utcoffset() == timedelta(hours=9)
        assert DateUtil.to_iso(result) == '2026-02-05T09:00:00+09:00'
        assert DateUtil.parse_local('') is None
        assert DateUtil.parse_local('Thursday, 5 February 2026 at 09:00:00') is None

    def test_to_iso(self):
        assert DateUtil.to_iso(NOW) == '2026-02-05T12:00:00+00:00'
        assert DateUtil.to_iso(None) is None

    def test_in_scope_week(self):
        assert DateUtil.in_scope(NOW, 'week', NOW) is True
        assert DateUtil.in_scope(NOW + timedelta(days=7), 'week', NOW) is True
        assert DateUtil.in_scope(NOW + timedelta(days=7, seconds=1), 'week', NOW) is False
        assert DateUtil.in_scope(None, 'week', NOW) is False

    def test_in_scope_week_includes_one_day_lookback(self):
        # The week starts one day in the past, keeping reminders which have only just passed
        assert DateUtil.in_scope(NOW - timedelta(days=1), 'week', NOW) is True
        assert DateUtil.in_scope(NOW - timedelta(days=1, seconds=1), 'week', NOW) is False

    def test_in_scope_today(self, local_tz):
        local_tz('UTC0')
        start = NOW.replace(hour=0, minute=0, second=0)
        assert DateUtil.in_scope(start, 'today', NOW) is True
        assert DateUtil.in_scope(start + timedelta(hours=23, minutes=59), 'today', NOW) is True
        assert DateUtil.in_scope(start + timedelta(days=1), 'today', NOW) is False
        assert DateUtil.in_scope(start - timedelta(seconds=1), 'today', NOW) is False
        assert DateUtil.in_scope(None, 'today', NOW) is False

    def test_in_scope_all_and_unknown(self):
        assert DateUtil.in_scope(None, 'all', NOW) is True
        assert DateUtil.in_scope(NOW - timedelta(days=365), 'all', NOW) is True
        assert DateUtil.in_scope(None, 'fortnight', NOW) is True

    def test_in_scope_today_on_daylight_saving_change(self, local_tz):
        # Clocks go forward on 8 March 2026, so the day starts at -05:00 and ends at -04:00
        local_tz('EST5EDT,M3.2.0,M11.1.0')
        est = timezone(timedelta(hours=-5))
        edt = timezone(timedelta(hours=-4))
        now = datetime.datetime(2026, 3, 8, 12, 0, tzinfo=edt)
        assert DateUtil.in_scope(datetime.datetime(2026, 3, 8, 0, 0, tzinfo=est), 'today', now) is True
        assert DateUtil.in_scope(datetime.datetime(2026, 3, 7, 23, 30, tzinfo=est), 'today', now) is False
        assert DateUtil.in_scope(datetime.datetime(2026, 3, 8, 23, 59, tzinfo=edt), 'today', now) is True
        assert DateUtil.in_scope(datetime.datetime(2026, 3, 9, 0, 0, tzinfo=edt), 'today', now) is False
