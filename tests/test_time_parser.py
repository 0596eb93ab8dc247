# eventbot - Discord Event Scheduler
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""Tests for event date/time parsing."""

import sys
from datetime import date, datetime, time
from pathlib import Path

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from events.time_parser import (
    EventTimeError,
    combine_event_datetime,
    ensure_future,
    parse_date,
    parse_event_datetime,
    parse_time,
    validate_timezone,
)


class TestStrictFormats:
    """Test the documented YYYY-MM-DD / HH:MM formats."""

    def test_parse_date(self):
        assert parse_date("2030-07-04") == date(2030, 7, 4)

    def test_parse_time(self):
        assert parse_time("13:45") == time(13, 45)

    def test_parse_time_strips_whitespace(self):
        assert parse_time("  09:05 ") == time(9, 5)

    def test_event_datetime_is_localized(self):
        result = parse_event_datetime("2030-07-04", "13:45", "America/New_York")

        assert result.tzinfo is not None
        assert result.replace(tzinfo=None) == datetime(2030, 7, 4, 13, 45)
        assert result.utcoffset().total_seconds() == -4 * 3600

    def test_event_datetime_winter_offset(self):
        result = parse_event_datetime("2030-01-04", "13:45", "America/New_York")
        assert result.utcoffset().total_seconds() == -5 * 3600

    def test_invalid_timezone_falls_back_to_utc(self):
        result = parse_event_datetime("2030-07-04", "13:45", "Not/AZone")
        assert result.utcoffset().total_seconds() == 0


class TestInvalidInput:
    """Test rejection of unusable input."""

    def test_garbage_date(self):
        with pytest.raises(EventTimeError):
            parse_event_datetime("banana", "13:45")

    def test_garbage_time(self):
        with pytest.raises(EventTimeError):
            parse_event_datetime("2030-07-04", "banana")

    @pytest.mark.parametrize("date_str,time_str", [("", "13:45"), ("2030-07-04", ""), ("  ", "13:45")])
    def test_empty_parts(self, date_str, time_str):
        with pytest.raises(EventTimeError):
            parse_event_datetime(date_str, time_str)

    def test_error_is_a_value_error(self):
        assert issubclass(EventTimeError, ValueError)


class TestCombine:
    """Test partial updates of an existing event time."""

    def setup_method(self):
        self.existing = pytz.UTC.localize(datetime(2030, 5, 10, 15, 30))

    def test_time_only_keeps_date(self):
        result = combine_event_datetime(self.existing, time_str="18:00", timezone="UTC")
        assert result == pytz.UTC.localize(datetime(2030, 5, 10, 18, 0))

    def test_date_only_keeps_time(self):
        result = combine_event_datetime(self.existing, date_str="2030-06-01", timezone="UTC")
        assert result == pytz.UTC.localize(datetime(2030, 6, 1, 15, 30))

    def test_both_parts(self):
        result = combine_event_datetime(
            self.existing, date_str="2030-06-01", time_str="07:15", timezone="UTC"
        )
        assert result == pytz.UTC.localize(datetime(2030, 6, 1, 7, 15))

    def test_keeps_wall_clock_in_target_zone(self):
        la = pytz.timezone("America/Los_Angeles")
        existing = la.localize(datetime(2030, 1, 10, 9, 0))

        # Moving the date across DST keeps 9:00 local
        result = combine_event_datetime(existing, date_str="2030-07-10", timezone="America/Los_Angeles")

        assert result.replace(tzinfo=None) == datetime(2030, 7, 10, 9, 0)
        assert result.utcoffset().total_seconds() == -7 * 3600


class TestEnsureFuture:
    """Test rejection of past event times."""

    def setup_method(self):
        self.now = pytz.UTC.localize(datetime(2030, 1, 1, 12, 0))

    def test_future_passes_through(self):
        value = pytz.UTC.localize(datetime(2030, 1, 1, 12, 1))
        assert ensure_future(value, self.now) is value

    def test_now_is_rejected(self):
        with pytest.raises(EventTimeError):
            ensure_future(self.now, self.now)

    def test_past_is_rejected(self):
        with pytest.raises(EventTimeError, match="in the past"):
            ensure_future(pytz.UTC.localize(datetime(2029, 12, 31)), self.now)

    def test_defaults_to_current_time(self):
        with pytest.raises(EventTimeError):
            ensure_future(pytz.UTC.localize(datetime(2000, 1, 1)))


class TestValidateTimezone:
    """Test timezone validation."""

    def test_valid_timezones(self):
        assert validate_timezone("UTC") is True
        assert validate_timezone("America/Los_Angeles") is True
        assert validate_timezone("Europe/London") is True

    def test_invalid_timezones(self):
        assert validate_timezone("Invalid/Timezone") is False
        assert validate_timezone("PST") is False
