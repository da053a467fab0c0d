from datetime import datetime, timezone

import pytest

from proace.exceptions import ValidationError
from proace.utils.timeframes import TIMEFRAMES, timeframe_start

NOW = datetime(2024, 3, 31, 15, 30)


class TestTimeframeStart:
    def test_all_time_has_no_start(self):
        assert timeframe_start("all-time", now=NOW) is None

    def test_today_starts_at_midnight(self):
        assert timeframe_start("today", now=NOW) == datetime(2024, 3, 31)

    def test_this_week_is_last_seven_days(self):
        assert timeframe_start("this-week", now=NOW) == datetime(2024, 3, 24, 15, 30)

    def test_this_month_clamps_to_month_end(self):
        # No February 31st; falls back to the last day of February
        assert timeframe_start("this-month", now=NOW) == datetime(2024, 2, 29, 15, 30)

    def test_this_month_across_year_boundary(self):
        now = datetime(2024, 1, 15)
        assert timeframe_start("this-month", now=now) == datetime(2023, 12, 15)

    def test_this_year_is_twelve_months_back(self):
        assert timeframe_start("this-year", now=NOW) == datetime(2023, 3, 31, 15, 30)

    def test_aware_reference_is_normalised_to_naive_utc(self):
        now = datetime(2024, 3, 31, 15, 30, tzinfo=timezone.utc)
        start = timeframe_start("today", now=now)
        assert start == datetime(2024, 3, 31)
        assert start.tzinfo is None

    @pytest.mark.parametrize("timeframe", ["", "weekly", "ALL-TIME", None])
    def test_unknown_timeframe(self, timeframe):
        with pytest.raises(ValidationError):
            timeframe_start(timeframe)

    def test_every_timeframe_is_accepted(self):
        for timeframe in TIMEFRAMES:
            timeframe_start(timeframe, now=NOW)
