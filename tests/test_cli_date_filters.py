"""Tests for CLI date range resolution."""

import click
import pytest
from datetime import date

from ledgerbook.cli.date_filters import resolve_cli_date_range
from ledgerbook.utils.date_parser import get_date_range

_NO_PERIOD = {"this_week": False, "this_month": False, "last_month": False}


@pytest.fixture
def ctx():
    return click.Context(click.Command("test"))


def test_explicit_dates(ctx):
    start, end = resolve_cli_date_range(
        ctx, start_date="2024-01-01", end_date="2024-01-31", period_flags=_NO_PERIOD
    )
    assert (start, end) == (date(2024, 1, 1), date(2024, 1, 31))


def test_no_bounds(ctx):
    assert resolve_cli_date_range(
        ctx, start_date=None, end_date=None, period_flags=_NO_PERIOD
    ) == (None, None)


def test_period_flag(ctx):
    flags = dict(_NO_PERIOD, last_month=True)
    assert resolve_cli_date_range(
        ctx, start_date=None, end_date=None, period_flags=flags
    ) == get_date_range("last-month")


def test_period_with_explicit_date_exits(ctx):
    flags = dict(_NO_PERIOD, this_week=True)
    with pytest.raises(click.exceptions.Exit):
        resolve_cli_date_range(ctx, start_date="2024-01-01", end_date=None, period_flags=flags)


def test_bad_start_date_exits(ctx):
    with pytest.raises(click.exceptions.Exit):
        resolve_cli_date_range(ctx, start_date="whenever", end_date=None, period_flags=_NO_PERIOD)
