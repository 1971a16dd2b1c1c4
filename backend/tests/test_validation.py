import pytest
from datetime import datetime, timedelta, timezone

from backend.events_service.validation import (
    sanitize_text,
    parse_dt,
    one_year_after,
    validate_event_data,
    validate_event_update,
)

NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)
NEXT_WEEK = (NOW + timedelta(days=7)).isoformat()


@pytest.mark.parametrize("raw, expected", [
    ("  Board   games\tnight \n", "Board games night"),
    ("already clean", "already clean"),
    ("", ""),
    (None, ""),
    (42, ""),
])
def test_sanitize_text(raw, expected):
    assert sanitize_text(raw) == expected


@pytest.mark.parametrize("raw", ["  a  b   c ", "x\n\ny", "plain", "\t lead and trail \t"])
def test_sanitize_text_is_idempotent(raw):
    once = sanitize_text(raw)
    assert sanitize_text(once) == once


def test_parse_dt_accepts_z_suffix_and_naive_values():
    assert parse_dt("2026-03-17T15:00:00Z") == datetime(2026, 3, 17, 15, tzinfo=timezone.utc)
    assert parse_dt("2026-03-17T15:00:00") == datetime(2026, 3, 17, 15, tzinfo=timezone.utc)
    assert parse_dt("not a date") is None
    assert parse_dt("2026-02-30T10:00:00Z") is None
    assert parse_dt(20260317) is None


def test_one_year_after_handles_leap_day():
    leap = datetime(2028, 2, 29, 9, tzinfo=timezone.utc)
    assert one_year_after(leap) == datetime(2029, 2, 28, 9, tzinfo=timezone.utc)


def test_valid_event_is_sanitized():
    fields, errors = validate_event_data({
        "title": "  Spring   Meetup ",
        "description": " Talks  and\nsnacks ",
        "address": "  12 Main   St ",
        "date": NEXT_WEEK,
    }, NOW)

    assert errors == []
    assert fields["title"] == "Spring Meetup"
    assert fields["description"] == "Talks and snacks"
    assert fields["address"] == "12 Main St"
    assert fields["date"] == NOW + timedelta(days=7)


def test_short_title_mentions_minimum_length():
    fields, errors = validate_event_data({"title": " ab ", "date": NEXT_WEEK}, NOW)
    assert fields is None
    assert errors == ["Title must be at least 3 characters long"]


def test_long_fields_are_rejected():
    fields, errors = validate_event_data({
        "title": "t" * 101,
        "description": "d" * 501,
        "address": "a" * 201,
        "date": NEXT_WEEK,
    }, NOW)
    assert fields is None
    assert errors == [
        "Title must not exceed 100 characters",
        "Description must not exceed 500 characters",
        "Address must not exceed 200 characters",
    ]


def test_non_string_optional_fields_are_rejected():
    _, errors = validate_event_data({
        "title": "Valid title",
        "description": 12,
        "address": ["x"],
        "image": 5,
        "date": NEXT_WEEK,
    }, NOW)
    assert errors == [
        "Description must be a string",
        "Address must be a string",
        "Image must be a string",
    ]


def test_missing_title_and_date_report_every_error():
    fields, errors = validate_event_data({}, NOW)
    assert fields is None
    assert errors == ["Title is required and must be a string", "Date is required"]


@pytest.mark.parametrize("date, message", [
    (NOW.isoformat(), "Event date must be in the future"),
    ((NOW - timedelta(days=1)).isoformat(), "Event date must be in the future"),
    ((NOW + timedelta(days=400)).isoformat(), "Event date cannot be more than 1 year in the future"),
    ("yesterday", "Please provide a valid date in ISO format (e.g., 2024-12-25T15:00:00Z)"),
])
def test_date_rules_on_create(date, message):
    _, errors = validate_event_data({"title": "Valid title", "date": date}, NOW)
    assert message in errors


def test_year_range_is_checked():
    _, errors = validate_event_data({"title": "Valid title", "date": "1899-06-01T00:00:00Z"}, NOW)
    assert "Event date must be between years 1900 and 2100" in errors
    assert "Event date must be in the future" in errors


def test_update_only_returns_present_fields():
    fields, errors = validate_event_update({"title": "  New   name  "}, NOW)
    assert errors == []
    assert fields == {"title": "New name"}


def test_update_with_null_fields_leaves_them_out():
    fields, errors = validate_event_update({"description": None, "address": None}, NOW)
    assert errors == []
    assert fields == {}


def test_update_only_rechecks_future_date():
    # more than a year ahead is fine on update
    far = (NOW + timedelta(days=500)).isoformat()
    fields, errors = validate_event_update({"date": far}, NOW)
    assert errors == []
    assert fields["date"] == NOW + timedelta(days=500)

    _, errors = validate_event_update({"date": (NOW - timedelta(hours=1)).isoformat()}, NOW)
    assert errors == ["Event date must be in the future"]


def test_update_rejects_bad_title():
    _, errors = validate_event_update({"title": "ab"}, NOW)
    assert errors == ["Title must be at least 3 characters long"]
