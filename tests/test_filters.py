import datetime as dt
from zoneinfo import ZoneInfo

import pytest

from themepreview.rendering import filters
from themepreview.rendering.filters import (
    FILE_PLACEHOLDER_URL,
    IMAGE_PLACEHOLDER_URL,
    attachment_url,
    format_datetime,
    group_by,
    organization_time,
    to_json,
)

MOMENT = dt.datetime(2024, 3, 5, 14, 7, 9)


@pytest.mark.parametrize(
    "fmt, expected",
    [
        ("%Y-%m-%d %H:%M:%S", "2024-03-05 14:07:09"),
        ("%B %e, %Y %l:%M %p", "March 5, 2024 2:07 PM"),
        ("%a %b %d %I%P", "Tue Mar 05 02PM"),
        ("%c", "Tuesday, March 5, 2024 2:07:09 PM"),
        ("100%% %Q", "100% %Q"),
    ],
)
def test_format_datetime(fmt, expected):
    assert format_datetime(MOMENT, fmt) == expected


def test_organization_time_converts_utc_to_zone():
    tz = ZoneInfo("America/New_York")

    assert organization_time("2024-01-15T15:30:00Z", "%Y-%m-%d %H:%M", tz=tz) == "2024-01-15 10:30"
    # Naive input is read as UTC.
    assert organization_time("2024-07-01 12:00:00", "%H:%M", tz=tz) == "08:00"


def test_organization_time_without_format_returns_local_datetime():
    local = organization_time("2024-01-01T00:00:00Z", tz=ZoneInfo("Asia/Tokyo"))

    assert (local.hour, local.utcoffset()) == (9, dt.timedelta(hours=9))


def test_organization_time_unparseable_is_none():
    assert organization_time("not a date", "%Y", tz=dt.timezone.utc) is None
    assert organization_time(None, tz=dt.timezone.utc) is None


def test_group_by_keeps_first_encounter_order():
    items = [{"Cat": "a", "n": 1}, {"Cat": "b", "n": 2}, {"Cat": "a", "n": 3}]

    assert group_by(items, "Cat") == [
        {"key": "a", "items": [items[0], items[2]]},
        {"key": "b", "items": [items[1]]},
    ]


def test_group_by_nested_path_and_missing_key():
    items = [{"Author": {"Name": "Ada"}}, {"Title": "orphan"}]

    groups = group_by(items, "Author.Name")

    assert [group["key"] for group in groups] == ["Ada", ""]


def test_group_by_ignores_non_sequences():
    assert group_by(None, "x") == []


def test_json_filter_is_indented():
    assert to_json({"a": [1, "é"]}) == '{\n  "a": [\n    1,\n    "é"\n  ]\n}'


@pytest.mark.parametrize(
    "name, expected",
    [
        ("photo.JPG", IMAGE_PLACEHOLDER_URL),
        ("banner.webp?v=2", IMAGE_PLACEHOLDER_URL),
        ("report.pdf", FILE_PLACEHOLDER_URL),
        ("", ""),
        (None, ""),
    ],
)
def test_attachment_url_placeholders(name, expected):
    assert attachment_url(name) == expected


def test_arithmetic_filters():
    assert filters.divided_by(7, 2) == 3
    assert filters.divided_by(7.0, 2) == 3.5
    assert filters.plus("2", 3) == 5
    assert filters.times(1.5, 2) == 3.0


def test_string_filters():
    assert filters.split("a,b", ",") == ["a", "b"]
    assert filters.strip_html("<p>Hi <b>there</b></p>") == "Hi there"
    assert filters.newline_to_br("a\nb") == "a<br />\nb"
    assert filters.url_encode("a b&c") == "a+b%26c"


def test_where_filter():
    items = [{"Featured": True, "T": 1}, {"Featured": False, "T": 2}, {"T": 3}]

    assert filters.where(items, "Featured") == [items[0]]
    assert filters.where(items, "T", 2) == [items[1]]
