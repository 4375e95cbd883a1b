"""Tests for the bookable slot catalog."""

from datetime import time

import pytest

from app.core.slots import allowed_slots, format_slot, normalize_time, parse_slot


def test_allowed_slots_are_nine_hourly_marks() -> None:
    """The catalog runs from 08:00 to 16:00 inclusive, ascending."""
    slots = allowed_slots()

    assert len(slots) == 9
    assert slots[0] == time(8)
    assert slots[-1] == time(16)
    assert slots == sorted(slots)
    assert all(slot.minute == 0 and slot.second == 0 for slot in slots)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("09:00", time(9)),
        ("09:00:00", time(9)),
        ("17:00:00", time(17)),
        (" 10:30 ", time(10, 30)),
    ],
)
def test_normalize_time_accepts_padded_times(raw: str, expected: time) -> None:
    """HH:MM gains zero seconds and HH:MM:SS is taken as is."""
    assert normalize_time(raw) == expected


@pytest.mark.parametrize("raw", ["9:00", "0900", "09", "25:00", "09:61", "", None, 9])
def test_normalize_time_rejects_other_shapes(raw: object) -> None:
    """Unpadded, malformed and out-of-range inputs are invalid."""
    assert normalize_time(raw) is None


def test_parse_slot_rejects_times_outside_catalog() -> None:
    """A well-formed time still has to be one of the slots."""
    with pytest.raises(ValueError, match="between 08:00 and 16:00"):
        parse_slot("17:00:00")

    with pytest.raises(ValueError, match="between 08:00 and 16:00"):
        parse_slot("10:30")


def test_parse_slot_rejects_malformed_time() -> None:
    """Malformed input is reported as a format problem."""
    with pytest.raises(ValueError, match="HH:MM"):
        parse_slot("9:00")


def test_format_slot_drops_seconds() -> None:
    """Display form is HH:MM."""
    assert format_slot(time(8)) == "08:00"
    assert format_slot(parse_slot("16:00:00")) == "16:00"
