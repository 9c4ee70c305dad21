"""
Tests for share ids and schedule time conversion.
"""
import random
import string
from datetime import datetime, timezone
import pytest
from app.core.errors import ValidationError
from app.core.utils import (
    clean_text, ensure_utc, generate_share_id, local_to_utc, require_text, utc_to_local
)


def test_share_id_shape():
    """Every share id is 8 characters of [a-z0-9]."""
    allowed = set(string.ascii_lowercase + string.digits)
    for _ in range(500):
        share_id = generate_share_id()
        assert len(share_id) == 8
        assert set(share_id) <= allowed


def test_share_id_uses_given_random_source():
    """Seeded generators reproduce the same id."""
    assert generate_share_id(random.Random(42)) == generate_share_id(random.Random(42))


def test_local_to_utc_in_tokyo():
    """Wall-clock input is read in the given zone."""
    assert local_to_utc("2026-03-01T10:00", "Asia/Tokyo") == datetime(2026, 3, 1, 1, 0, tzinfo=timezone.utc)


def test_local_time_round_trip():
    """Converting back in the same zone restores the local date and hour."""
    instant = local_to_utc("2026-03-01T10:00", "Europe/Paris")
    local = utc_to_local(instant, "Europe/Paris")
    assert (local.date().isoformat(), local.hour, local.minute) == ("2026-03-01", 10, 0)


def test_local_to_utc_blank_means_unscheduled():
    """Empty schedule input stores no time."""
    assert local_to_utc("", "Asia/Tokyo") is None
    assert local_to_utc(None, "Asia/Tokyo") is None


def test_local_to_utc_dst_gap_uses_earlier_offset():
    """02:30 does not exist in New York on 2026-03-08; the pre-transition offset applies."""
    assert local_to_utc("2026-03-08T02:30", "America/New_York") == datetime(2026, 3, 8, 7, 30, tzinfo=timezone.utc)


def test_local_to_utc_rejects_bad_input():
    """Unparsable times and unknown zones are validation errors."""
    with pytest.raises(ValidationError):
        local_to_utc("next tuesday", "Asia/Tokyo")
    with pytest.raises(ValidationError):
        local_to_utc("2026-03-01T10:00", "Mars/Olympus_Mons")


def test_ensure_utc_marks_naive_values():
    """Naive datetimes from the database are taken as UTC."""
    assert ensure_utc(datetime(2026, 3, 1, 1, 0)).tzinfo == timezone.utc


def test_text_helpers():
    """Optional text is trimmed to None; required text must be present."""
    assert clean_text("  ") is None
    assert clean_text(" Booking.com ") == "Booking.com"
    assert require_text(" Taro ", "name") == "Taro"
    with pytest.raises(ValidationError):
        require_text("   ", "name")
