from datetime import date

import pytest

from app.utils.datetime_utils import format_form_date, parse_form_date
from app.utils.formatting import format_address, join_name, normalize_email, split_name


class TestNames:

    def test_join_omits_blank_parts(self):
        assert join_name("John", "Smith") == "John Smith"
        assert join_name("John", "") == "John"
        assert join_name("  ", "Smith") == "Smith"
        assert join_name("", "") == ""

    def test_split_first_token_is_first_name(self):
        assert split_name("John Paul Smith") == ("John", "Paul Smith")
        assert split_name("Cher") == ("Cher", "")
        assert split_name("") == ("", "")


class TestAddress:

    def test_components_in_order(self):
        assert format_address("12 Oak St", "Austin", "TX", "73301", "USA") == "12 Oak St, Austin, TX, 73301, USA"

    def test_blank_components_are_omitted(self):
        assert format_address("12 Oak St", "", "TX", None, "USA") == "12 Oak St, TX, USA"

    def test_all_blank_is_empty(self):
        assert format_address("", " ", None) == ""


def test_normalize_email():
    assert normalize_email("  Jane@Clinic.ORG ") == "jane@clinic.org"
    assert normalize_email("") is None
    assert normalize_email(None) is None


class TestFormDates:

    def test_blank_is_none(self):
        assert parse_form_date("") is None
        assert parse_form_date("   ") is None

    def test_iso_date_and_timestamp(self):
        assert parse_form_date("2026-01-15") == date(2026, 1, 15)
        assert parse_form_date("2026-01-15T10:30:00Z") == date(2026, 1, 15)

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_form_date("15/01/2026")

    def test_format(self):
        assert format_form_date(date(2026, 1, 5)) == "2026-01-05"
        assert format_form_date(None) == ""
