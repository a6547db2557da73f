"""Employee reference validation tests."""

import pytest

from payroll.identifiers import is_valid_identifier, new_identifier, reference_text


class TestIsValidIdentifier:
    """Only 24-character hexadecimal strings are identifiers."""

    @pytest.mark.parametrize("value", [
        "507f1f77bcf86cd799439011",
        "000000000000000000000000",
        "ABCDEFabcdef0123456789ab",
    ])
    def test_accepts_hex_ids(self, value):
        assert is_valid_identifier(value) is True

    @pytest.mark.parametrize("value", [
        "teacher-5",
        "Sita Sharma",
        "",
        "507f1f77bcf86cd79943901",     # 23 chars
        "507f1f77bcf86cd7994390111",   # 25 chars
        "507f1f77bcf86cd79943901g",    # non-hex
        "507f1f77bcf86cd79943901\n",
        " 507f1f77bcf86cd79943901",
    ])
    def test_rejects_malformed_strings(self, value):
        assert is_valid_identifier(value) is False

    @pytest.mark.parametrize("value", [None, 12345, 5.0, b"507f1f77bcf86cd799439011", ["507f1f77bcf86cd799439011"]])
    def test_rejects_non_strings(self, value):
        assert is_valid_identifier(value) is False


class TestReferenceText:
    def test_none_stays_none(self):
        assert reference_text(None) is None

    def test_strings_pass_through(self):
        assert reference_text("teacher-5") == "teacher-5"

    def test_other_types_use_string_form(self):
        class NativeId:
            def __str__(self):
                return "507f1f77bcf86cd799439011"

        assert is_valid_identifier(reference_text(NativeId()))
        assert reference_text(42) == "42"


class TestNewIdentifier:
    def test_minted_ids_are_valid(self):
        for _ in range(50):
            assert is_valid_identifier(new_identifier())

    def test_minted_ids_are_unique(self):
        ids = {new_identifier() for _ in range(200)}
        assert len(ids) == 200
