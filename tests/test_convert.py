"""Tests for the primitive converters."""
import pytest

from psm_reconciler.engine.convert import (
    ConversionError,
    get_block,
    get_blocks,
    get_bool,
    get_optional_str,
    get_str,
    get_str_list,
    non_empty,
    omit_none,
    string_list,
    string_set,
)


class TestStringList:
    """Tests for string_list and string_set."""

    def test_none_is_empty(self):
        """A missing list converts to an empty list."""
        assert string_list(None) == []

    def test_keeps_order(self):
        """Items come back in input order."""
        assert string_list(("b", "a"), "apps") == ["b", "a"]

    def test_rejects_plain_string(self):
        """A bare string is not a list of strings."""
        with pytest.raises(ConversionError, match="apps: expected a list of strings, got str"):
            string_list("SSH", "apps")

    def test_rejects_non_string_item(self):
        """Items are not stringified; the offending index is named."""
        with pytest.raises(ConversionError, match=r"apps\[1\]: expected a string, got int"):
            string_list(["SSH", 22], "apps")

    def test_string_set_dedupes_in_order(self):
        """Duplicates are dropped, first occurrence wins."""
        assert string_set(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


class TestScalarAccessors:
    """Tests for get_str, get_optional_str and get_bool."""

    def test_get_str_default(self):
        assert get_str({}, "name") == ""
        assert get_str({}, "name", "fallback") == "fallback"

    def test_get_str_accepts_numbers(self):
        """YAML writes unquoted numbers; they are accepted as strings."""
        assert get_str({"rekey_lifetime": 3600}, "rekey_lifetime") == "3600"
        assert get_str({"ratio": 1.5}, "ratio") == "1.5"

    def test_get_str_rejects_bool(self):
        """Booleans are not silently turned into 'True'."""
        with pytest.raises(ConversionError, match="rule.name: expected a string, got bool"):
            get_str({"name": True}, "name", path="rule")

    def test_get_str_rejects_list(self):
        with pytest.raises(ConversionError):
            get_str({"name": ["a"]}, "name")

    def test_get_optional_str(self):
        """Empty and missing strings both become None."""
        assert get_optional_str({}, "ports") is None
        assert get_optional_str({"ports": ""}, "ports") is None
        assert get_optional_str({"ports": 22}, "ports") == "22"

    def test_get_bool(self):
        assert get_bool({}, "disable") is False
        assert get_bool({}, "ike_initiator", True) is True
        assert get_bool({"disable": True}, "disable") is True

    def test_get_bool_rejects_string(self):
        """'yes' is not coerced to a boolean."""
        with pytest.raises(ConversionError, match="disable: expected a boolean, got str"):
            get_bool({"disable": "yes"}, "disable")

    def test_get_str_list(self):
        assert get_str_list({"apps": ["SSH"]}, "apps") == ["SSH"]
        assert get_str_list({}, "apps") == []


class TestBlocks:
    """Tests for singleton and list blocks."""

    def test_missing_block(self):
        """Absent and empty-list blocks are not declared."""
        assert get_block({}, "ike_sa") is None
        assert get_block({"ike_sa": []}, "ike_sa") is None

    def test_mapping_block(self):
        assert get_block({"ike_sa": {"dpd_delay": "30s"}}, "ike_sa") == {"dpd_delay": "30s"}

    def test_single_item_list(self):
        """A one-item list is unwrapped."""
        assert get_block({"ike_sa": [{"dpd_delay": "30s"}]}, "ike_sa") == {"dpd_delay": "30s"}

    def test_declared_empty_block(self):
        """A list holding one null item is a declared but empty block."""
        assert get_block({"translated_source": [None]}, "translated_source") == {}
        assert get_block({"translated_source": [{}]}, "translated_source") == {}

    def test_rejects_more_than_one(self):
        """Extra blocks are an error rather than being truncated."""
        with pytest.raises(ConversionError, match="ep.ike_sa: expected at most one block, got 2"):
            get_block({"ike_sa": [{}, {}]}, "ike_sa", "ep")

    def test_rejects_scalar(self):
        with pytest.raises(ConversionError, match="expected a mapping, got str"):
            get_block({"ike_sa": "psk"}, "ike_sa")

    def test_get_blocks(self):
        assert get_blocks({"rules": [{"name": "a"}, {"name": "b"}]}, "rules") == [
            {"name": "a"}, {"name": "b"}
        ]
        assert get_blocks({}, "rules") == []

    def test_get_blocks_rejects_mapping(self):
        with pytest.raises(ConversionError, match="rules: expected a list, got dict"):
            get_blocks({"rules": {"name": "a"}}, "rules")

    def test_get_blocks_rejects_non_mapping_item(self):
        with pytest.raises(ConversionError, match=r"rules\[1\]: expected a mapping"):
            get_blocks({"rules": [{}, "b"]}, "rules")


class TestHelpers:
    def test_non_empty(self):
        assert non_empty("") is None
        assert non_empty(None) is None
        assert non_empty("x") == "x"

    def test_omit_none(self):
        assert omit_none({"a": 1, "b": None, "c": ""}) == {"a": 1, "c": ""}
