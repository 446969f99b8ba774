import pytest

from shared.validators import parse_string_list


class TestParseStringList:
    def test_json_array_string(self):
        assert parse_string_list('["http://a.com","http://b.com"]') == ["http://a.com", "http://b.com"]

    def test_comma_separated_string(self):
        assert parse_string_list("name, city ,animal") == ["name", "city", "animal"]

    def test_passthrough_list(self):
        assert parse_string_list(["name", "city"]) == ["name", "city"]

    def test_tuple_accepted(self):
        assert parse_string_list(("name", "city")) == ["name", "city"]

    def test_non_ascii_items(self):
        assert parse_string_list("اسم,فامیل,شهر") == ["اسم", "فامیل", "شهر"]

    def test_comma_separated_skips_empty_segments(self):
        assert parse_string_list("a,,b,") == ["a", "b"]

    def test_empty_string_raises(self):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_string_list("")

    def test_comma_only_raises(self):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_string_list(",,,")

    def test_empty_list_allowed_when_requested(self):
        assert parse_string_list([], allow_empty=True) == []

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="Invalid JSON array"):
            parse_string_list("[not valid json")

    def test_json_mixed_types_raises(self):
        with pytest.raises(ValueError, match="must be strings"):
            parse_string_list('["a", 123]')
