import pytest

from shared.validators import parse_int_list


class TestParseIntList:
    def test_json_array_string(self):
        assert parse_int_list("[100, 50, 25]") == (100, 50, 25)

    def test_comma_separated_string(self):
        assert parse_int_list("100,50,25") == (100, 50, 25)

    def test_comma_separated_with_whitespace(self):
        assert parse_int_list(" 100 , 50 ,25 ") == (100, 50, 25)

    def test_passthrough_sequence(self):
        assert parse_int_list([3, 2, 1]) == (3, 2, 1)
        assert parse_int_list((3, 2, 1)) == (3, 2, 1)

    def test_comma_separated_skips_empty_segments(self):
        assert parse_int_list("100,,50,") == (100, 50)

    @pytest.mark.parametrize("value", ["", "   ", "[]", [], ",", ",,,,"])
    def test_empty_values_raise(self, value):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_int_list(value)

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="Invalid JSON array"):
            parse_int_list("[100, 50")

    @pytest.mark.parametrize("value", ["100,abc", '[100, "x"]', "[100, true]", [100, None], "1.5", "[100, 2.5]"])
    def test_non_integer_items_raise(self, value):
        with pytest.raises(ValueError, match="Not an integer"):
            parse_int_list(value)
