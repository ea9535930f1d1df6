import math
import unittest

import pytest

from cifxtal.cif import CIFSyntaxError
from cifxtal.cif.values import parse_multiline_string, parse_value


class TestParseValue(unittest.TestCase):

    def test_value_with_su(self):
        value, su = parse_value("123.456(7)")
        assert value == pytest.approx(123.456)
        assert su == pytest.approx(0.007)

    def test_integer_with_su(self):
        assert parse_value("-123(7)") == (-123, 7)

    def test_su_keeps_sign_and_precision(self):
        value, su = parse_value("-0.0123(15)")
        assert value == pytest.approx(-0.0123)
        assert su == pytest.approx(0.0015)
        value, su = parse_value("+.5(1)")
        assert value == pytest.approx(0.5)
        assert su == pytest.approx(0.1)

    def test_no_split(self):
        value, su = parse_value("1.5(2)", split_su=False)
        assert value == "1.5(2)"
        assert math.isnan(su)

    def test_numbers(self):
        value, su = parse_value("42")
        assert value == 42 and isinstance(value, int)
        assert math.isnan(su)
        value, _ = parse_value("4.2")
        assert isinstance(value, float)
        assert value == pytest.approx(4.2)
        value, _ = parse_value("1e-3")
        assert value == pytest.approx(0.001)

    def test_quoted_strings(self):
        assert parse_value("'P 21/c'").value == "P 21/c"
        assert parse_value('"text"').value == "text"
        assert parse_value("'0.5'").value == "0.5"

    def test_unescape(self):
        assert parse_value(r"'it\'s'").value == "it's"
        assert parse_value(r"a\_b").value == "a_b"

    def test_plain_strings(self):
        assert parse_value("x,y,z").value == "x,y,z"
        assert parse_value("?").value == "?"
        assert parse_value(".").value == "."


class TestMultilineString(unittest.TestCase):

    def test_parse(self):
        lines = ["_tag", ";", "  first line", "second line", ";", "_next 1"]
        value, end_index = parse_multiline_string(lines, 1)
        assert value == "first line\nsecond line"
        assert end_index == 4

    def test_text_on_opening_line(self):
        lines = [";text", ";"]
        assert parse_multiline_string(lines, 0) == ("text", 1)

    def test_unterminated(self):
        with pytest.raises(CIFSyntaxError):
            parse_multiline_string([";", "never closed"], 0)
