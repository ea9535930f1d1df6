"""Parsing of single CIF values and semicolon-delimited text fields."""

import math
import re
from collections import namedtuple

from .errors import CIFSyntaxError


ValueSU = namedtuple("ValueSU", ["value", "su"])

RE_VALUE_SU = re.compile(r"^([+-]?)(\d+\.?\d*|\.\d+)\((\d+)\)")
RE_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
RE_ESCAPE = re.compile(r"\\([^\\])")


def unescape(string):
    """Drop the backslash from every escaped character."""
    return RE_ESCAPE.sub(r"\1", string)


def is_quoted(string):
    return len(string) >= 2 and string[0] == string[-1] and string[0] in "'\""


def parse_value(entry, split_su=True):
    """Parse a CIF value string into its value and standard uncertainty.

    Numbers written as ``value(su)`` are split into both parts when
    `split_su` is set. The uncertainty refers to the last shown decimal,
    so ``123.456(7)`` gives an su of 0.007 while ``-123(7)`` gives 7.

    Args:
        entry (str): Raw token as it appears in the CIF.
        split_su (bool): Split off standard uncertainties.

    Returns:
        ValueSU: (value, su) where value is an int, float or str and su is
            NaN if no uncertainty was split off.
    """
    entry = str(entry)
    match = RE_VALUE_SU.match(entry)
    if split_su and match:
        sign, number, su_digits = match.groups()
        sign_mult = -1 if sign == "-" else 1
        if "." in number:
            decimals = len(number.split(".")[1])
            value = round(sign_mult * float(number), decimals)
            su = round(int(su_digits) * 10.0**-decimals, decimals)
        else:
            value = sign_mult * int(number)
            su = int(su_digits)
        return ValueSU(value, su)

    if RE_NUMBER.match(entry):
        if "." in entry or "e" in entry.lower():
            value = float(entry)
        else:
            value = int(entry)
    elif is_quoted(entry):
        value = unescape(entry[1:-1])
    else:
        value = unescape(entry)
    return ValueSU(value, math.nan)


def has_su(su):
    """True if `su` carries an actual uncertainty instead of the NaN marker."""
    return not (isinstance(su, float) and math.isnan(su))


def parse_multiline_string(lines, start_index):
    """Parse a semicolon-delimited text field.

    The field opens with the line at `start_index` (starting with ``;``)
    and runs up to the next line starting with ``;``. Text following the
    opening semicolon belongs to the value.

    Returns:
        tuple[str, int]: The stripped, unescaped value and the index of the
            closing line.
    """
    content = [lines[start_index][1:]]
    for index in range(start_index + 1, len(lines)):
        if lines[index].startswith(";"):
            value = "\n".join(content).strip()
            return unescape(value), index
        content.append(lines[index])
    raise CIFSyntaxError(
        start_index, f"unterminated multiline string: {lines[start_index]}"
    )
