"""Reading CIF documents into lazily parsed data blocks."""

import logging
import math
import re

from .cifloop import NOT_SET, CifLoop, resolve_loop_naming_conflict
from .errors import CIFLoopError, CIFLookupError, CIFSyntaxError
from .values import ValueSU, has_su, parse_multiline_string, parse_value


logger = logging.getLogger(__name__)

RE_BLOCK_START = re.compile(r"\ndata_", re.IGNORECASE)
RE_MULTILINE_MARKER = re.compile(r"^[ \t]*;", re.MULTILINE)


def strip_comment(line):
    """Remove a trailing comment; a # inside a quoted value is kept."""
    quote = None
    for i, char in enumerate(line):
        token_start = i == 0 or line[i - 1].isspace()
        if quote is not None:
            if char == quote and (i + 1 == len(line) or line[i + 1].isspace()):
                quote = None
        elif char in "'\"" and token_start:
            quote = char
        elif char == "#" and token_start:
            return line[:i]
    return line


class CIF:
    """A CIF document as an ordered list of data blocks.

    Example:
        >>> cif = CIF(text)
        >>> block = cif.get_block(0)
        >>> block.get(["_cell_length_a", "_cell.length_a"])
    """

    def __init__(self, cif_string, split_su=True):
        self.split_su = split_su
        self.raw_text = cif_string.replace("\r\n", "\n").replace("\r", "\n")
        self.blocks = self.split_blocks(self.raw_text, split_su)

    def __len__(self):
        return len(self.blocks)

    def __iter__(self):
        return iter(self.blocks)

    @staticmethod
    def split_blocks(text, split_su=True):
        """Split the document on data_ lines.

        A candidate block with an odd number of semicolon lines has a text
        field that swallowed the following data_ line, so the next candidate
        is joined onto it.
        """
        candidates = RE_BLOCK_START.split("\n" + text)[1:]
        blocks = []
        i = 0
        while i < len(candidates):
            block_text = candidates[i]
            while (
                len(RE_MULTILINE_MARKER.findall(block_text)) % 2 == 1
                and i + 1 < len(candidates)
            ):
                i += 1
                block_text += "\ndata_" + candidates[i]
            blocks.append(CifBlock(block_text, split_su))
            i += 1
        return blocks

    def get_block(self, index=0):
        try:
            return self.blocks[index]
        except IndexError:
            raise CIFLookupError(
                f"Block index {index} requested, but the CIF contains "
                f"{len(self.blocks)} block(s)"
            )

    def get_block_by_name(self, name):
        for block in self.blocks:
            if block.data_block_name == name:
                return block
        raise CIFLookupError(f"No data block named {name} in CIF")

    def get_all_blocks(self):
        return list(self.blocks)


class CifBlock:
    """One data_ block of a CIF.

    The first line of `block_text` is the block name (without ``data_``).
    The remaining lines are only parsed once a value is requested.
    """

    def __init__(self, block_text, split_su=True):
        lines = block_text.split("\n")
        self.data_block_name = lines[0].strip()
        self.split_su = split_su
        self._raw_lines = lines[1:]
        self._data = None

    def __repr__(self):
        return f"CifBlock({self.data_block_name!r})"

    @property
    def parsed(self):
        return self._data is not None

    def _content_lines(self):
        """Return (line number, line) pairs without comments and blank lines.

        Lines inside semicolon text fields are passed on untouched.
        """
        content = []
        in_multiline = False
        for line_num, line in enumerate(self._raw_lines, start=2):
            if line.startswith(";"):
                in_multiline = not in_multiline
                content.append((line_num, line.rstrip()))
            elif in_multiline:
                content.append((line_num, line.rstrip()))
            else:
                line = strip_comment(line).rstrip()
                if line.strip():
                    content.append((line_num, line))
        return content

    def parse(self):
        """Parse all tags, values and loops of the block."""
        if self._data is not None:
            return

        content = self._content_lines()
        line_nums = [entry[0] for entry in content]
        lines = [entry[1] for entry in content]
        data = {}

        i = 0
        while i < len(lines):
            stripped = lines[i].strip()
            next_line = lines[i + 1] if i + 1 < len(lines) else None

            if next_line is not None and next_line.startswith(";"):
                if not stripped.startswith("_") or len(stripped.split()) != 1:
                    raise CIFSyntaxError(
                        line_nums[i], f"text field does not follow a tag: {stripped}"
                    )
                value, end_index = parse_multiline_string(lines, i + 1)
                self._store_value(data, stripped, ValueSU(value, math.nan))
                i = end_index + 1
            elif stripped.lower().startswith("loop_"):
                loop = CifLoop(lines[i:], self.split_su)
                self._store_loop(data, loop)
                i += loop.get_end_index()
            elif stripped.startswith("_"):
                parts = stripped.split(None, 1)
                if len(parts) == 2:
                    self._store_value(
                        data, parts[0], parse_value(parts[1].strip(), self.split_su)
                    )
                    i += 1
                elif next_line is not None and not next_line.strip().startswith(
                    ("_", "loop_")
                ):
                    self._store_value(
                        data, parts[0], parse_value(next_line.strip(), self.split_su)
                    )
                    i += 2
                else:
                    raise CIFSyntaxError(line_nums[i], f"tag without value: {stripped}")
            else:
                raise CIFSyntaxError(
                    line_nums[i], f"could not parse line: {stripped}"
                )

        self._data = data

    def _store_value(self, data, tag, value_su):
        if tag in data:
            if isinstance(data[tag], CifLoop):
                loop = data.pop(tag)
                self._insert_resolved(data, resolve_loop_naming_conflict(loop, None, tag))
            else:
                logger.warning(
                    f"Tag {tag} defined twice in block {self.data_block_name}, "
                    "keeping the last value"
                )
        data[tag] = value_su.value
        if has_su(value_su.su):
            data[tag + "_su"] = value_su.su

    def _store_loop(self, data, loop):
        name = loop.get_name()
        if name not in data:
            data[name] = loop
            return
        existing = data.pop(name)
        self._insert_resolved(data, resolve_loop_naming_conflict(existing, loop, name))

    def _insert_resolved(self, data, entries):
        for name, entry in entries:
            if entry is None:
                continue
            if name in data:
                raise CIFLoopError(
                    f"Renamed loop {name} collides with an existing entry in "
                    f"block {self.data_block_name}"
                )
            data[name] = entry

    def get(self, keys, default=NOT_SET):
        """Return the entry for the first of `keys` present in the block.

        Args:
            keys (str or list[str]): Tag or ordered list of synonymous tags.
            default: Returned if none of the keys are present.

        Raises:
            CIFLookupError: None of the keys are present and no default was
                given.
        """
        self.parse()
        key_list = [keys] if isinstance(keys, str) else list(keys)
        for key in key_list:
            if key in self._data:
                return self._data[key]
        if default is not NOT_SET:
            return default
        raise CIFLookupError(
            f"None of the keys [{', '.join(key_list)}] found in CIF block "
            f"{self.data_block_name}"
        )

    def __contains__(self, key):
        self.parse()
        return key in self._data

    def keys(self):
        self.parse()
        return list(self._data.keys())

    def items(self):
        self.parse()
        return list(self._data.items())
