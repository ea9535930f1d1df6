"""The loop_ construct of a CIF data block."""

import math
import re
from collections import Counter

from .errors import CIFLoopError, CIFLookupError
from .values import ValueSU, has_su, parse_multiline_string, parse_value


NOT_SET = object()

# Checked in order, so more specific names have to precede their prefixes.
STANDARD_LOOP_NAMES = (
    "_space_group_symop_ssg",
    "_space_group_symop",
    "_symmetry_equiv",
    "_geom_bond",
    "_geom_hbond",
    "_geom_angle",
    "_geom_torsion",
    "_diffrn_refln",
    "_refln",
    "_atom_site_fourier_wave_vector",
    "_atom_site_moment_fourier_param",
    "_atom_site_moment_special_func",
    "_atom_site_moment",
    "_atom_site_rotation",
    "_atom_site_displace_Fourier",
    "_atom_site_displace_special_func",
    "_atom_site_occ_Fourier",
    "_atom_site_occ_special_func",
    "_atom_site_phason",
    "_atom_site_rot_Fourier_param",
    "_atom_site_rot_Fourier",
    "_atom_site_rot_special_func",
    "_atom_site_U_Fourier",
    "_atom_site_anharm_gc_c",
    "_atom_site_anharm_gc_d",
    "_atom_site_aniso",
    "_atom_site",
)

RE_LOOP_TOKEN = re.compile(r"""'([^']*(?:'\S[^']*)*)'|"([^"]*(?:"\S[^"]*)*)"|\S+""")


def _as_key_list(keys):
    if isinstance(keys, str):
        return [keys]
    return list(keys)


def _has_prefix(tag, prefix):
    """Case-insensitive prefix test that only matches at a segment border."""
    tag = tag.lower()
    prefix = prefix.lower()
    if not tag.startswith(prefix):
        return False
    return len(tag) == len(prefix) or tag[len(prefix)] in "._"


def _first_has_support(values, check_tie=False):
    """Test whether the first of `values` is shared by at least half of them.

    With `check_tie`, a different value with the same support raises
    ValueError.
    """
    counts = Counter(values)
    candidate = values[0]
    count = counts[candidate]
    if count < len(values) / 2:
        return False
    if check_tie:
        for value, other_count in counts.items():
            if value != candidate and other_count == count:
                raise ValueError(f"{candidate} and {value} are equally common")
    return True


class CifLoop:
    """A loop_ table: a list of tags followed by row-major values.

    Only the extent of the loop and its name are determined on
    construction, the values are parsed on first access.
    """

    def __init__(self, lines, split_su=True):
        self.split_su = split_su

        i = 1
        while i < len(lines) and lines[i].strip().startswith("_"):
            i += 1
        self.header_lines = [line.strip() for line in lines[1:i]]
        if not self.header_lines:
            raise CIFLoopError("loop_ is not followed by any tags")

        data_end = i
        in_multiline = False
        while data_end < len(lines):
            stripped = lines[data_end].strip()
            if not in_multiline and stripped.startswith(("_", "loop_")):
                break
            if lines[data_end].startswith(";"):
                in_multiline = not in_multiline
            data_end += 1

        self.data_lines = lines[i:data_end]
        self.end_index = data_end
        self._headers = None
        self._data = None
        self._index_maps = {}
        self.name = self.find_common_start()

    @classmethod
    def from_lines(cls, lines, split_su=True):
        return cls(lines, split_su)

    def __repr__(self):
        return f"CifLoop(name={self.name!r}, headers={self.header_lines!r})"

    def __len__(self):
        self.parse()
        return len(self._data[self.header_lines[0]])

    @property
    def parsed(self):
        return self._data is not None

    def parse(self):
        """Distribute the loop values into their columns."""
        if self._data is not None:
            return

        values = []
        index = 0
        while index < len(self.data_lines):
            line = self.data_lines[index]
            if line.startswith(";"):
                text, end_index = parse_multiline_string(self.data_lines, index)
                values.append(ValueSU(text, math.nan))
                index = end_index + 1
                continue
            for match in RE_LOOP_TOKEN.finditer(line.strip()):
                values.append(parse_value(match.group(0), self.split_su))
            index += 1

        n_columns = len(self.header_lines)
        if len(values) % n_columns != 0:
            raise CIFLoopError(
                f"Loop {self.name}: Cannot distribute {len(values)} values evenly "
                f"into {n_columns} columns"
            )
        elif len(values) == 0:
            raise CIFLoopError(f"Loop {self.name} has no data values.")

        headers = list(self.header_lines)
        data = {}
        for j, header in enumerate(self.header_lines):
            column = values[j::n_columns]
            data[header] = [entry.value for entry in column]
            if any(has_su(entry.su) for entry in column):
                data[header + "_su"] = [entry.su for entry in column]
                headers.append(header + "_su")

        self._headers = headers
        self._data = data

    def find_common_start(self, check_standard_names=True):
        """Derive the loop name from the tags of the loop.

        Well-known loop names are preferred, then the category of the first
        tag if it is dotted (DDL2). Otherwise the name is built from the
        segments of the first tag for as long as each one is shared by at
        least half of the tags (by both tags for two-tag loops).

        Raises:
            CIFLoopError: The first segment of the first tag is tied with
                another first segment, so no name can be chosen.
        """
        headers = self.header_lines
        n_headers = len(headers)
        if check_standard_names:
            for base_name in STANDARD_LOOP_NAMES:
                hits = sum(1 for header in headers if _has_prefix(header, base_name))
                if hits >= n_headers / 2:
                    return base_name

        if "." in headers[0]:
            prefix = headers[0].split(".")[0]
            if _first_has_support([header.split(".")[0] for header in headers]):
                return prefix

        segments = [[s for s in re.split(r"[_.]", header) if s] for header in headers]
        min_segments = min(len(entry) for entry in segments)

        common = []
        for i in range(min_segments):
            column = [entry[i] for entry in segments]
            if n_headers == 2:
                if column[0] != column[1]:
                    break
            else:
                try:
                    supported = _first_has_support(column, check_tie=(i == 0))
                except ValueError as e:
                    raise CIFLoopError(
                        f"Cannot name loop with tags {', '.join(headers)}: {e}"
                    ) from e
                if not supported:
                    break
            common.append(column[0])

        return "".join("_" + segment for segment in common)

    def get(self, keys, default=NOT_SET):
        """Return the column for the first of `keys` present in the loop.

        Raises:
            CIFLookupError: None of the keys are present and no default was
                given.
        """
        self.parse()
        key_list = _as_key_list(keys)
        for key in key_list:
            if key in self._data:
                return self._data[key]
        if default is not NOT_SET:
            return default
        raise CIFLookupError(
            f"None of the keys [{', '.join(key_list)}] found in CIF loop {self.name}"
        )

    def get_index(self, keys, index, default=NOT_SET):
        """Return the value in row `index` of the first of `keys` present."""
        self.parse()
        key_list = _as_key_list(keys)
        if not any(key in self._data for key in key_list):
            if default is not NOT_SET:
                return default
            raise CIFLookupError(
                f"None of the keys [{', '.join(key_list)}] found in CIF loop {self.name}"
            )
        column = self.get(key_list)
        if index < len(column):
            return column[index]
        raise IndexError(
            f"Tried to look up value of index {index} in {self.name}, "
            f"but length is only {len(column)}"
        )

    def get_value_index_map(self, keys, default=NOT_SET):
        """Map each value of the first of `keys` present to its first row.

        Values are compared as strings. The map is built once per column
        and reused until the column is replaced.
        """
        self.parse()
        key_list = _as_key_list(keys)
        key = next((key for key in key_list if key in self._data), None)
        if key is None:
            if default is not NOT_SET:
                return default
            raise CIFLookupError(
                f"None of the keys [{', '.join(key_list)}] found in CIF loop {self.name}"
            )
        if key not in self._index_maps:
            index_map = {}
            for index, value in enumerate(self._data[key]):
                index_map.setdefault(str(value), index)
            self._index_maps[key] = index_map
        return self._index_maps[key]

    def set_column(self, key, values):
        """Replace the values of column `key`, keeping the row count."""
        self.parse()
        if key not in self._data:
            raise CIFLookupError(f"Key {key} not found in CIF loop {self.name}")
        values = list(values)
        if len(values) != len(self._data[key]):
            raise CIFLoopError(
                f"Loop {self.name}: column {key} needs {len(self._data[key])} "
                f"values, got {len(values)}"
            )
        self._data[key] = values
        self._index_maps.pop(key, None)

    def get_headers(self):
        self.parse()
        return self._headers

    def get_name(self):
        return self.name

    def get_end_index(self):
        return self.end_index


def resolve_loop_naming_conflict(entry1, entry2, name):
    """Give two block entries that both claim `name` distinct names.

    For two loops the loop with the shorter unique prefix keeps `name` and
    the other is renamed to its own full prefix. A loop clashing with a
    plain value is always the one renamed.

    Returns:
        list[tuple[str, object]]: (name, entry) for both entries, in input
            order.

    Raises:
        CIFLoopError: The conflict cannot be resolved.
    """
    loop1 = isinstance(entry1, CifLoop)
    loop2 = isinstance(entry2, CifLoop)
    if loop1 and loop2:
        prefix1 = entry1.find_common_start(check_standard_names=False)
        prefix2 = entry2.find_common_start(check_standard_names=False)
        if len(prefix1) == len(prefix2):
            raise CIFLoopError(
                f"Non-resolvable conflict, where {name} seems to be the root "
                "name of multiple loops"
            )
        if len(prefix1) > len(prefix2):
            names = [prefix1, name]
        else:
            names = [name, prefix2]
    elif loop1 or loop2:
        loop = entry1 if loop1 else entry2
        new_name = loop.find_common_start(check_standard_names=False)
        if new_name == name:
            new_name = loop.header_lines[0]
        names = [new_name, name] if loop1 else [name, new_name]
    else:
        raise CIFLoopError(f"Tag {name} is defined twice")

    if names[0] == names[1]:
        raise CIFLoopError(
            f"Non-resolvable conflict, both entries resolve to the name {names[0]}"
        )
    for entry, new_name in zip((entry1, entry2), names):
        if isinstance(entry, CifLoop):
            entry.name = new_name
    return list(zip(names, (entry1, entry2)))
