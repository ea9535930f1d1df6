"""Atom positions in fractional or Cartesian coordinates."""

import numpy as np

from .errors import DummyAtomError, StructureError


INVALID_VALUES = (".", "?")

FRACT_KEYS = (
    ["_atom_site_fract_x", "_atom_site.fract_x"],
    ["_atom_site_fract_y", "_atom_site.fract_y"],
    ["_atom_site_fract_z", "_atom_site.fract_z"],
)

CART_KEYS = (
    ["_atom_site_Cartn_x", "_atom_site.Cartn_x", "_atom_site.cartn_x"],
    ["_atom_site_Cartn_y", "_atom_site.Cartn_y", "_atom_site.cartn_y"],
    ["_atom_site_Cartn_z", "_atom_site.Cartn_z", "_atom_site.cartn_z"],
)

CALC_FLAG_KEYS = ["_atom_site_calc_flag", "_atom_site.calc_flag"]


class BasePosition:
    """Three coordinates with sequence access.

    Subclasses define the coordinate system through ``to_cartesian``.
    """

    def __init__(self, x, y, z):
        self.coords = np.array([x, y, z], float)

    def __getitem__(self, index):
        return self.coords[index]

    def __iter__(self):
        return iter(self.coords.tolist())

    def __len__(self):
        return 3

    def __repr__(self):
        return "%s(%g, %g, %g)" % (type(self).__name__, *self.coords)

    @property
    def x(self):
        return self.coords[0]

    @x.setter
    def x(self, value):
        self.coords[0] = value

    @property
    def y(self):
        return self.coords[1]

    @y.setter
    def y(self, value):
        self.coords[1] = value

    @property
    def z(self):
        return self.coords[2]

    @z.setter
    def z(self, value):
        self.coords[2] = value

    def copy(self):
        return type(self)(*self.coords)

    def to_cartesian(self, unit_cell):
        raise NotImplementedError


class FractPosition(BasePosition):
    """Position in fractions of the cell vectors."""

    def to_cartesian(self, unit_cell):
        return CartPosition(*unit_cell.calc_frac_to_cart(self.coords))


class CartPosition(BasePosition):
    """Position in Angstrom along orthonormal axes."""

    def to_cartesian(self, unit_cell):
        return self


def _read_coords(atom_site, keys, index):
    """Coordinates from `atom_site` row `index`, None if the tags are absent."""
    coords = [atom_site.get_index(key_list, index, None) for key_list in keys]
    if any(coord is None for coord in coords):
        return None
    return coords


def position_from_cif(cif_block, index):
    """Read the position of atom `index` of the atom_site loop.

    Fractional coordinates are preferred over Cartesian ones.

    Raises:
        DummyAtomError: The entry is flagged as dummy or has '.'/'?'
            coordinates.
        StructureError: Neither fractional nor Cartesian coordinates exist.
    """
    atom_site = cif_block.get("_atom_site")
    calc_flag = str(atom_site.get_index(CALC_FLAG_KEYS, index, "")).lower()
    if calc_flag == "dum":
        raise DummyAtomError("Dummy atom: calc_flag is dum")

    invalid_found = False
    for keys, position_class in ((FRACT_KEYS, FractPosition), (CART_KEYS, CartPosition)):
        coords = _read_coords(atom_site, keys, index)
        if coords is None:
            continue
        if any(coord in INVALID_VALUES for coord in coords):
            invalid_found = True
            continue
        return position_class(*coords)

    if invalid_found:
        raise DummyAtomError("Dummy atom: Invalid position")
    raise StructureError(
        "Invalid position: No valid fractional or Cartesian coordinates found"
    )
