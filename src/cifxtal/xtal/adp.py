"""Isotropic and anisotropic atomic displacement parameters."""

import math

import numpy as np

from .errors import StructureError
from .transforms import adp_to_matrix, u_cif_to_u_cart


B_TO_U = 1.0 / (8.0 * math.pi * math.pi)

ATOM_SITE_LABEL_KEYS = ["_atom_site_label", "_atom_site.label"]
ANISO_LABEL_KEYS = ["_atom_site_aniso_label", "_atom_site_aniso.label"]
ADP_TYPE_KEYS = [
    "_atom_site_adp_type",
    "_atom_site.adp_type",
    "_atom_site_thermal_displace_type",
    "_atom_site.thermal_displace_type",
]
UISO_KEYS = ["_atom_site_U_iso_or_equiv", "_atom_site.u_iso_or_equiv", "_atom_site.U_iso_or_equiv"]
BISO_KEYS = ["_atom_site_B_iso_or_equiv", "_atom_site.b_iso_or_equiv", "_atom_site.B_iso_or_equiv"]
TENSOR_INDICES = ("11", "22", "33", "12", "13", "23")


def _aniso_keys(prefix, index):
    return [
        f"_atom_site_aniso_{prefix.upper()}_{index}",
        f"_atom_site_aniso.{prefix.lower()}_{index}",
        f"_atom_site_aniso.{prefix.upper()}_{index}",
    ]


def _is_number(value):
    return isinstance(value, (int, float)) and not math.isnan(value)


class UIsoADP:
    """Isotropic displacement given by a single U value in A^2."""

    def __init__(self, uiso):
        self.uiso = uiso

    def __repr__(self):
        return f"UIsoADP({self.uiso!r})"

    @classmethod
    def from_biso(cls, biso):
        return cls(biso * B_TO_U)

    def copy(self):
        return UIsoADP(self.uiso)


class UAnisoADP:
    """Anisotropic displacement tensor in the CIF convention, in A^2."""

    def __init__(self, u11, u22, u33, u12, u13, u23):
        self.u11 = u11
        self.u22 = u22
        self.u33 = u33
        self.u12 = u12
        self.u13 = u13
        self.u23 = u23

    def __repr__(self):
        return "UAnisoADP(%r, %r, %r, %r, %r, %r)" % tuple(self.as_list())

    @classmethod
    def from_bani(cls, b11, b22, b33, b12, b13, b23):
        return cls(*(value * B_TO_U for value in (b11, b22, b33, b12, b13, b23)))

    @classmethod
    def from_matrix(cls, matrix):
        m = np.asarray(matrix, float)
        return cls(m[0, 0], m[1, 1], m[2, 2], m[0, 1], m[0, 2], m[1, 2])

    def as_list(self):
        return [self.u11, self.u22, self.u33, self.u12, self.u13, self.u23]

    def as_matrix(self):
        return adp_to_matrix(self.as_list())

    def copy(self):
        return UAnisoADP(*self.as_list())

    def get_u_cart(self, unit_cell):
        """The tensor in the Cartesian frame of `unit_cell`.

        Returns:
            np.ndarray[float]: [U11, U22, U33, U12, U13, U23]
        """
        return u_cif_to_u_cart(unit_cell.fract_to_cart_matrix, self.as_list())


def _aniso_index(cif_block, label, adp_type):
    aniso_site = cif_block.get("_atom_site_aniso", None)
    if aniso_site is None:
        raise StructureError(
            f"Atom {label} had ADP type {adp_type}, but no atom_site_aniso loop was found"
        )
    label_map = aniso_site.get_value_index_map(ANISO_LABEL_KEYS)
    if label not in label_map:
        raise StructureError(
            f"Atom {label} has ADP type {adp_type}, but was not found in "
            "atom_site_aniso.label"
        )
    return aniso_site, label_map[label]


def _create_aniso(cif_block, label, prefix, adp_type):
    aniso_site, aniso_index = _aniso_index(cif_block, label, adp_type)
    values = [
        aniso_site.get_index(_aniso_keys(prefix, index), aniso_index, None)
        for index in TENSOR_INDICES
    ]
    if not all(_is_number(value) for value in values):
        return None
    if prefix == "U":
        return UAnisoADP(*values)
    return UAnisoADP.from_bani(*values)


def _create_iso(cif_block, index, keys, factory):
    value = cif_block.get("_atom_site").get_index(keys, index, None)
    if not _is_number(value):
        return None
    return factory(value)


def _in_aniso_loop(cif_block, label):
    aniso_site = cif_block.get("_atom_site_aniso", None)
    if aniso_site is None:
        return False
    return label in aniso_site.get_value_index_map(ANISO_LABEL_KEYS, {})


def adp_from_cif(cif_block, index):
    """Create the ADP of atom `index` of the atom_site loop.

    An explicit adp_type decides the kind of ADP. Without one, values of
    the aniso loop (U before B) are preferred over Uiso and Biso.

    Returns:
        UIsoADP or UAnisoADP or None: None if no usable values exist.

    Raises:
        StructureError: An anisotropic type is requested for an atom missing
            from the aniso loop.
    """
    atom_site = cif_block.get("_atom_site")
    label = str(atom_site.get_index(ATOM_SITE_LABEL_KEYS, index))
    adp_type = atom_site.get_index(ADP_TYPE_KEYS, index, None)

    if isinstance(adp_type, str) and adp_type not in (".", "?"):
        adp_type = adp_type.lower()
        if adp_type == "uani":
            return _create_aniso(cif_block, label, "U", "Uani")
        elif adp_type == "bani":
            return _create_aniso(cif_block, label, "B", "Bani")
        elif adp_type == "uiso":
            return _create_iso(cif_block, index, UISO_KEYS, UIsoADP)
        elif adp_type == "biso":
            return _create_iso(cif_block, index, BISO_KEYS, UIsoADP.from_biso)
        return None

    if _in_aniso_loop(cif_block, label):
        adp = _create_aniso(cif_block, label, "U", "Uani")
        if adp is None:
            adp = _create_aniso(cif_block, label, "B", "Bani")
        if adp is not None:
            return adp

    adp = _create_iso(cif_block, index, UISO_KEYS, UIsoADP)
    if adp is None:
        adp = _create_iso(cif_block, index, BISO_KEYS, UIsoADP.from_biso)
    return adp
