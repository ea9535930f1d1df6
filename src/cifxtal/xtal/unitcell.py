"""Unit cell parameters and the derived fractional to Cartesian matrix."""

import numpy as np
import numpy.linalg as la

from ..cif import CIFLookupError
from .transforms import calc_fract_to_cart_matrix, calc_v


CELL_KEYS = {
    "a": ["_cell_length_a", "_cell.length_a"],
    "b": ["_cell_length_b", "_cell.length_b"],
    "c": ["_cell_length_c", "_cell.length_c"],
    "alpha": ["_cell_angle_alpha", "_cell.angle_alpha"],
    "beta": ["_cell_angle_beta", "_cell.angle_beta"],
    "gamma": ["_cell_angle_gamma", "_cell.angle_gamma"],
}


def _check_length(name, value):
    if not value > 0:
        raise ValueError(f"Cell parameter '{name}' must be positive, got {value}")


def _check_angle(name, value):
    if not 0 < value < 180:
        raise ValueError(
            f"Angle {name} must be between 0 and 180 degrees, got {value}"
        )


class UnitCell:

    """Class for storing and performing calculations on unit cell parameters.
    The constructor expects alpha, beta, and gamma to be in degrees.

    Every change of a parameter is validated and updates
    ``fract_to_cart_matrix`` and ``cart_to_fract_matrix``.
    """

    def __init__(self, a, b, c, alpha, beta, gamma):
        for name, value in zip("abc", (a, b, c)):
            _check_length(name, value)
        for name, value in zip(("alpha", "beta", "gamma"), (alpha, beta, gamma)):
            _check_angle(name, value)

        self._a = float(a)
        self._b = float(b)
        self._c = float(c)
        self._alpha = float(alpha)
        self._beta = float(beta)
        self._gamma = float(gamma)
        self._update_matrices()

    @classmethod
    def from_cif(cls, cif_block):
        """Read the cell from legacy or DDL2 cell tags of a CIF block."""
        values = {}
        missing = []
        for name, keys in CELL_KEYS.items():
            value = cif_block.get(keys, None)
            if not isinstance(value, (int, float)):
                missing.append(name)
            values[name] = value
        if missing:
            raise CIFLookupError(
                "Unit cell parameter entries missing or not numeric in CIF for cell "
                f"parameters: {', '.join(missing)}"
            )
        return cls(**values)

    def _update_matrices(self):
        self.fract_to_cart_matrix = calc_fract_to_cart_matrix(
            self._a, self._b, self._c, self._alpha, self._beta, self._gamma
        )
        self.cart_to_fract_matrix = la.inv(self.fract_to_cart_matrix)

    def __str__(self):
        return "UnitCell(a=%f, b=%f, c=%f, alpha=%f, beta=%f, gamma=%f)" % (
            self.a,
            self.b,
            self.c,
            self.alpha,
            self.beta,
            self.gamma,
        )

    def copy(self):
        return UnitCell(self.a, self.b, self.c, self.alpha, self.beta, self.gamma)

    @property
    def a(self):
        return self._a

    @a.setter
    def a(self, value):
        _check_length("a", value)
        self._a = float(value)
        self._update_matrices()

    @property
    def b(self):
        return self._b

    @b.setter
    def b(self, value):
        _check_length("b", value)
        self._b = float(value)
        self._update_matrices()

    @property
    def c(self):
        return self._c

    @c.setter
    def c(self, value):
        _check_length("c", value)
        self._c = float(value)
        self._update_matrices()

    @property
    def alpha(self):
        return self._alpha

    @alpha.setter
    def alpha(self, value):
        _check_angle("alpha", value)
        self._alpha = float(value)
        self._update_matrices()

    @property
    def beta(self):
        return self._beta

    @beta.setter
    def beta(self, value):
        _check_angle("beta", value)
        self._beta = float(value)
        self._update_matrices()

    @property
    def gamma(self):
        return self._gamma

    @gamma.setter
    def gamma(self, value):
        _check_angle("gamma", value)
        self._gamma = float(value)
        self._update_matrices()

    @property
    def abc(self):
        return np.asarray([self.a, self.b, self.c], float)

    def calc_v(self):
        """Calculates the volume of the rhombohedral created by the
        unit vectors a1/|a1|, a2/|a2|, a3/|a3|.
        """
        return calc_v(self.alpha, self.beta, self.gamma)

    def calc_volume(self):
        """Calculates the volume of the unit cell."""
        return self.a * self.b * self.c * self.calc_v()

    def calc_frac_to_cart(self, v):
        """Calculates and returns the Cartesian coordinate vector of
        fractional vector v.
        """
        return np.dot(self.fract_to_cart_matrix, v)

    def calc_cart_to_frac(self, v):
        """Calculates and returns the fractional coordinate vector of
        Cartesian vector v.
        """
        return np.dot(self.cart_to_fract_matrix, v)
