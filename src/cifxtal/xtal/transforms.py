"""Fractional to Cartesian transformations of coordinates and ADP tensors."""

import numpy as np
import numpy.linalg as la


def calc_v(alpha, beta, gamma):
    """Volume of the parallelepiped spanned by the normalised cell vectors.

    The angles are expected in degrees.
    """
    cos_alpha, cos_beta, cos_gamma = np.cos(np.deg2rad([alpha, beta, gamma]))
    return np.sqrt(
        1
        - cos_alpha * cos_alpha
        - cos_beta * cos_beta
        - cos_gamma * cos_gamma
        + 2 * cos_alpha * cos_beta * cos_gamma
    )


def calc_fract_to_cart_matrix(a, b, c, alpha, beta, gamma):
    """Matrix converting fractional into Cartesian coordinates.

    The a axis lies along x and the b axis in the xy plane.
    """
    cos_alpha, cos_beta, cos_gamma = np.cos(np.deg2rad([alpha, beta, gamma]))
    sin_gamma = np.sin(np.deg2rad(gamma))
    v = calc_v(alpha, beta, gamma)

    return np.array(
        [
            [a, b * cos_gamma, c * cos_beta],
            [0.0, b * sin_gamma, c * (cos_alpha - cos_beta * cos_gamma) / sin_gamma],
            [0.0, 0.0, c * v / sin_gamma],
        ],
        float,
    )


def adp_to_matrix(adp):
    """[U11, U22, U33, U12, U13, U23] as a symmetric 3x3 matrix."""
    u11, u22, u33, u12, u13, u23 = adp
    return np.array(
        [[u11, u12, u13], [u12, u22, u23], [u13, u23, u33]], float
    )


def matrix_to_adp(matrix):
    """Inverse of :func:`adp_to_matrix`."""
    m = np.asarray(matrix, float)
    return np.array([m[0, 0], m[1, 1], m[2, 2], m[0, 1], m[0, 2], m[1, 2]])


def u_cif_to_u_cart(fract_to_cart_matrix, adp):
    """Convert CIF convention U values into Cartesian U values.

    Args:
        fract_to_cart_matrix (np.ndarray[float]): 3x3 matrix of the cell.
        adp (Sequence[float]): [U11, U22, U33, U12, U13, U23] as in the CIF.

    Returns:
        np.ndarray[float]: Cartesian [U11, U22, U33, U12, U13, U23].
    """
    m = np.asarray(fract_to_cart_matrix, float)
    f = la.inv(m).T
    n = np.diag(la.norm(f.T, axis=1))
    u_star = n @ adp_to_matrix(adp) @ n.T
    u_cart = m @ u_star @ m.T
    return matrix_to_adp(u_cart)
