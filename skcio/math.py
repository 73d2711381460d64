"""Rotation helpers shared by the dynamics model and contact projection.

Orientations of contact frames are stored in the trajectory as exponential
map (rotation vector) coordinates so that they can be interpolated linearly
and perturbed element-wise.
"""

import numpy as np
from scipy.spatial.transform import Rotation


def normalize_vector(v, ord=2):
    """Return normalized vector

    Parameters
    ----------
    v : list or numpy.ndarray
        vector
    ord : int (optional)
        ord of np.linalg.norm

    Returns
    -------
    v : numpy.ndarray
        normalized vector. A zero vector is returned unchanged.

    Examples
    --------
    >>> from skcio.math import normalize_vector
    >>> normalize_vector([0, 0, 2])
    array([0., 0., 1.])
    >>> normalize_vector([0, 0, 0])
    array([0., 0., 0.])
    """
    v = np.array(v, dtype=np.float64)
    norm = np.linalg.norm(v, ord=ord)
    if norm == 0:
        return v
    return v / norm


def outer_product_matrix(v):
    """Returns the skew-symmetric matrix of v.

    The returned matrix K satisfies ``K @ u == np.cross(v, u)``.

    Examples
    --------
    >>> from skcio.math import outer_product_matrix
    >>> outer_product_matrix([1, 2, 3])
    array([[ 0, -3,  2],
           [ 3,  0, -1],
           [-2,  1,  0]])
    """
    return np.array([[0, -v[2], v[1]],
                     [v[2], 0, -v[0]],
                     [-v[1], v[0], 0]])


def rodrigues(axis, theta):
    """Rotation matrix of angle ``theta`` around ``axis``.

    R = I + sin(theta) K + (1 - cos(theta)) K^2

    Parameters
    ----------
    axis : array-like, shape (3,)
        Rotation axis. Normalized internally.
    theta : float
        Rotation angle in radians.

    Returns
    -------
    rot : numpy.ndarray
        3x3 rotation matrix.
    """
    k = outer_product_matrix(normalize_vector(axis))
    return np.eye(3) + np.sin(theta) * k + (1.0 - np.cos(theta)) * (k @ k)


def exponential_map_to_rotation(rotvec):
    """Convert an exponential map (rotation vector) to a rotation matrix.

    Examples
    --------
    >>> import numpy as np
    >>> from skcio.math import exponential_map_to_rotation
    >>> exponential_map_to_rotation(np.zeros(3))
    array([[1., 0., 0.],
           [0., 1., 0.],
           [0., 0., 1.]])
    """
    return Rotation.from_rotvec(np.asarray(rotvec, dtype=np.float64)).as_matrix()


def rotation_to_exponential_map(rot):
    """Convert a rotation matrix to its exponential map in [-pi, pi]."""
    return Rotation.from_matrix(np.asarray(rot, dtype=np.float64)).as_rotvec()


def rotation_from_z_axis(normal, heading=None):
    """Rotation whose z-axis is ``normal``.

    Parameters
    ----------
    normal : array-like, shape (3,)
        Desired z-axis of the frame.
    heading : array-like, shape (3,), optional
        Direction the x-axis should follow as closely as possible. Defaults
        to the world x-axis.

    Returns
    -------
    rot : numpy.ndarray
        3x3 rotation matrix. When ``heading`` is parallel to ``normal`` an
        arbitrary perpendicular x-axis is chosen.
    """
    z = normalize_vector(normal)
    if heading is None:
        heading = np.array([1.0, 0.0, 0.0])
    x = np.asarray(heading, dtype=np.float64)
    x = x - np.dot(x, z) * z
    if np.linalg.norm(x) < 1e-9:
        candidate = np.array([1.0, 0.0, 0.0])
        if abs(z[0]) > 0.9:
            candidate = np.array([0.0, 1.0, 0.0])
        x = candidate - np.dot(candidate, z) * z
    x = normalize_vector(x)
    y = np.cross(z, x)
    return np.column_stack((x, y, z))
