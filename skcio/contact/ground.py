"""Support surfaces used to project contact poses."""

import numpy as np

from skcio.math import exponential_map_to_rotation
from skcio.math import normalize_vector
from skcio.math import rotation_from_z_axis
from skcio.math import rotation_to_exponential_map


class GroundModel(object):
    """Base class of support surfaces.

    Subclasses implement :meth:`project_point` and :meth:`normal_at`.
    """

    def project_point(self, position):
        raise NotImplementedError

    def normal_at(self, position):
        raise NotImplementedError

    def signed_distance(self, position):
        """Distance of ``position`` above the surface."""
        projected = self.project_point(position)
        return float(np.dot(np.asarray(position) - projected,
                            self.normal_at(projected)))

    def nearest_support(self, position, orientation):
        """Nearest support pose of a contact.

        Parameters
        ----------
        position : numpy.ndarray, shape (3,)
            Contact position.
        orientation : numpy.ndarray, shape (3,)
            Contact orientation as exponential map.

        Returns
        -------
        projected_position : numpy.ndarray, shape (3,)
        projected_orientation : numpy.ndarray, shape (3,)
            Exponential map of a frame whose z-axis is the surface normal
            and whose x-axis follows the heading of the contact.
        normal : numpy.ndarray, shape (3,)
        """
        projected_position = self.project_point(position)
        normal = self.normal_at(projected_position)
        heading = exponential_map_to_rotation(orientation)[:, 0]
        rot = rotation_from_z_axis(normal, heading)
        return (projected_position,
                rotation_to_exponential_map(rot),
                normal)

    def copy(self):
        raise NotImplementedError


class FlatGround(GroundModel):
    """Horizontal plane ``z = height``."""

    def __init__(self, height=0.0):
        self.height = float(height)

    def project_point(self, position):
        projected = np.array(position, dtype=np.float64)
        projected[2] = self.height
        return projected

    def normal_at(self, position):
        return np.array([0.0, 0.0, 1.0])

    def signed_distance(self, position):
        return float(position[2] - self.height)

    def copy(self):
        return FlatGround(self.height)

    def __repr__(self):
        return '<FlatGround height={}>'.format(self.height)


class PlaneGround(GroundModel):
    """Infinite plane through ``point`` with normal ``normal``.

    Examples
    --------
    >>> from skcio.contact import PlaneGround
    >>> ground = PlaneGround([0, 0, 1.0], [0, 0, 2.0])
    >>> ground.project_point([1.0, 2.0, 3.0])
    array([1., 2., 1.])
    """

    def __init__(self, point, normal):
        self.point = np.array(point, dtype=np.float64)
        normal = normalize_vector(normal)
        if np.linalg.norm(normal) == 0:
            raise ValueError('plane normal must be non-zero')
        self.normal = normal

    def project_point(self, position):
        position = np.asarray(position, dtype=np.float64)
        return position - np.dot(position - self.point, self.normal) \
            * self.normal

    def normal_at(self, position):
        return self.normal.copy()

    def copy(self):
        return PlaneGround(self.point, self.normal)

    def __repr__(self):
        return '<PlaneGround point={} normal={}>'.format(
            self.point, self.normal)
