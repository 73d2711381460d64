import numpy as np


class ContactVariables(object):
    """Contact state of one contact at one trajectory point.

    ``position`` and ``orientation`` (exponential map) describe the free
    contact pose and ``forces`` the force applied at every sub-contact
    point. The projected quantities are derived from the pose and the
    ground on every evaluation.
    """

    def __init__(self, num_contact_points=4):
        self.num_contact_points = num_contact_points
        self.position = np.zeros(3)
        self.orientation = np.zeros(3)
        self.forces = np.zeros((num_contact_points, 3))
        self.projected_position = np.zeros(3)
        self.projected_orientation = np.zeros(3)
        self.normal = np.array([0.0, 0.0, 1.0])
        self.projected_point_positions = np.zeros((num_contact_points, 3))

    def set_variable(self, value):
        """Set pose and forces to the same scalar value."""
        self.position[:] = value
        self.orientation[:] = value
        self.forces[:] = value

    def copy_from(self, other):
        """Overwrite every field in place with the values of ``other``."""
        self.position[:] = other.position
        self.orientation[:] = other.orientation
        self.forces[:] = other.forces
        self.projected_position[:] = other.projected_position
        self.projected_orientation[:] = other.projected_orientation
        self.normal[:] = other.normal
        self.projected_point_positions[:] = other.projected_point_positions

    def copy(self):
        other = ContactVariables.__new__(ContactVariables)
        other.num_contact_points = self.num_contact_points
        other.position = self.position.copy()
        other.orientation = self.orientation.copy()
        other.forces = self.forces.copy()
        other.projected_position = self.projected_position.copy()
        other.projected_orientation = self.projected_orientation.copy()
        other.normal = self.normal.copy()
        other.projected_point_positions = \
            self.projected_point_positions.copy()
        return other

    def __repr__(self):
        return '<{} position={} orientation={} force_sum={}>'.format(
            self.__class__.__name__, self.position, self.orientation,
            self.forces.sum(axis=0))
