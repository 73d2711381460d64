from logging import getLogger

import numpy as np

from skcio.math import exponential_map_to_rotation


logger = getLogger(__name__)


class ContactProjector(object):
    """Project contact poses on the ground and build external forces.

    Parameters
    ----------
    ground : skcio.contact.GroundModel
        Support surface.
    planning_group : skcio.model.PlanningGroup
        Declares the contacts, their sub-point offsets and the bodies the
        sub-point forces act on.
    """

    def __init__(self, ground, planning_group):
        self.ground = ground
        self.planning_group = planning_group

    @property
    def contact_points(self):
        return self.planning_group.contact_points

    def project(self, contact_variables):
        """Fill the projected fields of every contact in place."""
        if len(contact_variables) != len(self.contact_points):
            raise ValueError('expected {} contact variables, got {}'.format(
                len(self.contact_points), len(contact_variables)))
        for variables, contact in zip(contact_variables,
                                      self.contact_points):
            position, orientation, normal = self.ground.nearest_support(
                variables.position, variables.orientation)
            variables.projected_position[:] = position
            variables.projected_orientation[:] = orientation
            variables.normal[:] = normal
            rot = exponential_map_to_rotation(orientation)
            variables.projected_point_positions[:] = \
                position + contact.point_offsets.dot(rot.T)

    def compute_external_forces(self, contact_variables, external_forces):
        """Accumulate sub-point forces as spatial forces per body.

        ``external_forces`` (B, 6) is overwritten. Every row holds the
        moment about the world origin followed by the force.
        """
        external_forces[...] = 0.0
        for variables, contact in zip(contact_variables,
                                      self.contact_points):
            for i, body_id in enumerate(contact.point_body_ids):
                force = variables.forces[i]
                point = variables.projected_point_positions[i]
                external_forces[body_id, :3] += np.cross(point, force)
                external_forces[body_id, 3:] += force
        return external_forces
