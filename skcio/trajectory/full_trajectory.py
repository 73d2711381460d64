"""Full per-point trajectory of joints and contacts."""

from logging import getLogger

import numpy as np

from skcio.trajectory.contact_variables import ContactVariables
from skcio.trajectory.element_trajectory import compute_keyframes
from skcio.trajectory.element_trajectory import ElementTrajectory
from skcio.trajectory.index import CONTACT_POSITION_SIZE
from skcio.trajectory.index import ComponentType
from skcio.trajectory.index import SubComponentType
from skcio.trajectory.parameter import ParameterMap
from skcio.trajectory.parameter import ParameterTrajectory


logger = getLogger(__name__)


class FullTrajectory(object):
    """Joint and contact trajectory sampled at every point.

    The trajectory owns one :class:`ElementTrajectory` per sub-component:

    - joints: position, velocity and acceleration, minimum-jerk
      interpolation between joint keyframes;
    - contact poses: position and exponential-map orientation of every
      contact, linear interpolation between contact keyframes;
    - contact forces: force of every sub-contact point of every contact,
      linear interpolation between contact keyframes.

    The free scalars of the trajectory (keyframe values restricted to a
    planning group) form the parameter trajectory. Use
    :meth:`build_parameter_map` once per planning group, then
    :meth:`extract_parameters` and :meth:`update_from_parameter_trajectory`
    to move between both representations.

    Parameters
    ----------
    num_joints : int
        Number of joints of the robot model.
    num_points : int
        Number of trajectory points. Fixed for the lifetime of the object.
    discretization : float
        Time between two consecutive points.
    keyframe_interval : int
        Number of points between joint keyframes.
    num_contacts : int
        Number of contacts.
    num_contact_points : int
        Number of sub-contact points per contact.
    contact_keyframe_interval : int, optional
        Number of points between contact keyframes. Defaults to
        ``keyframe_interval``.
    """

    def __init__(self, num_joints, num_points, discretization,
                 keyframe_interval=1, num_contacts=0, num_contact_points=4,
                 contact_keyframe_interval=None):
        if num_points < 1:
            raise ValueError(
                'num_points must be >= 1, got {}'.format(num_points))
        if contact_keyframe_interval is None:
            contact_keyframe_interval = keyframe_interval
        self.num_joints = num_joints
        self.num_points = num_points
        self.discretization = discretization
        self.num_contacts = num_contacts
        self.num_contact_points = num_contact_points

        joint_keyframes = compute_keyframes(num_points, keyframe_interval)
        contact_keyframes = compute_keyframes(
            num_points, contact_keyframe_interval)
        self.element_trajectories = {
            SubComponentType.JOINT: ElementTrajectory(
                'joint', num_points, num_joints, joint_keyframes,
                discretization,
                components=(ComponentType.POSITION,
                            ComponentType.VELOCITY,
                            ComponentType.ACCELERATION),
                interpolation='minjerk'),
            SubComponentType.CONTACT_POSITION: ElementTrajectory(
                'contact_position', num_points,
                CONTACT_POSITION_SIZE * num_contacts, contact_keyframes,
                discretization, interpolation='linear'),
            SubComponentType.CONTACT_FORCE: ElementTrajectory(
                'contact_force', num_points,
                3 * num_contact_points * num_contacts, contact_keyframes,
                discretization, interpolation='linear'),
        }
        self.parameter_map = None
        self._backup = None

    @classmethod
    def from_planning_parameters(cls, parameters, num_joints):
        """Create a trajectory sized by :class:`PlanningParameters`."""
        return cls(num_joints,
                   parameters.num_points,
                   parameters.trajectory_discretization,
                   keyframe_interval=parameters.keyframe_interval,
                   num_contacts=parameters.num_contacts,
                   num_contact_points=parameters.num_contact_points,
                   contact_keyframe_interval=(
                       parameters.contact_keyframe_interval))

    @property
    def duration(self):
        return (self.num_points - 1) * self.discretization

    def get_element_trajectory(self, sub_component):
        return self.element_trajectories[SubComponentType(sub_component)]

    def get_component_trajectory(self, component=ComponentType.POSITION,
                                 sub_component=SubComponentType.JOINT):
        """``(num_points, num_elements)`` array of one component."""
        return self.get_element_trajectory(sub_component).get_trajectory(
            component)

    def get_trajectory_point(self, point,
                             component=ComponentType.POSITION,
                             sub_component=SubComponentType.JOINT):
        """Row view of one point of one component."""
        return self.get_element_trajectory(
            sub_component).get_trajectory_point(point, component)

    def fill_joint_trajectory(self, start, goal=None):
        """Initialize joint keyframes between ``start`` and ``goal``.

        Keyframe positions are linearly spaced between start and goal,
        keyframe velocities and accelerations are zero, and all other
        samples are interpolated.
        """
        start = np.asarray(start, dtype=np.float64)
        goal = start if goal is None else np.asarray(goal, dtype=np.float64)
        joint = self.element_trajectories[SubComponentType.JOINT]
        for component in joint.components:
            joint.get_trajectory(component)[:] = 0.0
        last = max(self.num_points - 1, 1)
        for point in joint.keyframes:
            ratio = float(point) / last
            joint.get_trajectory(ComponentType.POSITION)[point] = \
                start + ratio * (goal - start)
        joint.interpolate()

    def build_parameter_map(self, planning_group):
        """Build and keep the parameter map of ``planning_group``."""
        self.parameter_map = ParameterMap.build(self, planning_group)
        return self.parameter_map

    def _require_parameter_map(self):
        if self.parameter_map is None:
            raise RuntimeError(
                'parameter map is not built. '
                'Call build_parameter_map first.')
        return self.parameter_map

    def extract_parameters(self):
        """Read the free parameters from the full trajectory."""
        parameter_map = self._require_parameter_map()
        parameters = ParameterTrajectory(parameter_map)
        for block in parameter_map.blocks:
            trajectory = self.get_component_trajectory(
                block.component, block.sub_component)
            parameters.matrix(block.component, block.sub_component)[:] = \
                trajectory[np.ix_(block.points, block.elements)]
        return parameters

    def update_from_parameter_trajectory(self, parameters,
                                         planning_group=None):
        """Write parameter values and re-interpolate derived samples."""
        parameter_map = self._require_parameter_map()
        if isinstance(parameters, ParameterTrajectory):
            values = parameters.values
        else:
            values = np.asarray(parameters, dtype=np.float64).reshape(-1)
        if len(values) != len(parameter_map):
            raise ValueError('expected {} parameter values, got {}'.format(
                len(parameter_map), len(values)))
        for block in parameter_map.blocks:
            trajectory = self.get_component_trajectory(
                block.component, block.sub_component)
            trajectory[np.ix_(block.points, block.elements)] = \
                values[block.start:block.start + block.size].reshape(
                    block.shape)
        self.interpolate_keyframes(planning_group)

    def interpolate_keyframes(self, planning_group=None):
        """Re-derive every interpolated sample.

        Joint columns are restricted to the joints of ``planning_group``
        when it is given; contact columns are always interpolated.
        """
        elements = None
        if planning_group is not None:
            elements = [gj.joint_index for gj in planning_group.group_joints]
        self.element_trajectories[SubComponentType.JOINT].interpolate(
            elements)
        self.interpolate_contact_keyframes()

    def interpolate_contact_keyframes(self):
        self.element_trajectories[
            SubComponentType.CONTACT_POSITION].interpolate()
        self.element_trajectories[
            SubComponentType.CONTACT_FORCE].interpolate()

    @property
    def has_backup(self):
        return self._backup is not None

    def direct_change_for_derivatives(self, parameter_index, value,
                                      is_first):
        """Write one parameter value for finite differencing.

        Parameters
        ----------
        parameter_index : int
            Parameter to change.
        value : float
            New value.
        is_first : bool
            True for the first evaluation of a +eps/-eps pair. The
            affected samples are backed up only on the first call so that
            :meth:`restore_backup_trajectories` returns to the state before
            the pair.

        Returns
        -------
        begin, end : int
            Inclusive-exclusive range of points whose samples changed.
        """
        parameter_map = self._require_parameter_map()
        index = parameter_map.trajectory_index(parameter_index)
        element_trajectory = self.get_element_trajectory(index.sub_component)
        keyframe_index = element_trajectory.keyframe_index(index.point)
        begin, end = element_trajectory.affected_range(keyframe_index)

        key = (index.sub_component, index.element, begin, end)
        if is_first:
            if self._backup is not None:
                raise RuntimeError(
                    'a derivative perturbation is already pending; '
                    'restore_backup_trajectories was not called')
            self._backup = (key, element_trajectory.backup(
                begin, end, index.element))
        elif self._backup is None or self._backup[0] != key:
            raise RuntimeError(
                'second perturbation of a pair does not match the '
                'backed up parameter {}'.format(parameter_index))

        element_trajectory.get_trajectory(index.component)[
            index.point, index.element] = value
        element_trajectory.interpolate_around(keyframe_index, index.element)
        return begin, end

    def restore_backup_trajectories(self):
        """Undo the pending derivative perturbation bit-for-bit."""
        if self._backup is None:
            raise RuntimeError('no derivative perturbation to restore')
        (sub_component, element, begin, end), backup = self._backup
        self.get_element_trajectory(sub_component).restore(
            begin, end, element, backup)
        self._backup = None

    def get_contact_variables(self, point, contact_variables=None):
        """Contact variables of every contact at ``point``.

        If ``contact_variables`` is given, its entries are filled in place
        and the same list is returned.
        """
        poses = self.get_trajectory_point(
            point, sub_component=SubComponentType.CONTACT_POSITION)
        forces = self.get_trajectory_point(
            point, sub_component=SubComponentType.CONTACT_FORCE)
        if contact_variables is None:
            contact_variables = [
                ContactVariables(self.num_contact_points)
                for _ in range(self.num_contacts)]
        if len(contact_variables) != self.num_contacts:
            raise ValueError('expected {} contact variables, got {}'.format(
                self.num_contacts, len(contact_variables)))
        force_size = 3 * self.num_contact_points
        for i, variables in enumerate(contact_variables):
            pose = poses[CONTACT_POSITION_SIZE * i:
                         CONTACT_POSITION_SIZE * (i + 1)]
            variables.position[:] = pose[:3]
            variables.orientation[:] = pose[3:]
            variables.forces[:] = forces[
                force_size * i:force_size * (i + 1)].reshape(
                    self.num_contact_points, 3)
        return contact_variables

    def set_contact_variables(self, point, contact_variables):
        poses = self.get_trajectory_point(
            point, sub_component=SubComponentType.CONTACT_POSITION)
        forces = self.get_trajectory_point(
            point, sub_component=SubComponentType.CONTACT_FORCE)
        if len(contact_variables) != self.num_contacts:
            raise ValueError('expected {} contact variables, got {}'.format(
                self.num_contacts, len(contact_variables)))
        force_size = 3 * self.num_contact_points
        for i, variables in enumerate(contact_variables):
            offset = CONTACT_POSITION_SIZE * i
            poses[offset:offset + 3] = variables.position
            poses[offset + 3:offset + 6] = variables.orientation
            forces[force_size * i:force_size * (i + 1)] = \
                variables.forces.reshape(-1)

    def clone(self):
        """Deep copy of every sample; the parameter map is shared.

        A pending derivative backup is not carried over.
        """
        other = FullTrajectory.__new__(FullTrajectory)
        other.num_joints = self.num_joints
        other.num_points = self.num_points
        other.discretization = self.discretization
        other.num_contacts = self.num_contacts
        other.num_contact_points = self.num_contact_points
        other.element_trajectories = {
            sub_component: element_trajectory.clone()
            for sub_component, element_trajectory
            in self.element_trajectories.items()}
        other.parameter_map = self.parameter_map
        other._backup = None
        return other

    def __repr__(self):
        return '<{} points={} joints={} contacts={}>'.format(
            self.__class__.__name__, self.num_points, self.num_joints,
            self.num_contacts)
