"""Compact representation of the free scalars of a full trajectory."""

from collections import OrderedDict
from logging import getLogger

import numpy as np

from skcio.trajectory.index import ComponentType
from skcio.trajectory.index import SubComponentType
from skcio.trajectory.index import TrajectoryIndex


logger = getLogger(__name__)


# Components optimized for each sub-component, in parameter order.
PARAMETER_COMPONENTS = OrderedDict([
    (SubComponentType.JOINT,
     (ComponentType.POSITION, ComponentType.VELOCITY)),
    (SubComponentType.CONTACT_POSITION, (ComponentType.POSITION,)),
    (SubComponentType.CONTACT_FORCE, (ComponentType.POSITION,)),
])


class ParameterBlock(object):
    """Contiguous run of parameters sharing component and sub-component.

    Parameters are laid out keyframe-major inside a block, so the block
    can be viewed as a ``(len(points), len(elements))`` matrix.
    """

    def __init__(self, component, sub_component, start, points, elements):
        self.component = component
        self.sub_component = sub_component
        self.start = start
        self.points = tuple(int(p) for p in points)
        self.elements = tuple(int(e) for e in elements)

    @property
    def size(self):
        return len(self.points) * len(self.elements)

    @property
    def shape(self):
        return (len(self.points), len(self.elements))


class ParameterMap(object):
    """Bidirectional map between parameter and trajectory indices.

    Built once per planning group with :meth:`build` and not modified
    afterwards, so clones of a trajectory share it.
    """

    def __init__(self, blocks, group_joint_lookup=None):
        self._blocks = OrderedDict(
            ((b.component, b.sub_component), b) for b in blocks)
        indices = []
        for block in self._blocks.values():
            for point in block.points:
                for element in block.elements:
                    indices.append(TrajectoryIndex(
                        point, block.component, block.sub_component,
                        element))
        self._indices = tuple(indices)
        self._lookup = {index: i for i, index in enumerate(self._indices)}
        if group_joint_lookup is None:
            group_joint_lookup = {}
        self._group_joint_lookup = dict(group_joint_lookup)

    @classmethod
    def build(cls, trajectory, planning_group):
        """Build the map of ``trajectory`` restricted to ``planning_group``.

        Joint parameters are the position and velocity at joint keyframes
        of the group joints, excluding the start and goal keyframes when the
        group fixes them. Every contact pose and contact force keyframe is
        a parameter.
        """
        joint_elements = [gj.joint_index for gj in planning_group.group_joints]
        for element in joint_elements:
            if not 0 <= element < trajectory.num_joints:
                raise IndexError(
                    'group joint index {} out of range [0, {})'.format(
                        element, trajectory.num_joints))

        blocks = []
        start = 0
        for sub_component, components in PARAMETER_COMPONENTS.items():
            element_trajectory = trajectory.get_element_trajectory(
                sub_component)
            keyframes = list(element_trajectory.keyframes)
            if sub_component == SubComponentType.JOINT:
                elements = joint_elements
                first = 0
                last = len(keyframes)
                if planning_group.fix_start:
                    first = 1
                if planning_group.fix_goal:
                    last = len(keyframes) - 1
                points = keyframes[first:max(first, last)]
            else:
                elements = list(range(element_trajectory.num_elements))
                points = keyframes
            if len(points) == 0 or len(elements) == 0:
                continue
            for component in components:
                block = ParameterBlock(
                    component, sub_component, start, points, elements)
                blocks.append(block)
                start += block.size

        group_joint_lookup = {
            gj.joint_index: i
            for i, gj in enumerate(planning_group.group_joints)}
        parameter_map = cls(blocks, group_joint_lookup)
        logger.debug('Built parameter map of %d parameters for group %s',
                     len(parameter_map), planning_group.name)
        return parameter_map

    def __len__(self):
        return len(self._indices)

    @property
    def blocks(self):
        return list(self._blocks.values())

    def block(self, component, sub_component):
        try:
            return self._blocks[(component, sub_component)]
        except KeyError:
            raise ValueError('no {} {} parameters'.format(
                SubComponentType(sub_component).name,
                ComponentType(component).name))

    def trajectory_index(self, parameter_index):
        """TrajectoryIndex of a parameter."""
        if not 0 <= parameter_index < len(self._indices):
            raise IndexError(
                'parameter index {} out of range [0, {})'.format(
                    parameter_index, len(self._indices)))
        return self._indices[parameter_index]

    def parameter_index(self, trajectory_index):
        """Parameter index of a trajectory location, None if not free."""
        return self._lookup.get(TrajectoryIndex(*trajectory_index))

    def group_joint_index(self, joint_element):
        """Index in the planning group of the joint stored at a column."""
        return self._group_joint_lookup[joint_element]


class ParameterTrajectory(object):
    """Values of the free parameters of a full trajectory.

    Parameters
    ----------
    parameter_map : ParameterMap
        Layout of the values.
    values : array-like, optional
        Initial values. Zeros if omitted.
    """

    def __init__(self, parameter_map, values=None):
        self.parameter_map = parameter_map
        if values is None:
            values = np.zeros(len(parameter_map))
        values = np.array(values, dtype=np.float64).reshape(-1)
        if len(values) != len(parameter_map):
            raise ValueError(
                'expected {} parameter values, got {}'.format(
                    len(parameter_map), len(values)))
        self.values = values

    def __len__(self):
        return len(self.values)

    def __getitem__(self, parameter_index):
        return self.values[parameter_index]

    def __setitem__(self, parameter_index, value):
        self.values[parameter_index] = value

    def matrix(self, component, sub_component):
        """Dense ``(keyframes, elements)`` view of one parameter block."""
        block = self.parameter_map.block(component, sub_component)
        return self.values[block.start:block.start + block.size].reshape(
            block.shape)

    def copy(self):
        return ParameterTrajectory(self.parameter_map, self.values.copy())

    def __repr__(self):
        return '<{} size={}>'.format(self.__class__.__name__, len(self))
