"""Addressing of scalar values inside a full trajectory."""

from collections import namedtuple
from enum import IntEnum


class ComponentType(IntEnum):
    POSITION = 0
    VELOCITY = 1
    ACCELERATION = 2


class SubComponentType(IntEnum):
    JOINT = 0
    CONTACT_POSITION = 1
    CONTACT_FORCE = 2


TrajectoryIndex = namedtuple(
    'TrajectoryIndex', ['point', 'component', 'sub_component', 'element'])
TrajectoryIndex.__doc__ = """Location of one scalar in the full trajectory.

Parameters
----------
point : int
    Trajectory point (time sample).
component : ComponentType
    Position, velocity or acceleration.
sub_component : SubComponentType
    Joint, contact pose or contact force block.
element : int
    Column inside the block.
"""

# Position, orientation (exponential map).
CONTACT_POSITION_SIZE = 6
