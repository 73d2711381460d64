# flake8: noqa

from skcio.trajectory.contact_variables import ContactVariables
from skcio.trajectory.element_trajectory import compute_keyframes
from skcio.trajectory.element_trajectory import ElementTrajectory
from skcio.trajectory.full_trajectory import FullTrajectory
from skcio.trajectory.index import ComponentType
from skcio.trajectory.index import SubComponentType
from skcio.trajectory.index import TrajectoryIndex
from skcio.trajectory.parameter import ParameterMap
from skcio.trajectory.parameter import ParameterTrajectory
