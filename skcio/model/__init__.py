# flake8: noqa

from skcio.model.planning_group import ContactPoint
from skcio.model.planning_group import GroupJoint
from skcio.model.planning_group import PlanningGroup
from skcio.model.rigid_body_model import Body
from skcio.model.rigid_body_model import DynamicsState
from skcio.model.rigid_body_model import RigidBodyModel
from skcio.model.sample_models import Biped
from skcio.model.sample_models import Pendulum
from skcio.model.sample_models import SerialArm
