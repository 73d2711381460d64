# flake8: noqa

from skcio.cost.base import TrajectoryCost
from skcio.cost.registry import build_active_cost_functions
from skcio.cost.registry import CostFunctionRegistry
from skcio.cost.registry import create_cost
from skcio.cost.registry import register_cost
from skcio.cost.costs import CollisionCost
from skcio.cost.costs import ConstantCost
from skcio.cost.costs import ContactInvarianceCost
from skcio.cost.costs import FrictionConeCost
from skcio.cost.costs import JointPositionCost
from skcio.cost.costs import SmoothnessCost
from skcio.cost.costs import TorqueCost
from skcio.cost.evaluator import CostMatrixEvaluator
