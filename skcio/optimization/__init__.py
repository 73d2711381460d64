# flake8: noqa

from skcio.optimization.evaluation_manager import EvaluationManager
from skcio.optimization.evaluation_manager import ManagerState
from skcio.optimization.gradient import GradientEstimator
from skcio.optimization.report import CostHistory
from skcio.optimization.scipy_adapter import minimize_trajectory
from skcio.optimization.scipy_adapter import OptimizationResult
