import unittest
import warnings

from numpy import testing
import numpy as np

from skcio.config import PlanningParameters
from skcio.contact import FlatGround
from skcio.cost import build_active_cost_functions
from skcio.cost import JointPositionCost
from skcio.cost import SmoothnessCost
from skcio.model import Biped
from skcio.model import SerialArm
from skcio.optimization import CostHistory
from skcio.optimization import EvaluationManager
from skcio.optimization import GradientEstimator
from skcio.optimization import minimize_trajectory
from skcio.trajectory import FullTrajectory


class TestGradientEstimator(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        parameters = PlanningParameters(
            trajectory_duration=0.3, trajectory_discretization=0.05,
            keyframe_interval=3, num_contacts=2)
        model = Biped()
        trajectory = FullTrajectory.from_planning_parameters(
            parameters, model.num_joints)
        trajectory.fill_joint_trajectory([-0.2, 0.4, -0.2, -0.1, 0.3, -0.2])
        cls.manager = EvaluationManager(parameters=parameters)
        cls.manager.initialize(trajectory, model, model.legs, FlatGround(),
                               build_active_cost_functions(parameters))
        rng = np.random.RandomState(3)
        values = cls.manager.get_parameters().values
        cls.parameters = values + 0.05 * rng.randn(len(values))

    def test_workers_match_single_manager(self):
        expected = self.manager.clone().compute_derivatives(
            self.parameters, 1e-5)
        for num_workers in (1, 2, 3):
            with GradientEstimator(self.manager,
                                   num_workers=num_workers) as estimator:
                self.assertEqual(len(estimator.workers), num_workers)
                for worker in estimator.workers:
                    self.assertIs(worker.reference, self.manager)
                gradient = estimator.gradient(self.parameters, eps=1e-5)
            testing.assert_almost_equal(gradient, expected, decimal=8)

    def test_per_cost_gradient(self):
        with GradientEstimator(self.manager, num_workers=2) as estimator:
            gradient, cost_gradients = estimator.gradient(
                self.parameters, eps=1e-5, per_cost=True)
        self.assertEqual(cost_gradients.shape,
                         (len(self.manager.cost_functions), len(gradient)))
        testing.assert_almost_equal(cost_gradients.sum(axis=0), gradient,
                                    decimal=8)

    def test_invalid_num_workers(self):
        with self.assertRaises(ValueError):
            GradientEstimator(self.manager, num_workers=0)


class TestMinimizeTrajectory(unittest.TestCase):

    def test_cost_decreases(self):
        model = SerialArm()
        trajectory = FullTrajectory(model.num_joints, 11, 0.05,
                                    keyframe_interval=5)
        trajectory.fill_joint_trajectory([0.5, -0.4, 0.3], [0.2, 0.1, -0.3])
        manager = EvaluationManager(
            parameters=PlanningParameters(derivative_eps=1e-5))
        manager.initialize(trajectory, model, model.arm, FlatGround(),
                           [JointPositionCost(), SmoothnessCost(weight=1e-4)])
        initial_cost = manager.evaluate()
        history = CostHistory()

        result = minimize_trajectory(manager, max_iterations=20,
                                     num_workers=2, history=history,
                                     verbose=True)
        self.assertLess(result.cost, initial_cost)
        self.assertEqual(result.cost, manager.get_trajectory_cost())
        self.assertTrue(result.feasible)
        testing.assert_array_equal(result.parameters,
                                   manager.get_parameters().values)
        self.assertGreater(len(history), 0)
        self.assertEqual(history.names, ['joint_position', 'smoothness'])
        # start and goal keyframes are fixed
        q = trajectory.get_component_trajectory()
        testing.assert_almost_equal(q[0], [0.5, -0.4, 0.3])
        testing.assert_almost_equal(q[-1], [0.2, 0.1, -0.3])

    def test_best_cost_is_reset_between_runs(self):
        model = SerialArm()
        trajectory = FullTrajectory(model.num_joints, 11, 0.05,
                                    keyframe_interval=5)
        trajectory.fill_joint_trajectory([0.5, -0.4, 0.3], [0.2, 0.1, -0.3])
        manager = EvaluationManager(
            parameters=PlanningParameters(derivative_eps=1e-5))
        manager.initialize(trajectory, model, model.arm, FlatGround(),
                           [JointPositionCost()])
        start = manager.get_parameters().values.copy()

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            first = minimize_trajectory(manager, max_iterations=10)
        self.assertFalse([w for w in caught if 'disp' in str(w.message)])
        self.assertLessEqual(manager.best_cost, first.cost + 1e-12)

        manager.set_parameters(start)
        history = CostHistory()
        second = minimize_trajectory(manager, max_iterations=10,
                                     history=history, verbose=True)
        self.assertGreater(len(history), 0)
        self.assertEqual(history.iterations[0], 1)
        self.assertAlmostEqual(second.cost, first.cost, places=6)


class TestCostHistory(unittest.TestCase):

    def test_capacity(self):
        history = CostHistory(capacity=2)
        self.assertEqual(history.to_array().shape, (0, 0))
        self.assertFalse(history.append(0, [1.0, 2.0], ['a', 'b']))
        self.assertTrue(history.append(1, [0.5, 1.0]))
        self.assertTrue(history.full)
        self.assertFalse(history.append(2, [0.1, 0.1]))
        testing.assert_equal(history.to_array(), [[1.0, 2.0], [0.5, 1.0]])
        self.assertEqual(history.iterations, [0, 1])
        with self.assertLogs('skcio.optimization.report', level='INFO'):
            history.log_table()
        history.clear()
        self.assertEqual(len(history), 0)
        with self.assertRaises(ValueError):
            CostHistory(capacity=0)
