import unittest

from numpy import testing
import numpy as np

from skcio.collision import CollisionWorld
from skcio.collision import SphereObstacle
from skcio.config import PlanningParameters
from skcio.contact import FlatGround
from skcio.cost import build_active_cost_functions
from skcio.cost import ConstantCost
from skcio.cost import JointPositionCost
from skcio.cost import TrajectoryCost
from skcio.model import Biped
from skcio.model import Pendulum
from skcio.model import SerialArm
from skcio.optimization import CostHistory
from skcio.optimization import EvaluationManager
from skcio.optimization import ManagerState
from skcio.trajectory import ComponentType
from skcio.trajectory import FullTrajectory
from skcio.trajectory import SubComponentType


def make_biped_manager(parameters=None, cost_functions=None, seed=0):
    if parameters is None:
        parameters = PlanningParameters(
            trajectory_duration=0.5, trajectory_discretization=0.05,
            keyframe_interval=5, num_contacts=2,
            cost_weights={'joint_position': 0.5})
    model = Biped()
    trajectory = FullTrajectory.from_planning_parameters(
        parameters, model.num_joints)
    trajectory.fill_joint_trajectory([-0.3, 0.6, -0.3, -0.2, 0.4, -0.2],
                                     [0.2, 0.3, -0.5, 0.1, 0.5, -0.6])
    if cost_functions is None:
        cost_functions = build_active_cost_functions(parameters)
    manager = EvaluationManager(parameters=parameters)
    manager.initialize(
        trajectory, model, model.legs, FlatGround(), cost_functions,
        collision_world=CollisionWorld(
            [SphereObstacle(np.array([0.25, 0.1, 0.5]), 0.2)]))
    rng = np.random.RandomState(seed)
    values = manager.get_parameters().values
    manager.set_parameters(values + 0.05 * rng.randn(len(values)))
    manager.evaluate()
    return manager


def snapshot_manager(manager):
    trajectory = manager.full_trajectory
    return {
        'trajectory': [
            array.copy()
            for element_trajectory in trajectory.element_trajectories.values()
            for array in element_trajectory.trajectories.values()],
        'positions': np.array([s.positions for s in manager.dynamics_states]),
        'rotations': np.array([s.rotations for s in manager.dynamics_states]),
        'forces': np.array([s.forces for s in manager.dynamics_states]),
        'torques': manager.torques.copy(),
        'external_forces': manager.external_forces.copy(),
        'contact_positions': np.array(
            [[v.projected_point_positions for v in point]
             for point in manager.contact_variables]),
        'contact_forces': np.array(
            [[v.forces for v in point] for point in manager.contact_variables]),
        'cost_matrix': manager.cost_matrix.copy(),
    }


def assert_same_snapshot(expected, actual):
    for key, value in expected.items():
        if key == 'trajectory':
            for a, b in zip(value, actual[key]):
                testing.assert_array_equal(a, b)
        else:
            testing.assert_array_equal(value, actual[key], err_msg=key)


def parameter_of(manager, point, component, sub_component, element):
    return manager.full_trajectory.parameter_map.parameter_index(
        (point, component, sub_component, element))


class FailingCost(TrajectoryCost):

    def __init__(self, **kwargs):
        super(FailingCost, self).__init__(**kwargs)
        self.fail = False

    def evaluate(self, context, point):
        if self.fail:
            raise RuntimeError('cost failure')
        return 1.0, True


class InfeasibleCost(TrajectoryCost):

    def __init__(self, bad_point, **kwargs):
        super(InfeasibleCost, self).__init__(**kwargs)
        self.bad_point = bad_point

    def evaluate(self, context, point):
        return 0.0, point != self.bad_point


class TestEvaluationManager(unittest.TestCase):

    def test_single_point_constant_cost(self):
        model = Pendulum()
        trajectory = FullTrajectory(model.num_joints, 1, 0.05)
        manager = EvaluationManager()
        manager.initialize(trajectory, model, model.free_group, FlatGround(),
                           [ConstantCost(value=2.0, weight=1.0)])
        self.assertEqual(manager.num_parameters, 2)
        self.assertEqual(manager.evaluate(), 2.0)
        self.assertTrue(manager.is_last_trajectory_feasible())
        for eps in (1e-3, 1e-6, 0.5):
            for i in range(manager.num_parameters):
                self.assertEqual(manager.compute_derivative(i, 0.0, eps), 0.0)
        self.assertEqual(manager.get_trajectory_cost(), 2.0)

    def test_state_machine(self):
        manager = EvaluationManager()
        self.assertEqual(manager.state, ManagerState.UNINITIALIZED)
        with self.assertRaises(RuntimeError):
            manager.evaluate()
        model = SerialArm()
        trajectory = FullTrajectory(model.num_joints, 11, 0.05,
                                    keyframe_interval=5)
        manager.initialize(trajectory, model, model.arm, FlatGround(),
                           [JointPositionCost()])
        self.assertEqual(manager.state, ManagerState.INITIALIZED)
        with self.assertRaises(RuntimeError):
            manager.compute_derivative(0, 0.0, 1e-6)
        manager.evaluate()
        self.assertEqual(manager.state, ManagerState.EVALUATED)
        manager.set_parameters(manager.get_parameters())
        self.assertEqual(manager.state, ManagerState.INITIALIZED)
        self.assertTrue(manager.parameter_modified)
        with self.assertRaises(RuntimeError):
            manager.compute_derivative(0, 0.0, 1e-6)
        with self.assertRaises(ValueError):
            manager.set_parameters(np.zeros(manager.num_parameters + 1))

    def test_initialize_checks_sizes(self):
        model = Biped()
        trajectory = FullTrajectory(model.num_joints, 5, 0.05,
                                    num_contacts=1)
        with self.assertRaises(ValueError):
            EvaluationManager().initialize(
                trajectory, model, model.legs, FlatGround(), [])
        with self.assertRaises(ValueError):
            EvaluationManager().initialize(
                FullTrajectory(2, 5, 0.05), model, model.legs,
                FlatGround(), [])

    def test_contacts_start_on_bodies_with_zero_force(self):
        parameters = PlanningParameters(
            trajectory_duration=0.5, trajectory_discretization=0.05,
            keyframe_interval=5, num_contacts=2)
        model = Biped()
        trajectory = FullTrajectory.from_planning_parameters(
            parameters, model.num_joints)
        trajectory.fill_joint_trajectory(np.zeros(6))
        manager = EvaluationManager(parameters=parameters)
        manager.initialize(trajectory, model, model.legs, FlatGround(),
                           build_active_cost_functions(parameters))
        manager.evaluate()
        for point in range(manager.num_points):
            state = manager.dynamics_states[point]
            for c, foot_id in enumerate(model.foot_ids):
                variables = manager.contact_variables[point][c]
                testing.assert_almost_equal(variables.position,
                                            state.positions[foot_id])
                testing.assert_almost_equal(variables.orientation,
                                            np.zeros(3))
                testing.assert_array_equal(variables.forces,
                                           np.zeros((4, 3)))
        testing.assert_array_equal(
            manager.external_forces, np.zeros_like(manager.external_forces))
        self.assertTrue(manager.is_last_trajectory_feasible())

    def test_partial_propagation_equals_full(self):
        manager = make_biped_manager()
        worker = manager.clone(reference=manager)
        joint = parameter_of(manager, 5, ComponentType.VELOCITY,
                             SubComponentType.JOINT, 1)
        contact = parameter_of(manager, 5, ComponentType.POSITION,
                               SubComponentType.CONTACT_POSITION, 3)
        force = parameter_of(manager, 10, ComponentType.POSITION,
                             SubComponentType.CONTACT_FORCE, 5)
        parameter_map = manager.full_trajectory.parameter_map
        for parameter_index in (0, joint, contact, force):
            index = parameter_map.trajectory_index(parameter_index)
            value = worker.parameter_trajectory[parameter_index]
            begin, end = worker.full_trajectory.direct_change_for_derivatives(
                parameter_index, value + 0.01, True)
            worker.perform_partial_forward_kinematics_and_dynamics(
                begin, end, index)

            full = worker.clone()
            full.perform_full_forward_kinematics_and_dynamics(begin, end)
            testing.assert_array_equal(worker.torques[begin:end],
                                       full.torques[begin:end])
            testing.assert_array_equal(
                worker.external_forces[begin:end],
                full.external_forces[begin:end])
            for point in range(begin, end):
                self.assertTrue(worker.dynamics_states[point].allclose(
                    full.dynamics_states[point], rtol=0.0, atol=0.0))
            worker.full_trajectory.restore_backup_trajectories()

    def test_derivative_restores_state(self):
        manager = make_biped_manager()
        before = snapshot_manager(manager)
        values = manager.get_parameters().values
        for parameter_index in range(0, manager.num_parameters, 7):
            manager.compute_derivative(
                parameter_index, values[parameter_index], 1e-4)
            assert_same_snapshot(before, snapshot_manager(manager))
        manager.compute_cost_derivatives(3, values[3], 1e-4)
        assert_same_snapshot(before, snapshot_manager(manager))
        self.assertEqual(manager.state, ManagerState.EVALUATED)
        self.assertFalse(manager.full_trajectory.has_backup)

    def test_derivative_restores_state_on_error(self):
        cost = FailingCost()
        model = SerialArm()
        trajectory = FullTrajectory(model.num_joints, 11, 0.05,
                                    keyframe_interval=5)
        trajectory.fill_joint_trajectory([0.1, 0.2, 0.3])
        manager = EvaluationManager()
        manager.initialize(trajectory, model, model.arm, FlatGround(),
                           [JointPositionCost(), cost])
        manager.evaluate()
        before = snapshot_manager(manager)
        cost.fail = True
        with self.assertRaises(RuntimeError):
            manager.compute_derivative(0, 0.2, 1e-3)
        assert_same_snapshot(before, snapshot_manager(manager))
        self.assertEqual(manager.state, ManagerState.EVALUATED)
        self.assertFalse(manager.full_trajectory.has_backup)
        with self.assertRaises(IndexError):
            manager.compute_derivative(manager.num_parameters, 0.0, 1e-3)
        cost.fail = False
        manager.compute_derivative(0, 0.2, 1e-3)

    def test_derivative_matches_analytic_gradient(self):
        model = SerialArm()
        trajectory = FullTrajectory(model.num_joints, 5, 0.1,
                                    keyframe_interval=1)
        trajectory.fill_joint_trajectory([0.1, -0.2, 0.3], [0.5, 0.4, -0.1])
        manager = EvaluationManager()
        manager.initialize(trajectory, model, model.free_arm, FlatGround(),
                           [JointPositionCost()])
        manager.evaluate()
        gradient = manager.compute_derivatives(
            manager.get_parameters(), eps=1e-6)

        q = trajectory.get_component_trajectory(ComponentType.POSITION)
        expected = np.zeros(manager.num_parameters)
        block = trajectory.parameter_map.block(ComponentType.POSITION,
                                               SubComponentType.JOINT)
        expected[block.start:block.start + block.size] = 2.0 * q.reshape(-1)
        testing.assert_almost_equal(gradient, expected, decimal=6)

    def test_derivative_matches_full_recomputation(self):
        manager = make_biped_manager()
        eps = 1e-4
        values = manager.get_parameters().values
        parameter_map = manager.full_trajectory.parameter_map
        indices = [0, 7,
                   parameter_of(manager, 0, ComponentType.POSITION,
                                SubComponentType.CONTACT_POSITION, 2),
                   parameter_of(manager, 5, ComponentType.POSITION,
                                SubComponentType.CONTACT_FORCE, 11)]
        for parameter_index in indices:
            derivative, cost_derivatives = manager.compute_cost_derivatives(
                parameter_index, values[parameter_index], eps)

            totals = []
            per_function = []
            for delta in (eps, -eps):
                other = manager.clone()
                perturbed = values.copy()
                perturbed[parameter_index] += delta
                other.set_parameters(perturbed)
                totals.append(other.evaluate())
                per_function.append(other.get_cost_per_function())
            expected = (totals[0] - totals[1]) / (2 * eps)
            self.assertAlmostEqual(derivative, expected, places=6,
                                   msg=str(parameter_map.trajectory_index(
                                       parameter_index)))
            testing.assert_almost_equal(
                cost_derivatives,
                (per_function[0] - per_function[1]) / (2 * eps), decimal=6)

    def test_worker_derivative_matches_canonical(self):
        manager = make_biped_manager()
        worker = manager.clone(reference=manager)
        self.assertIs(worker.reference, manager)
        self.assertIs(manager.reference, manager)
        values = manager.get_parameters().values
        indices = list(range(0, manager.num_parameters, 11))
        expected = manager.compute_derivatives(
            values, 1e-5, parameter_indices=indices)
        actual = worker.compute_derivatives(
            values, 1e-5, parameter_indices=indices)
        testing.assert_array_equal(actual, expected)

    def test_derivative_after_cost_activation(self):
        model = SerialArm()
        trajectory = FullTrajectory(model.num_joints, 11, 0.05,
                                    keyframe_interval=5)
        trajectory.fill_joint_trajectory([0.1, 0.2, 0.3], [0.4, -0.2, 0.1])
        manager = EvaluationManager()
        manager.initialize(trajectory, model, model.arm, FlatGround(),
                           [JointPositionCost()])
        manager.evaluate()
        values = manager.get_parameters().values
        expected = manager.compute_derivative(0, values[0], 1e-4)
        self.assertNotEqual(expected, 0.0)

        manager.cost_functions.add(JointPositionCost(name='extra'))
        with self.assertLogs('skcio.optimization.evaluation_manager',
                             level='WARNING'):
            derivative, cost_derivatives = manager.compute_cost_derivatives(
                0, values[0], 1e-4)
        self.assertAlmostEqual(derivative, 2.0 * expected)
        testing.assert_almost_equal(cost_derivatives, [expected, expected])
        self.assertEqual(manager.cost_matrix.shape, (manager.num_points, 2))
        self.assertEqual(manager.state, ManagerState.EVALUATED)
        self.assertFalse(manager.full_trajectory.has_backup)

        manager.evaluate()
        cost_per_function = manager.get_cost_per_function()
        self.assertAlmostEqual(cost_per_function[0], cost_per_function[1])

    def test_feasibility(self):
        model = SerialArm()
        trajectory = FullTrajectory(model.num_joints, 11, 0.05,
                                    keyframe_interval=5)
        manager = EvaluationManager()
        manager.initialize(trajectory, model, model.arm, FlatGround(),
                           [ConstantCost(), InfeasibleCost(7)])
        manager.evaluate()
        self.assertFalse(manager.is_last_trajectory_feasible())

        manager = EvaluationManager()
        manager.initialize(trajectory.clone(), model, model.arm,
                           FlatGround(), [ConstantCost(), InfeasibleCost(11)])
        manager.evaluate()
        self.assertTrue(manager.is_last_trajectory_feasible())

        manager = EvaluationManager(
            parameters=PlanningParameters(discard_range_feasibility=True))
        manager.initialize(trajectory.clone(), model, model.arm,
                           FlatGround(), [ConstantCost()])
        manager.evaluate()
        self.assertFalse(manager.is_last_trajectory_feasible())

    def test_cost_per_function(self):
        manager = make_biped_manager()
        per_function = manager.get_cost_per_function()
        self.assertEqual(len(per_function), len(manager.cost_functions))
        self.assertAlmostEqual(per_function.sum(),
                               manager.get_trajectory_cost())
        self.assertEqual(manager.cost_matrix.shape,
                         (manager.num_points, len(manager.cost_functions)))

    def test_clone(self):
        manager = make_biped_manager()
        other = manager.clone()
        self.assertIsNone(other._reference)
        self.assertIs(other.reference, other)
        self.assertIs(other.robot_model, manager.robot_model)
        self.assertIs(other.cost_functions, manager.cost_functions)
        self.assertIs(other.full_trajectory.parameter_map,
                      manager.full_trajectory.parameter_map)
        self.assertIsNot(other.collision_world, manager.collision_world)
        self.assertEqual(other.evaluate(), manager.get_trajectory_cost())

        other.torques[:] = 0.0
        other.dynamics_states[0].positions[:] = 0.0
        other.contact_variables[0][0].forces[:] = 1.0
        self.assertNotEqual(np.abs(manager.torques).sum(), 0.0)
        self.assertNotEqual(
            np.abs(manager.dynamics_states[0].positions).sum(), 0.0)
        self.assertNotEqual(manager.contact_variables[0][0].forces[0, 0], 1.0)

    def test_render(self):
        calls = []
        parameters = PlanningParameters(trajectory_duration=0.1,
                                        animate_path=True)
        model = Pendulum()
        trajectory = FullTrajectory.from_planning_parameters(
            parameters, model.num_joints)
        manager = EvaluationManager(
            parameters=parameters,
            render_hook=lambda m, is_best: calls.append(is_best))
        manager.initialize(trajectory, model, model.free_group, FlatGround(),
                           [ConstantCost()])
        manager.evaluate()
        manager.render()
        self.assertEqual(calls, [True])
        manager.best_cost = 0.0
        manager.render()
        self.assertEqual(calls, [True, False])

        manager.parameters = PlanningParameters()
        manager.render()
        self.assertEqual(len(calls), 2)

    def test_print_trajectory_cost(self):
        model = SerialArm()
        trajectory = FullTrajectory(model.num_joints, 11, 0.05,
                                    keyframe_interval=5)
        trajectory.fill_joint_trajectory([0.1, 0.2, 0.3])
        manager = EvaluationManager()
        manager.initialize(trajectory, model, model.arm, FlatGround(),
                           [JointPositionCost(), ConstantCost()])
        manager.evaluate()
        history = CostHistory(capacity=2)

        with self.assertLogs('skcio.optimization.evaluation_manager',
                             level='INFO'):
            self.assertTrue(manager.print_trajectory_cost(
                0, details=True, history=history))
        self.assertEqual(manager.best_cost, manager.get_trajectory_cost())
        self.assertFalse(manager.print_trajectory_cost(1, details=True,
                                                       history=history))
        self.assertEqual(len(history), 1)
        testing.assert_almost_equal(history.to_array()[0],
                                    manager.get_cost_per_function())

        manager.set_parameters(np.zeros(manager.num_parameters))
        manager.evaluate()
        self.assertTrue(manager.print_trajectory_cost(2, details=False,
                                                      history=history))
        self.assertEqual(len(history), 1)

        manager.reset_best_trajectory_cost()
        self.assertEqual(manager.best_cost, np.inf)
        self.assertTrue(manager.print_trajectory_cost(3, details=True,
                                                      history=history))
        self.assertTrue(history.full)
        self.assertEqual(history.names, ['joint_position', 'constant'])
