"""Trajectory evaluation and finite-difference derivative engine."""

from enum import IntEnum
from logging import getLogger

import numpy as np

from skcio.config import PlanningParameters
from skcio.contact.projector import ContactProjector
from skcio.cost.evaluator import CostMatrixEvaluator
from skcio.cost.registry import CostFunctionRegistry
from skcio.math import rotation_to_exponential_map
from skcio.trajectory.contact_variables import ContactVariables
from skcio.trajectory.index import ComponentType
from skcio.trajectory.index import SubComponentType
from skcio.trajectory.parameter import ParameterTrajectory


logger = getLogger(__name__)


class ManagerState(IntEnum):
    UNINITIALIZED = 0
    INITIALIZED = 1
    EVALUATED = 2
    PERTURBING = 3


class EvaluationManager(object):
    """Evaluate a trajectory and its cost derivatives.

    One manager owns a full trajectory and every quantity derived from it
    (dynamics state, joint torques, external forces, contact variables and
    the ``(points, cost functions)`` cost matrix). Derivatives are central
    finite differences that only recompute the points affected by one
    parameter, copying the rest of the derived state from the reference
    manager.

    Parameters
    ----------
    reference : EvaluationManager, optional
        Canonical manager read during derivative computation. None means
        this manager is its own reference. The reference is only read.
    parameters : skcio.config.PlanningParameters, optional
        Planning parameters. Defaults are used if omitted.
    render_hook : callable, optional
        Called as ``render_hook(manager, is_best)`` by :meth:`render`.

    Examples
    --------
    >>> from skcio.config import PlanningParameters
    >>> from skcio.contact import FlatGround
    >>> from skcio.cost import ConstantCost
    >>> from skcio.model import Pendulum
    >>> from skcio.optimization import EvaluationManager
    >>> from skcio.trajectory import FullTrajectory
    >>> model = Pendulum()
    >>> trajectory = FullTrajectory(model.num_joints, 1, 0.05)
    >>> manager = EvaluationManager()
    >>> manager.initialize(trajectory, model, model.free_group,
    ...                    FlatGround(), [ConstantCost(value=2.0)])
    >>> manager.evaluate()
    2.0
    """

    def __init__(self, reference=None, parameters=None, render_hook=None):
        if parameters is None:
            parameters = PlanningParameters()
        self._reference = reference
        self.parameters = parameters
        self.render_hook = render_hook
        self.state = ManagerState.UNINITIALIZED

        self.full_trajectory = None
        self.parameter_trajectory = None
        self.parameter_modified = False
        self.robot_model = None
        self.planning_group = None
        self.ground = None
        self.collision_world = None
        self.cost_functions = None
        self.evaluator = None
        self.contact_projector = None
        self.planning_start_time = 0.0
        self.trajectory_start_time = 0.0

        self.dynamics_states = None
        self.torques = None
        self.external_forces = None
        self.contact_variables = None
        self.cost_matrix = None

        self.last_trajectory_feasible = False
        self.best_cost = np.inf

    @property
    def reference(self):
        if self._reference is None:
            return self
        return self._reference

    @property
    def num_points(self):
        return self.full_trajectory.num_points

    @property
    def num_parameters(self):
        return len(self.parameter_trajectory)

    def initialize(self, trajectory, robot_model, planning_group, ground,
                   cost_functions, planning_start_time=0.0,
                   trajectory_start_time=0.0, collision_world=None):
        """Bind the collaborators and allocate the derived state.

        Parameters
        ----------
        trajectory : skcio.trajectory.FullTrajectory
            Trajectory owned by this manager from now on.
        robot_model : skcio.model.RigidBodyModel
            Dynamics model.
        planning_group : skcio.model.PlanningGroup
            Optimized joints and contacts.
        ground : skcio.contact.GroundModel
            Support surface of the contacts.
        cost_functions : CostFunctionRegistry or list
            Active cost functions.
        planning_start_time, trajectory_start_time : float
            Time stamps of the planning request.
        collision_world : skcio.collision.CollisionWorld, optional
            Obstacles queried by the collision cost.
        """
        if trajectory.num_joints != robot_model.num_joints:
            raise ValueError(
                'trajectory has {} joints, robot model has {}'.format(
                    trajectory.num_joints, robot_model.num_joints))
        if trajectory.num_contacts != planning_group.num_contacts:
            raise ValueError(
                'trajectory has {} contacts, planning group has {}'.format(
                    trajectory.num_contacts, planning_group.num_contacts))
        for contact in planning_group.contact_points:
            if contact.num_points != trajectory.num_contact_points:
                raise ValueError(
                    'contact {} has {} sub-points, trajectory expects {}'
                    .format(contact.name, contact.num_points,
                            trajectory.num_contact_points))
        if not isinstance(cost_functions, CostFunctionRegistry):
            cost_functions = CostFunctionRegistry(cost_functions)

        self.full_trajectory = trajectory
        self.robot_model = robot_model
        self.planning_group = planning_group
        self.ground = ground
        self.collision_world = collision_world
        self.cost_functions = cost_functions
        self.planning_start_time = planning_start_time
        self.trajectory_start_time = trajectory_start_time
        self.robot_model.gravity = np.array(self.parameters.gravity,
                                            dtype=np.float64)
        self.evaluator = CostMatrixEvaluator(
            cost_functions,
            discard_range_feasibility=(
                self.parameters.discard_range_feasibility))
        self.contact_projector = ContactProjector(ground, planning_group)

        num_points = trajectory.num_points
        self.dynamics_states = [robot_model.create_state()
                                for _ in range(num_points)]
        self.torques = np.zeros((num_points, robot_model.num_joints))
        self.external_forces = np.zeros(
            (num_points, robot_model.num_bodies, 6))
        self.contact_variables = [
            [ContactVariables(trajectory.num_contact_points)
             for _ in range(trajectory.num_contacts)]
            for _ in range(num_points)]
        self.cost_matrix = np.zeros((num_points, len(cost_functions)))

        trajectory.build_parameter_map(planning_group)
        trajectory.interpolate_keyframes(planning_group)
        self._initialize_contacts()
        self.parameter_trajectory = trajectory.extract_parameters()
        self.parameter_modified = False
        self.last_trajectory_feasible = False
        self.state = ManagerState.INITIALIZED
        logger.debug('Initialized %r: %d points, %d parameters, '
                     '%d cost functions', self, num_points,
                     self.num_parameters, len(cost_functions))

    def _initialize_contacts(self):
        """Seed contact poses from the contact bodies with zero force."""
        if self.full_trajectory.num_contacts == 0:
            return
        for point in range(self.num_points):
            q, qd, qdd = self._joint_state(point)
            state = self.dynamics_states[point]
            self.robot_model.propagate_full(state, q, qd, qdd)
            variables = self.contact_variables[point]
            for c, contact in enumerate(self.planning_group.contact_points):
                position, rotation = self.robot_model.body_transform(
                    state, contact.body_id)
                variables[c].set_variable(0.0)
                variables[c].position[:] = position
                variables[c].orientation[:] = rotation_to_exponential_map(
                    rotation)
            self.full_trajectory.set_contact_variables(point, variables)
        self.full_trajectory.interpolate_contact_keyframes()

    def _require_initialized(self):
        if self.state == ManagerState.UNINITIALIZED:
            raise RuntimeError(
                'evaluation manager is not initialized. '
                'Call initialize first.')

    def _joint_state(self, point):
        trajectory = self.full_trajectory
        return (trajectory.get_trajectory_point(point, ComponentType.POSITION),
                trajectory.get_trajectory_point(point, ComponentType.VELOCITY),
                trajectory.get_trajectory_point(
                    point, ComponentType.ACCELERATION))

    def get_parameters(self):
        """Copy of the current parameter trajectory."""
        self._require_initialized()
        return self.parameter_trajectory.copy()

    def set_parameters(self, parameters):
        """Replace the parameter values.

        They are pushed into the full trajectory by the next
        :meth:`evaluate`.
        """
        self._require_initialized()
        if isinstance(parameters, ParameterTrajectory):
            values = parameters.values
        else:
            values = np.asarray(parameters, dtype=np.float64).reshape(-1)
        if len(values) != self.num_parameters:
            raise ValueError('expected {} parameter values, got {}'.format(
                self.num_parameters, len(values)))
        self.parameter_trajectory.values[:] = values
        self.parameter_modified = True
        if self.state == ManagerState.EVALUATED:
            self.state = ManagerState.INITIALIZED

    def _push_parameters(self):
        if self.parameter_modified:
            self.full_trajectory.update_from_parameter_trajectory(
                self.parameter_trajectory, self.planning_group)
            self.parameter_modified = False

    def evaluate(self):
        """Evaluate every point and return the total cost."""
        self._require_initialized()
        if self.state == ManagerState.PERTURBING:
            raise RuntimeError('cannot evaluate during a perturbation')
        self._push_parameters()

        num_points = self.num_points
        self.perform_full_forward_kinematics_and_dynamics(0, num_points)

        for cost_function in self.cost_functions:
            cost_function.pre_evaluate(self)
        feasible, self.cost_matrix = self.evaluator.evaluate(
            self, 0, num_points, self.cost_matrix)
        for cost_function in self.cost_functions:
            cost_function.post_evaluate(self)

        self.last_trajectory_feasible = feasible
        self.state = ManagerState.EVALUATED
        return self.get_trajectory_cost()

    def _update_contacts(self, point):
        variables = self.full_trajectory.get_contact_variables(
            point, self.contact_variables[point])
        self.contact_projector.project(variables)
        self.contact_projector.compute_external_forces(
            variables, self.external_forces[point])

    def perform_full_forward_kinematics_and_dynamics(self, begin, end):
        """Recompute every derived quantity of points ``[begin, end)``."""
        for point in range(begin, end):
            self._update_contacts(point)
            q, qd, qdd = self._joint_state(point)
            self.torques[point] = self.robot_model.propagate_full(
                self.dynamics_states[point], q, qd, qdd,
                self.external_forces[point])

    def perform_partial_forward_kinematics_and_dynamics(self, begin, end,
                                                        index):
        """Recompute points ``[begin, end)`` after perturbing ``index``.

        State that the perturbed parameter cannot change is copied from
        the reference manager.
        """
        reference = self.reference
        if index.sub_component != SubComponentType.JOINT:
            for point in range(begin, end):
                state = self.dynamics_states[point]
                state.copy_kinematics_from(reference.dynamics_states[point])
                self._update_contacts(point)
                self.torques[point] = self.robot_model.propagate_dynamics(
                    state, self.external_forces[point])
            return

        group_joint = self.planning_group.group_joints[
            self.full_trajectory.parameter_map.group_joint_index(
                index.element)]
        affected_body_ids = group_joint.affected_body_ids
        for point in range(begin, end):
            for variables, source in zip(self.contact_variables[point],
                                         reference.contact_variables[point]):
                variables.copy_from(source)
            self.external_forces[point] = reference.external_forces[point]
            self.torques[point] = reference.torques[point]
            state = self.dynamics_states[point]
            state.copy_from(reference.dynamics_states[point])
            q, qd, qdd = self._joint_state(point)
            self.torques[point] = self.robot_model.propagate_partial(
                state, q, qd, qdd, self.external_forces[point],
                affected_body_ids)

    def _snapshot_range(self, begin, end):
        return {
            'dynamics_states': [self.dynamics_states[point].copy()
                                for point in range(begin, end)],
            'torques': self.torques[begin:end].copy(),
            'external_forces': self.external_forces[begin:end].copy(),
            'contact_variables': [
                [variables.copy() for variables in self.contact_variables[
                    point]]
                for point in range(begin, end)],
            'cost_matrix': self.cost_matrix[begin:end].copy(),
        }

    def _restore_range(self, begin, end, snapshot):
        for point, state in zip(range(begin, end),
                                snapshot['dynamics_states']):
            self.dynamics_states[point].copy_from(state)
        self.torques[begin:end] = snapshot['torques']
        self.external_forces[begin:end] = snapshot['external_forces']
        for point, saved in zip(range(begin, end),
                                snapshot['contact_variables']):
            for variables, source in zip(self.contact_variables[point],
                                         saved):
                variables.copy_from(source)
        self.cost_matrix[begin:end] = snapshot['cost_matrix']

    def _check_derivative_ready(self):
        self._require_initialized()
        if self.state == ManagerState.PERTURBING:
            raise RuntimeError('a derivative is already being computed')
        if self.reference.state != ManagerState.EVALUATED:
            raise RuntimeError(
                'reference manager must be evaluated before computing '
                'derivatives')
        if self.parameter_modified:
            raise RuntimeError(
                'parameters were modified after the last evaluation')

    def _resize_cost_matrix(self):
        """Reset the cost matrix if cost functions were (de)activated."""
        num_cost_functions = len(self.cost_functions)
        if self.cost_matrix.shape[1] == num_cost_functions:
            return
        logger.warning('cost function count changed from %d to %d; '
                       'resetting the cost matrix',
                       self.cost_matrix.shape[1], num_cost_functions)
        self.cost_matrix = np.zeros((self.num_points, num_cost_functions))

    def _evaluate_perturbations(self, parameter_index, value, eps):
        """Range costs of the +eps and -eps perturbations of a parameter.

        Returns
        -------
        plus, minus : tuple of (float, numpy.ndarray)
            Total and per-function cost of the affected range.
        """
        self._check_derivative_ready()
        trajectory = self.full_trajectory
        index = trajectory.parameter_map.trajectory_index(parameter_index)
        self._resize_cost_matrix()

        previous_state = self.state
        self.state = ManagerState.PERTURBING
        snapshot = None
        begin = end = 0
        results = []
        try:
            for delta, is_first in ((eps, True), (-eps, False)):
                begin, end = trajectory.direct_change_for_derivatives(
                    parameter_index, value + delta, is_first)
                if snapshot is None:
                    snapshot = self._snapshot_range(begin, end)
                self.perform_partial_forward_kinematics_and_dynamics(
                    begin, end, index)
                _, self.cost_matrix = self.evaluator.evaluate(
                    self, begin, end, self.cost_matrix, index)
                block = self.cost_matrix[begin:end]
                results.append((block.sum(), block.sum(axis=0)))
        finally:
            if trajectory.has_backup:
                trajectory.restore_backup_trajectories()
            if snapshot is not None:
                self._restore_range(begin, end, snapshot)
            self.state = previous_state
        logger.debug('derivative of parameter %d over points [%d, %d)',
                     parameter_index, begin, end)
        return results[0], results[1]

    def compute_derivative(self, parameter_index, value, eps):
        """Central difference of the total cost for one parameter.

        Parameters
        ----------
        parameter_index : int
            Parameter to differentiate.
        value : float
            Current value of the parameter.
        eps : float
            Finite-difference step.

        Returns
        -------
        derivative : float
        """
        (plus, _), (minus, _) = self._evaluate_perturbations(
            parameter_index, value, eps)
        return (plus - minus) / (2 * eps)

    def compute_cost_derivatives(self, parameter_index, value, eps):
        """Central difference of the total and of every cost function.

        Returns
        -------
        derivative : float
        cost_derivatives : numpy.ndarray
            One entry per active cost function.
        """
        (plus, plus_costs), (minus, minus_costs) = \
            self._evaluate_perturbations(parameter_index, value, eps)
        return ((plus - minus) / (2 * eps),
                (plus_costs - minus_costs) / (2 * eps))

    def compute_derivatives(self, parameters, eps=None,
                            parameter_indices=None, per_cost=False):
        """Gradient of the total cost at ``parameters``.

        If this manager is its own reference it is evaluated at
        ``parameters`` first. Otherwise the reference must already be
        evaluated at the same parameters.

        Parameters
        ----------
        parameters : ParameterTrajectory or array-like
            Point of differentiation.
        eps : float, optional
            Finite-difference step. Defaults to
            ``parameters.derivative_eps`` of the planning parameters.
        parameter_indices : sequence of int, optional
            Parameters to differentiate. Others are left at zero.
        per_cost : bool
            Also return the gradient of every cost function.

        Returns
        -------
        gradient : numpy.ndarray
            Derivative per parameter.
        cost_gradients : numpy.ndarray
            ``(cost functions, parameters)`` array, only if ``per_cost``.
        """
        if eps is None:
            eps = self.parameters.derivative_eps
        self.set_parameters(parameters)
        if self.reference is self:
            self.evaluate()
        else:
            self._push_parameters()
        values = self.parameter_trajectory.values
        if parameter_indices is None:
            parameter_indices = range(len(values))

        gradient = np.zeros(len(values))
        cost_gradients = np.zeros((len(self.cost_functions), len(values)))
        for i in parameter_indices:
            if per_cost:
                gradient[i], cost_gradients[:, i] = \
                    self.compute_cost_derivatives(i, values[i], eps)
            else:
                gradient[i] = self.compute_derivative(i, values[i], eps)
        if per_cost:
            return gradient, cost_gradients
        return gradient

    def get_trajectory_cost(self):
        return float(self.cost_matrix.sum())

    def get_cost_per_function(self):
        return self.cost_matrix.sum(axis=0)

    def is_last_trajectory_feasible(self):
        return self.last_trajectory_feasible

    def clone(self, reference=None):
        """Independent manager for another worker.

        The trajectory, dynamics states, torques, external forces, contact
        variables, cost matrix and the collision world are copied. The
        robot model, ground, planning group, parameter map, cost functions
        and planning parameters are shared.

        Parameters
        ----------
        reference : EvaluationManager, optional
            Reference of the clone. Defaults to the reference of this
            manager as given at construction.
        """
        if self.state == ManagerState.PERTURBING:
            raise RuntimeError('cannot clone during a perturbation')
        if reference is None:
            reference = self._reference
        other = EvaluationManager(reference=reference,
                                  parameters=self.parameters,
                                  render_hook=self.render_hook)
        other.state = self.state
        if self.state == ManagerState.UNINITIALIZED:
            return other

        other.full_trajectory = self.full_trajectory.clone()
        other.parameter_trajectory = self.parameter_trajectory.copy()
        other.parameter_modified = self.parameter_modified
        other.robot_model = self.robot_model
        other.planning_group = self.planning_group
        other.ground = self.ground
        if self.collision_world is not None:
            other.collision_world = self.collision_world.clone()
        other.cost_functions = self.cost_functions
        other.evaluator = self.evaluator
        other.contact_projector = self.contact_projector
        other.planning_start_time = self.planning_start_time
        other.trajectory_start_time = self.trajectory_start_time

        other.dynamics_states = [state.copy()
                                 for state in self.dynamics_states]
        other.torques = self.torques.copy()
        other.external_forces = self.external_forces.copy()
        other.contact_variables = [
            [variables.copy() for variables in point_variables]
            for point_variables in self.contact_variables]
        other.cost_matrix = self.cost_matrix.copy()
        other.last_trajectory_feasible = self.last_trajectory_feasible
        other.best_cost = self.best_cost
        return other

    def render(self):
        """Call the render hook if animation is enabled."""
        if self.render_hook is None:
            return
        if not (self.parameters.animate_path
                or self.parameters.animate_endeffector):
            return
        is_best = self.get_trajectory_cost() <= self.best_cost
        self.render_hook(self, is_best)

    def print_trajectory_cost(self, iteration, details=False, history=None):
        """Track and log the best trajectory cost.

        Parameters
        ----------
        iteration : int
            Optimizer iteration, used in messages.
        details : bool
            Log every improvement with per-function costs.
        history : skcio.optimization.CostHistory, optional
            Receives the per-function costs of every logged improvement.

        Returns
        -------
        is_best : bool
            True if the current cost improved on the best one.
        """
        cost = self.get_trajectory_cost()
        old_best = self.best_cost
        is_best = cost < self.best_cost
        if is_best:
            self.best_cost = cost
        if not (details and is_best):
            return is_best

        logger.info('[%d] Trajectory cost : %.15f -> %.15f',
                    iteration, old_best, self.best_cost)
        cost_per_function = self.get_cost_per_function()
        for name, sub_cost in zip(self.cost_functions.names,
                                  cost_per_function):
            logger.info('%s : %.15f', name, sub_cost)
        if history is not None:
            if history.append(iteration, cost_per_function,
                              self.cost_functions.names):
                history.log_table()
        return is_best

    def reset_best_trajectory_cost(self):
        self.best_cost = np.inf

    def __repr__(self):
        return '<{} state={}>'.format(
            self.__class__.__name__, self.state.name)
