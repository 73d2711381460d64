"""Built-in trajectory cost functions."""

import numpy as np

from skcio.cost.base import TrajectoryCost
from skcio.cost.registry import register_cost
from skcio.trajectory.index import ComponentType
from skcio.trajectory.index import SubComponentType


_CONTACT_SUB_COMPONENTS = (SubComponentType.CONTACT_POSITION,
                           SubComponentType.CONTACT_FORCE)


def _group_joint_values(context, point, component):
    values = context.full_trajectory.get_trajectory_point(
        point, component, SubComponentType.JOINT)
    return values[context.planning_group.joint_indices]


@register_cost('smoothness')
class SmoothnessCost(TrajectoryCost):
    """Sum of squared joint accelerations of the planning group."""

    invariant_sub_components = _CONTACT_SUB_COMPONENTS

    def evaluate(self, context, point):
        acc = _group_joint_values(context, point, ComponentType.ACCELERATION)
        return float(np.dot(acc, acc)), True


@register_cost('joint_position')
class JointPositionCost(TrajectoryCost):
    """Sum of squared joint positions of the planning group.

    Its gradient with respect to a keyframe position is known in closed
    form, which makes it useful to validate finite differences.
    """

    invariant_sub_components = _CONTACT_SUB_COMPONENTS

    def evaluate(self, context, point):
        q = _group_joint_values(context, point, ComponentType.POSITION)
        return float(np.dot(q, q)), True


@register_cost('torque')
class TorqueCost(TrajectoryCost):
    """Sum of squared joint torques.

    A point is infeasible when the absolute torque of a joint exceeds
    ``torque_limit``, read from ``config`` or from the planning
    parameters. No limit means every point is feasible.
    """

    def _torque_limit(self, context):
        if 'torque_limit' in self.config:
            return self.config['torque_limit']
        return context.parameters.torque_limit

    def evaluate(self, context, point):
        torques = context.torques[point][
            context.planning_group.joint_indices]
        cost = float(np.dot(torques, torques))
        limit = self._torque_limit(context)
        feasible = limit is None or bool(np.all(np.abs(torques) <= limit))
        return cost, feasible


@register_cost('contact_invariance')
class ContactInvarianceCost(TrajectoryCost):
    """Keep active contacts on the body and on the ground.

    For every contact the activation is the sum of the sub-point force
    magnitudes. The cost is the activation times the squared distance
    between the contact body and the contact position, plus the squared
    distance between the contact position and its ground projection.
    """

    def evaluate(self, context, point):
        state = context.dynamics_states[point]
        cost = 0.0
        for variables, contact in zip(context.contact_variables[point],
                                      context.planning_group.contact_points):
            activation = np.sum(np.linalg.norm(variables.forces, axis=1))
            if activation == 0.0:
                continue
            body_error = state.positions[contact.body_id] - variables.position
            ground_error = variables.projected_position - variables.position
            cost += activation * (np.dot(body_error, body_error)
                                  + np.dot(ground_error, ground_error))
        return float(cost), True


@register_cost('friction_cone')
class FrictionConeCost(TrajectoryCost):
    """Penalize sub-point forces outside the Coulomb friction cone.

    The violation of a force ``f`` with normal ``n`` is
    ``max(0, |f_t| - mu f_n)`` plus ``max(0, -f_n)`` for pulling forces.
    The cost is the sum of squared violations and a point is infeasible
    when any violation exceeds ``tolerance``.
    """

    invariant_sub_components = (SubComponentType.JOINT,)

    def _friction_coefficient(self, context):
        if 'friction_coefficient' in self.config:
            return self.config['friction_coefficient']
        return context.parameters.friction_coefficient

    def evaluate(self, context, point):
        mu = self._friction_coefficient(context)
        tolerance = self.config.get('tolerance', 1e-9)
        cost = 0.0
        feasible = True
        for variables in context.contact_variables[point]:
            normal = variables.normal
            normal_forces = variables.forces.dot(normal)
            tangential = variables.forces - np.outer(normal_forces, normal)
            tangential_norms = np.linalg.norm(tangential, axis=1)
            violation = np.maximum(0.0, tangential_norms - mu * normal_forces)
            violation += np.maximum(0.0, -normal_forces)
            cost += float(np.dot(violation, violation))
            if np.any(violation > tolerance):
                feasible = False
        return cost, feasible


@register_cost('collision')
class CollisionCost(TrajectoryCost):
    """Hinge penalty on the distance of every body to the obstacles.

    ``margin`` (default 0.05) is the distance below which the penalty
    starts. A point is infeasible when a body penetrates an obstacle.
    """

    invariant_sub_components = _CONTACT_SUB_COMPONENTS

    def evaluate(self, context, point):
        world = context.collision_world
        if world is None or len(world) == 0:
            return 0.0, True
        margin = self.config.get('margin', 0.05)
        state = context.dynamics_states[point]
        cost = 0.0
        feasible = True
        for body_id in range(state.num_bodies):
            distance = world.body_distance(body_id, state.positions[body_id])
            if distance < 0.0:
                feasible = False
            if distance < margin:
                cost += (margin - distance) ** 2
        return cost, feasible


@register_cost('constant')
class ConstantCost(TrajectoryCost):
    """Same value at every point."""

    def __init__(self, name=None, weight=1.0, enabled=True, config=None,
                 value=None):
        super(ConstantCost, self).__init__(
            name=name, weight=weight, enabled=enabled, config=config)
        if value is None:
            value = self.config.get('value', 1.0)
        self.value = float(value)

    def evaluate(self, context, point):
        return self.value, True
