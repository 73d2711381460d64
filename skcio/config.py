"""Planning parameters."""

import copy

import numpy as np


_DEFAULT_COST_WEIGHTS = {
    'smoothness': 0.0001,
    'torque': 0.0001,
    'contact_invariance': 1.0,
    'friction_cone': 1.0,
    'collision': 1.0,
}


class PlanningParameters(object):
    """Configuration shared by the trajectory store and evaluation manager.

    Parameters
    ----------
    trajectory_duration : float
        Duration of the trajectory in seconds.
    trajectory_discretization : float
        Time between two consecutive trajectory points.
    keyframe_interval : int
        Number of points between two joint keyframes.
    contact_keyframe_interval : int or None
        Number of points between two contact keyframes (contact phase
        length). ``None`` uses ``keyframe_interval``.
    num_contacts : int
        Number of contacts the planning group is expected to declare.
    num_contact_points : int
        Number of sub-contact points per contact.
    derivative_eps : float
        Finite-difference step.
    gravity : array-like, shape (3,)
        Gravity vector in the world frame.
    friction_coefficient : float
        Coulomb friction coefficient used by the friction cone cost.
    torque_limit : float or None
        Absolute joint torque above which a point is infeasible.
    cost_weights : dict
        Weight of each named cost function. Costs with a non-positive
        weight are not activated.
    animate_path : bool
        Call the render hook with the joint path.
    animate_endeffector : bool
        Call the render hook with end-effector and contact markers.
    discard_range_feasibility : bool
        If True, range evaluation always reports infeasible, as earlier
        planner versions did. The default departs from that on purpose
        and reports the real AND-reduction of per-point feasibility, so
        adding an infeasible point can only turn a feasible trajectory
        infeasible.
    """

    def __init__(self,
                 trajectory_duration=1.0,
                 trajectory_discretization=0.05,
                 keyframe_interval=5,
                 contact_keyframe_interval=None,
                 num_contacts=0,
                 num_contact_points=4,
                 derivative_eps=1e-6,
                 gravity=(0.0, 0.0, -9.81),
                 friction_coefficient=0.7,
                 torque_limit=None,
                 cost_weights=None,
                 animate_path=False,
                 animate_endeffector=False,
                 discard_range_feasibility=False):
        if trajectory_discretization <= 0.0:
            raise ValueError(
                'trajectory_discretization must be positive, got {}'.format(
                    trajectory_discretization))
        if keyframe_interval < 1:
            raise ValueError(
                'keyframe_interval must be >= 1, got {}'.format(
                    keyframe_interval))
        self.trajectory_duration = float(trajectory_duration)
        self.trajectory_discretization = float(trajectory_discretization)
        self.keyframe_interval = int(keyframe_interval)
        if contact_keyframe_interval is None:
            contact_keyframe_interval = keyframe_interval
        self.contact_keyframe_interval = int(contact_keyframe_interval)
        self.num_contacts = int(num_contacts)
        self.num_contact_points = int(num_contact_points)
        self.derivative_eps = float(derivative_eps)
        self.gravity = np.asarray(gravity, dtype=np.float64)
        self.friction_coefficient = float(friction_coefficient)
        self.torque_limit = torque_limit
        weights = copy.deepcopy(_DEFAULT_COST_WEIGHTS)
        if cost_weights is not None:
            weights.update(cost_weights)
        self.cost_weights = weights
        self.animate_path = animate_path
        self.animate_endeffector = animate_endeffector
        self.discard_range_feasibility = discard_range_feasibility

    @property
    def num_points(self):
        """Number of trajectory points covering the duration."""
        return int(round(self.trajectory_duration
                         / self.trajectory_discretization)) + 1

    def get_cost_weight(self, name):
        return self.cost_weights.get(name, 0.0)

    @classmethod
    def from_dict(cls, config):
        """Create parameters from a plain dictionary.

        Unknown keys raise ``ValueError`` so that typos in configuration
        files do not go unnoticed.
        """
        config = dict(config)
        allowed = set(cls().to_dict().keys())
        unknown = set(config.keys()) - allowed
        if unknown:
            raise ValueError(
                'Unknown planning parameters: {}'.format(sorted(unknown)))
        return cls(**config)

    def to_dict(self):
        """Export parameters to a dictionary for serialization."""
        return {
            'trajectory_duration': self.trajectory_duration,
            'trajectory_discretization': self.trajectory_discretization,
            'keyframe_interval': self.keyframe_interval,
            'contact_keyframe_interval': self.contact_keyframe_interval,
            'num_contacts': self.num_contacts,
            'num_contact_points': self.num_contact_points,
            'derivative_eps': self.derivative_eps,
            'gravity': self.gravity.tolist(),
            'friction_coefficient': self.friction_coefficient,
            'torque_limit': self.torque_limit,
            'cost_weights': dict(self.cost_weights),
            'animate_path': self.animate_path,
            'animate_endeffector': self.animate_endeffector,
            'discard_range_feasibility': self.discard_range_feasibility,
        }

    def __repr__(self):
        return '<{} duration={} dt={} keyframe_interval={}>'.format(
            self.__class__.__name__, self.trajectory_duration,
            self.trajectory_discretization, self.keyframe_interval)
