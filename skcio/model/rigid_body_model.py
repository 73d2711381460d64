"""Rigid-body model with incremental kinematics and inverse dynamics.

The model is a kinematic tree of bodies, each attached to its parent by a
revolute, prismatic or fixed joint. Bodies are stored in topological order
(a parent always has a smaller id than its children), so a forward pass over
increasing ids and a backward pass over decreasing ids implement the
recursive Newton-Euler algorithm.

All quantities of the working state are expressed in the world frame.
Spatial forces are 6-vectors ``[moment about the world origin, force]``.

Three propagation modes are provided:

- :meth:`RigidBodyModel.propagate_full`: forward kinematics of every body,
  then the backward force pass.
- :meth:`RigidBodyModel.propagate_partial`: forward kinematics of the given
  bodies only (the others must already hold valid state), then the backward
  force pass.
- :meth:`RigidBodyModel.propagate_dynamics`: backward force pass only, for
  changes of the external forces.

Given the same inputs all three produce bit-identical torques.
"""

from logging import getLogger

import numpy as np

from skcio.math import rodrigues


logger = getLogger(__name__)


_JOINT_TYPES = ('revolute', 'prismatic', 'fixed')


class Body(object):
    """One body of a :class:`RigidBodyModel` and the joint to its parent."""

    def __init__(self, name, body_id, parent_id, joint_type, joint_name,
                 axis, translation, rotation, mass, center_of_mass,
                 inertia):
        self.name = name
        self.body_id = body_id
        self.parent_id = parent_id
        self.joint_type = joint_type
        self.joint_name = joint_name
        self.axis = axis
        self.translation = translation
        self.rotation = rotation
        self.mass = mass
        self.center_of_mass = center_of_mass
        self.inertia = inertia
        self.joint_index = None

    def __repr__(self):
        return '<Body {} id={} parent={} joint={}>'.format(
            self.name, self.body_id, self.parent_id, self.joint_type)


class DynamicsState(object):
    """Working state of a :class:`RigidBodyModel` at one trajectory point.

    Attributes
    ----------
    positions : numpy.ndarray (B, 3)
        Body frame origins.
    rotations : numpy.ndarray (B, 3, 3)
        Body frame orientations.
    joint_axes : numpy.ndarray (B, 3)
        Joint axes in the world frame.
    joint_origins : numpy.ndarray (B, 3)
        Points the joint axes pass through.
    linear_velocities, angular_velocities : numpy.ndarray (B, 3)
        Velocity of the body origin and angular velocity.
    linear_accelerations, angular_accelerations : numpy.ndarray (B, 3)
        Acceleration of the body origin and angular acceleration.
    forces : numpy.ndarray (B, 6)
        Spatial force transmitted by the joint of each body to its subtree.
    """

    _KINEMATIC_FIELDS = ('positions', 'rotations', 'joint_axes',
                         'joint_origins', 'linear_velocities',
                         'angular_velocities', 'linear_accelerations',
                         'angular_accelerations')
    _FIELDS = _KINEMATIC_FIELDS + ('forces',)

    def __init__(self, num_bodies):
        self.num_bodies = num_bodies
        self.positions = np.zeros((num_bodies, 3))
        self.rotations = np.tile(np.eye(3), (num_bodies, 1, 1))
        self.joint_axes = np.zeros((num_bodies, 3))
        self.joint_origins = np.zeros((num_bodies, 3))
        self.linear_velocities = np.zeros((num_bodies, 3))
        self.angular_velocities = np.zeros((num_bodies, 3))
        self.linear_accelerations = np.zeros((num_bodies, 3))
        self.angular_accelerations = np.zeros((num_bodies, 3))
        self.forces = np.zeros((num_bodies, 6))

    def copy(self):
        other = DynamicsState.__new__(DynamicsState)
        other.num_bodies = self.num_bodies
        for name in self._FIELDS:
            setattr(other, name, getattr(self, name).copy())
        return other

    def copy_from(self, other):
        """Overwrite every field with the values of ``other``."""
        for name in self._FIELDS:
            getattr(self, name)[...] = getattr(other, name)

    def copy_kinematics_from(self, other):
        for name in self._KINEMATIC_FIELDS:
            getattr(self, name)[...] = getattr(other, name)

    def allclose(self, other, rtol=1e-9, atol=1e-12):
        return all(np.allclose(getattr(self, name), getattr(other, name),
                               rtol=rtol, atol=atol)
                   for name in self._FIELDS)


class RigidBodyModel(object):
    """Kinematic tree used to propagate trajectory points.

    Parameters
    ----------
    name : str
        Model name.
    base_position : array-like, shape (3,), optional
        Position of the fixed base frame.
    base_rotation : array-like, shape (3, 3), optional
        Orientation of the fixed base frame.
    gravity : array-like, shape (3,)
        Gravity vector in the world frame.

    Examples
    --------
    >>> import numpy as np
    >>> from skcio.model import RigidBodyModel
    >>> model = RigidBodyModel()
    >>> link = model.add_body('link', axis=[0, 1, 0], mass=1.0,
    ...                       center_of_mass=[1.0, 0.0, 0.0])
    >>> state = model.create_state()
    >>> model.propagate_full(state, np.zeros(1), np.zeros(1), np.zeros(1))
    array([-9.81])
    """

    def __init__(self, name='robot', base_position=None, base_rotation=None,
                 gravity=(0.0, 0.0, -9.81)):
        self.name = name
        if base_position is None:
            base_position = np.zeros(3)
        if base_rotation is None:
            base_rotation = np.eye(3)
        self.base_position = np.array(base_position, dtype=np.float64)
        self.base_rotation = np.array(base_rotation, dtype=np.float64)
        self.gravity = np.array(gravity, dtype=np.float64)
        self.bodies = []
        self._children = []
        self._joint_body_ids = []
        self._descendants = {}

    def add_body(self, name, parent=None, joint_type='revolute',
                 axis=(0.0, 0.0, 1.0), translation=(0.0, 0.0, 0.0),
                 rotation=None, mass=0.0, center_of_mass=(0.0, 0.0, 0.0),
                 inertia=None, joint_name=None):
        """Append a body attached to ``parent``.

        Parameters
        ----------
        name : str
            Unique body name.
        parent : int or str or None
            Parent body id or name. None attaches the body to the base.
        joint_type : str
            'revolute', 'prismatic' or 'fixed'.
        axis : array-like, shape (3,)
            Joint axis in the joint frame.
        translation, rotation :
            Static transform from the parent frame to the joint frame.
        mass : float
            Body mass.
        center_of_mass : array-like, shape (3,)
            Center of mass in the body frame.
        inertia : array-like, shape (3, 3), optional
            Inertia tensor about the center of mass in the body frame.
        joint_name : str, optional
            Joint name. Defaults to ``name + '_joint'``.

        Returns
        -------
        body_id : int
            Id of the new body.
        """
        if joint_type not in _JOINT_TYPES:
            raise ValueError('joint_type must be one of {}, got {}'.format(
                _JOINT_TYPES, joint_type))
        if name in self.body_names:
            raise ValueError('body {} already exists'.format(name))
        if parent is None:
            parent_id = -1
        elif isinstance(parent, str):
            parent_id = self.body_id(parent)
        else:
            parent_id = int(parent)
            if not 0 <= parent_id < len(self.bodies):
                raise IndexError('parent body id {} out of range'.format(
                    parent_id))
        if rotation is None:
            rotation = np.eye(3)
        if inertia is None:
            inertia = np.zeros((3, 3))
        if joint_name is None:
            joint_name = name + '_joint'

        body_id = len(self.bodies)
        axis = np.array(axis, dtype=np.float64)
        if joint_type != 'fixed':
            norm = np.linalg.norm(axis)
            if norm == 0:
                raise ValueError('joint axis of {} is zero'.format(name))
            axis = axis / norm
        body = Body(name, body_id, parent_id, joint_type, joint_name,
                    axis,
                    np.array(translation, dtype=np.float64),
                    np.array(rotation, dtype=np.float64),
                    float(mass),
                    np.array(center_of_mass, dtype=np.float64),
                    np.array(inertia, dtype=np.float64))
        if joint_type != 'fixed':
            body.joint_index = len(self._joint_body_ids)
            self._joint_body_ids.append(body_id)
        self.bodies.append(body)
        self._children.append([])
        if parent_id >= 0:
            self._children[parent_id].append(body_id)
        self._descendants = {}
        return body_id

    @property
    def num_bodies(self):
        return len(self.bodies)

    @property
    def num_joints(self):
        return len(self._joint_body_ids)

    @property
    def body_names(self):
        return [body.name for body in self.bodies]

    @property
    def joint_names(self):
        return [self.bodies[i].joint_name for i in self._joint_body_ids]

    @property
    def joint_body_ids(self):
        """Body id moved by each joint, in joint order."""
        return list(self._joint_body_ids)

    def body_id(self, name):
        for body in self.bodies:
            if body.name == name:
                return body.body_id
        raise ValueError('unknown body {}'.format(name))

    def joint_index(self, joint_name):
        for i, body_id in enumerate(self._joint_body_ids):
            if self.bodies[body_id].joint_name == joint_name:
                return i
        raise ValueError('unknown joint {}'.format(joint_name))

    def descendant_body_ids(self, body_id):
        """Ids of ``body_id`` and of every body below it, sorted."""
        if body_id in self._descendants:
            return self._descendants[body_id]
        if not 0 <= body_id < self.num_bodies:
            raise IndexError('body id {} out of range [0, {})'.format(
                body_id, self.num_bodies))
        ids = []
        stack = [body_id]
        while stack:
            current = stack.pop()
            ids.append(current)
            stack.extend(self._children[current])
        result = tuple(sorted(ids))
        self._descendants[body_id] = result
        return result

    def create_state(self):
        return DynamicsState(self.num_bodies)

    def body_transform(self, state, body_id):
        """Position and rotation of a body in ``state``."""
        return state.positions[body_id], state.rotations[body_id]

    def _check_inputs(self, q, qd, qdd):
        for name, value in (('q', q), ('qd', qd), ('qdd', qdd)):
            if len(value) != self.num_joints:
                raise ValueError('{} must have {} entries, got {}'.format(
                    name, self.num_joints, len(value)))

    def propagate_full(self, state, q, qd, qdd, external_forces=None):
        """Forward kinematics of every body and inverse dynamics.

        Parameters
        ----------
        state : DynamicsState
            Working state, overwritten.
        q, qd, qdd : numpy.ndarray
            Joint positions, velocities and accelerations.
        external_forces : numpy.ndarray (B, 6), optional
            External spatial force acting on each body.

        Returns
        -------
        torques : numpy.ndarray
            Joint torques (forces for prismatic joints) needed to realize
            the motion.
        """
        self._check_inputs(q, qd, qdd)
        for body_id in range(self.num_bodies):
            self._update_body_kinematics(state, body_id, q, qd, qdd)
        return self._compute_forces(state, external_forces)

    def propagate_partial(self, state, q, qd, qdd, external_forces,
                          affected_body_ids):
        """Forward kinematics of ``affected_body_ids`` and inverse dynamics.

        Kinematic state of every other body must already be valid for the
        given joint values.
        """
        self._check_inputs(q, qd, qdd)
        for body_id in sorted(affected_body_ids):
            self._update_body_kinematics(state, body_id, q, qd, qdd)
        return self._compute_forces(state, external_forces)

    def propagate_dynamics(self, state, external_forces=None):
        """Inverse dynamics on already valid kinematic state."""
        return self._compute_forces(state, external_forces)

    def _update_body_kinematics(self, state, body_id, q, qd, qdd):
        body = self.bodies[body_id]
        parent_id = body.parent_id
        if parent_id < 0:
            parent_pos = self.base_position
            parent_rot = self.base_rotation
            parent_lin_vel = np.zeros(3)
            parent_ang_vel = np.zeros(3)
            parent_lin_acc = np.zeros(3)
            parent_ang_acc = np.zeros(3)
        else:
            parent_pos = state.positions[parent_id]
            parent_rot = state.rotations[parent_id]
            parent_lin_vel = state.linear_velocities[parent_id]
            parent_ang_vel = state.angular_velocities[parent_id]
            parent_lin_acc = state.linear_accelerations[parent_id]
            parent_ang_acc = state.angular_accelerations[parent_id]

        # Static transform from parent to the joint frame
        pos = parent_pos + parent_rot @ body.translation
        rot = parent_rot @ body.rotation
        axis_world = rot @ body.axis
        joint_origin = pos

        ang_vel = parent_ang_vel
        ang_acc = parent_ang_acc
        if body.joint_type == 'revolute':
            j = body.joint_index
            rot = rot @ rodrigues(body.axis, q[j])
            ang_vel = parent_ang_vel + axis_world * qd[j]
            ang_acc = parent_ang_acc + axis_world * qdd[j] \
                + np.cross(parent_ang_vel, axis_world * qd[j])
        elif body.joint_type == 'prismatic':
            j = body.joint_index
            pos = pos + axis_world * q[j]

        r = pos - parent_pos
        lin_vel = parent_lin_vel + np.cross(parent_ang_vel, r)
        lin_acc = parent_lin_acc + np.cross(parent_ang_acc, r) \
            + np.cross(parent_ang_vel, np.cross(parent_ang_vel, r))
        if body.joint_type == 'prismatic':
            lin_vel = lin_vel + axis_world * qd[j]
            lin_acc = lin_acc \
                + 2 * np.cross(parent_ang_vel, axis_world * qd[j]) \
                + axis_world * qdd[j]

        state.positions[body_id] = pos
        state.rotations[body_id] = rot
        state.joint_axes[body_id] = axis_world
        state.joint_origins[body_id] = joint_origin
        state.linear_velocities[body_id] = lin_vel
        state.angular_velocities[body_id] = ang_vel
        state.linear_accelerations[body_id] = lin_acc
        state.angular_accelerations[body_id] = ang_acc

    def _compute_forces(self, state, external_forces):
        if external_forces is not None and \
           np.shape(external_forces) != (self.num_bodies, 6):
            raise ValueError(
                'external_forces must have shape ({}, 6), got {}'.format(
                    self.num_bodies, np.shape(external_forces)))

        forces = state.forces
        for body_id, body in enumerate(self.bodies):
            rot = state.rotations[body_id]
            ang_vel = state.angular_velocities[body_id]
            ang_acc = state.angular_accelerations[body_id]
            com_offset = rot @ body.center_of_mass
            com = state.positions[body_id] + com_offset
            com_acc = state.linear_accelerations[body_id] \
                + np.cross(ang_acc, com_offset) \
                + np.cross(ang_vel, np.cross(ang_vel, com_offset))

            # Newton-Euler wrench needed to move the body, about the origin
            force = body.mass * (com_acc - self.gravity)
            inertia_world = rot @ body.inertia @ rot.T
            moment = inertia_world @ ang_acc \
                + np.cross(ang_vel, inertia_world @ ang_vel) \
                + np.cross(com, force)
            forces[body_id, :3] = moment
            forces[body_id, 3:] = force
            if external_forces is not None:
                forces[body_id] -= external_forces[body_id]

        for body_id in range(self.num_bodies - 1, -1, -1):
            parent_id = self.bodies[body_id].parent_id
            if parent_id >= 0:
                forces[parent_id] += forces[body_id]

        torques = np.zeros(self.num_joints)
        for j, body_id in enumerate(self._joint_body_ids):
            body = self.bodies[body_id]
            axis_world = state.joint_axes[body_id]
            moment = forces[body_id, :3]
            force = forces[body_id, 3:]
            if body.joint_type == 'prismatic':
                torques[j] = np.dot(axis_world, force)
            else:
                origin = state.joint_origins[body_id]
                torques[j] = np.dot(
                    axis_world, moment - np.cross(origin, force))
        return torques

    def __repr__(self):
        return '<{} {} bodies={} joints={}>'.format(
            self.__class__.__name__, self.name, self.num_bodies,
            self.num_joints)
