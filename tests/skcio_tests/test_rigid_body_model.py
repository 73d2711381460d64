import unittest

from numpy import pi
from numpy import testing
import numpy as np

from skcio.model import Biped
from skcio.model import ContactPoint
from skcio.model import Pendulum
from skcio.model import PlanningGroup
from skcio.model import RigidBodyModel
from skcio.model import SerialArm


class TestRigidBodyModel(unittest.TestCase):

    def test_pendulum_static_torque(self):
        model = Pendulum(length=1.0, mass=1.0)
        state = model.create_state()
        zero = np.zeros(1)
        testing.assert_almost_equal(
            model.propagate_full(state, zero, zero, zero), [-9.81])
        testing.assert_almost_equal(
            model.propagate_full(state, [pi / 2.0], zero, zero), [0.0])
        testing.assert_almost_equal(state.positions[0], [0, 0, 0])
        testing.assert_almost_equal(state.rotations[0].dot([1, 0, 0]),
                                    [0, 0, -1])

    def test_pendulum_dynamics(self):
        model = Pendulum(length=1.0, mass=1.0)
        state = model.create_state()
        zero = np.zeros(1)
        one = np.ones(1)
        # inertia about the joint is m l^2 = 1
        testing.assert_almost_equal(
            model.propagate_full(state, zero, zero, one), [1.0 - 9.81])
        # centripetal force passes through the joint axis
        testing.assert_almost_equal(
            model.propagate_full(state, zero, one, zero), [-9.81])
        testing.assert_almost_equal(state.angular_velocities[0], [0, 1, 0])

    def test_external_force_compensates_gravity(self):
        model = Pendulum(length=1.0, mass=1.0)
        state = model.create_state()
        zero = np.zeros(1)
        com = np.array([1.0, 0.0, 0.0])
        force = np.array([0.0, 0.0, 9.81])
        external_forces = np.zeros((1, 6))
        external_forces[0, :3] = np.cross(com, force)
        external_forces[0, 3:] = force
        testing.assert_almost_equal(
            model.propagate_full(state, zero, zero, zero, external_forces),
            [0.0])
        with self.assertRaises(ValueError):
            model.propagate_full(state, zero, zero, zero, np.zeros((2, 6)))

    def test_prismatic_joint(self):
        model = RigidBodyModel()
        model.add_body('slider', joint_type='prismatic', axis=[0, 0, 2.0],
                       mass=2.0)
        state = model.create_state()
        tau = model.propagate_full(state, [0.5], [0.0], [1.0])
        testing.assert_almost_equal(tau, [2.0 * (1.0 + 9.81)])
        testing.assert_almost_equal(state.positions[0], [0, 0, 0.5])
        testing.assert_almost_equal(state.linear_accelerations[0], [0, 0, 1])

    def test_add_body_errors(self):
        model = RigidBodyModel()
        model.add_body('a')
        with self.assertRaises(ValueError):
            model.add_body('a')
        with self.assertRaises(ValueError):
            model.add_body('b', joint_type='spherical')
        with self.assertRaises(ValueError):
            model.add_body('b', axis=[0, 0, 0])
        with self.assertRaises(IndexError):
            model.add_body('b', parent=3)
        with self.assertRaises(ValueError):
            model.add_body('b', parent='missing')
        with self.assertRaises(ValueError):
            model.propagate_full(model.create_state(), [], [], [])

    def test_tree_structure(self):
        model = Biped()
        self.assertEqual(model.num_joints, 6)
        self.assertEqual(model.num_bodies, 9)
        self.assertEqual(model.joint_names[:3],
                         ['left_hip_pitch', 'left_knee', 'left_ankle_pitch'])
        self.assertEqual(model.joint_body_ids, [1, 2, 3, 5, 6, 7])
        self.assertEqual(model.descendant_body_ids(1), (1, 2, 3, 4))
        self.assertEqual(model.descendant_body_ids(0), tuple(range(9)))
        self.assertEqual(model.descendant_body_ids(8), (8,))
        self.assertEqual(model.joint_index('right_knee'), 4)
        with self.assertRaises(IndexError):
            model.descendant_body_ids(9)
        with self.assertRaises(ValueError):
            model.joint_index('neck')

    def test_foot_position(self):
        model = Biped(pelvis_height=1.0)
        state = model.create_state()
        zero = np.zeros(model.num_joints)
        model.propagate_full(state, zero, zero, zero)
        position, rotation = model.body_transform(state, model.foot_ids[0])
        testing.assert_almost_equal(position, [0.0, 0.1, 0.05])
        testing.assert_almost_equal(rotation, np.eye(3))

    def test_standing_load(self):
        model = Biped()
        state = model.create_state()
        zero = np.zeros(model.num_joints)
        model.propagate_full(state, zero, zero, zero)
        total_mass = sum(body.mass for body in model.bodies)
        # the base supports the whole weight
        testing.assert_almost_equal(state.forces[0, 3:],
                                    [0.0, 0.0, total_mass * 9.81])

    def test_partial_equals_full(self):
        model = SerialArm(num_links=4)
        rng = np.random.RandomState(1)
        q, qd, qdd = rng.randn(3, model.num_joints)
        external_forces = rng.randn(model.num_bodies, 6)
        state = model.create_state()
        model.propagate_full(state, q, qd, qdd, external_forces)

        q_new = q.copy()
        q_new[2] += 0.1
        qd_new = qd.copy()
        qd_new[2] -= 0.2
        expected_state = model.create_state()
        expected = model.propagate_full(expected_state, q_new, qd_new, qdd,
                                        external_forces)
        body_id = model.joint_body_ids[2]
        tau = model.propagate_partial(
            state, q_new, qd_new, qdd, external_forces,
            model.descendant_body_ids(body_id))
        testing.assert_array_equal(tau, expected)
        testing.assert_array_equal(state.positions, expected_state.positions)
        testing.assert_array_equal(state.forces, expected_state.forces)
        self.assertTrue(state.allclose(expected_state))

    def test_dynamics_only_equals_full(self):
        model = SerialArm(num_links=3)
        rng = np.random.RandomState(2)
        q, qd, qdd = rng.randn(3, model.num_joints)
        state = model.create_state()
        model.propagate_full(state, q, qd, qdd)
        external_forces = rng.randn(model.num_bodies, 6)
        expected = model.propagate_full(
            model.create_state(), q, qd, qdd, external_forces)
        testing.assert_array_equal(
            model.propagate_dynamics(state, external_forces), expected)

    def test_state_copy(self):
        model = SerialArm(num_links=2)
        state = model.create_state()
        model.propagate_full(state, [0.3, 0.2], [0.1, 0.0], [0.0, 1.0])
        other = state.copy()
        other.positions[1] += 1.0
        self.assertFalse(other.allclose(state))
        fresh = model.create_state()
        fresh.copy_kinematics_from(state)
        testing.assert_array_equal(fresh.rotations, state.rotations)
        testing.assert_array_equal(fresh.forces, np.zeros_like(state.forces))
        fresh.copy_from(state)
        self.assertTrue(fresh.allclose(state))


class TestPlanningGroup(unittest.TestCase):

    def test_from_model(self):
        model = Biped()
        group = model.left_leg
        self.assertEqual(group.num_joints, 3)
        self.assertEqual(group.num_contacts, 1)
        testing.assert_equal(group.joint_indices, [0, 1, 2])
        self.assertEqual(group.group_joints[1].affected_body_ids, (2, 3, 4))
        self.assertEqual(group.contact_body_ids, [model.foot_ids[0]])
        self.assertTrue(group.fix_start)
        self.assertIs(model.left_leg, group)

    def test_contact_point(self):
        contact = ContactPoint.rectangle('foot', 4, 0.2, 0.1)
        self.assertEqual(contact.num_points, 4)
        self.assertEqual(contact.point_body_ids, (4, 4, 4, 4))
        testing.assert_almost_equal(contact.point_offsets.sum(axis=0),
                                    np.zeros(3))
        with self.assertRaises(ValueError):
            ContactPoint('bad', 0, [[0, 0]])
        with self.assertRaises(ValueError):
            ContactPoint('bad', 0, [[0, 0, 0]], point_body_ids=[0, 1])

    def test_group_defaults(self):
        model = SerialArm(num_links=2)
        group = PlanningGroup.from_model(model)
        self.assertEqual(group.name, 'serial_arm')
        self.assertEqual([gj.name for gj in group.group_joints],
                         model.joint_names)
        self.assertEqual(group.group_joints[0].affected_body_ids, (0, 1, 2))
