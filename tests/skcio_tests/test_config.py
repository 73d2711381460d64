import unittest

from numpy import testing

from skcio.config import PlanningParameters


class TestPlanningParameters(unittest.TestCase):

    def test_defaults(self):
        parameters = PlanningParameters()
        self.assertEqual(parameters.num_points, 21)
        self.assertEqual(parameters.contact_keyframe_interval,
                         parameters.keyframe_interval)
        self.assertFalse(parameters.discard_range_feasibility)
        self.assertEqual(parameters.get_cost_weight('unknown'), 0.0)
        self.assertGreater(parameters.get_cost_weight('smoothness'), 0.0)

    def test_cost_weights_are_merged(self):
        parameters = PlanningParameters(
            cost_weights={'torque': 0.0, 'joint_position': 2.0})
        self.assertEqual(parameters.get_cost_weight('torque'), 0.0)
        self.assertEqual(parameters.get_cost_weight('joint_position'), 2.0)
        self.assertEqual(parameters.get_cost_weight('friction_cone'), 1.0)
        # defaults are not shared between instances
        self.assertEqual(PlanningParameters().get_cost_weight('torque'),
                         0.0001)

    def test_dict_round_trip(self):
        parameters = PlanningParameters(
            trajectory_duration=2.0, keyframe_interval=4,
            contact_keyframe_interval=8, num_contacts=2,
            gravity=(0.0, 0.0, -1.62), torque_limit=100.0)
        restored = PlanningParameters.from_dict(parameters.to_dict())
        self.assertEqual(restored.to_dict(), parameters.to_dict())
        testing.assert_equal(restored.gravity, [0.0, 0.0, -1.62])
        self.assertEqual(restored.num_points, 41)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            PlanningParameters.from_dict({'trajectory_lenght': 1.0})
        with self.assertRaises(ValueError):
            PlanningParameters(trajectory_discretization=0.0)
        with self.assertRaises(ValueError):
            PlanningParameters(keyframe_interval=0)
