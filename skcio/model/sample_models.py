from cached_property import cached_property
import numpy as np

from skcio.model.planning_group import ContactPoint
from skcio.model.planning_group import PlanningGroup
from skcio.model.rigid_body_model import RigidBodyModel


def _rod_inertia(mass, length):
    """Inertia of a thin rod along the local z axis about its center."""
    i = mass * length ** 2 / 12.0
    return np.diag([i, i, 1e-4 * mass])


class SerialArm(RigidBodyModel):
    """Serial arm of revolute links hanging from the base.

    Joint axes alternate between y and x so that the arm moves in 3D.
    """

    def __init__(self, num_links=3, link_length=0.3, link_mass=1.0,
                 gravity=(0.0, 0.0, -9.81)):
        super(SerialArm, self).__init__(
            name='serial_arm', base_position=[0.0, 0.0, 1.0],
            gravity=gravity)
        self.link_length = link_length
        parent = None
        for i in range(num_links):
            axis = [0.0, 1.0, 0.0] if i % 2 == 0 else [1.0, 0.0, 0.0]
            translation = [0.0, 0.0, 0.0] if i == 0 \
                else [0.0, 0.0, -link_length]
            parent = self.add_body(
                'link{}'.format(i + 1), parent=parent, axis=axis,
                translation=translation, mass=link_mass,
                center_of_mass=[0.0, 0.0, -0.5 * link_length],
                inertia=_rod_inertia(link_mass, link_length))
        self.end_body_id = self.add_body(
            'end_effector', parent=parent, joint_type='fixed',
            translation=[0.0, 0.0, -link_length], mass=0.1)

    @cached_property
    def arm(self):
        return PlanningGroup.from_model(self, name='arm')

    @cached_property
    def free_arm(self):
        """Group whose start and goal keyframes are optimized too."""
        return PlanningGroup.from_model(
            self, name='free_arm', fix_start=False, fix_goal=False)


class Pendulum(RigidBodyModel):
    """Single revolute joint about y with a point mass at ``length``."""

    def __init__(self, length=1.0, mass=1.0, gravity=(0.0, 0.0, -9.81)):
        super(Pendulum, self).__init__(name='pendulum', gravity=gravity)
        self.add_body('link', axis=[0.0, 1.0, 0.0], mass=mass,
                      center_of_mass=[length, 0.0, 0.0])

    @cached_property
    def free_group(self):
        return PlanningGroup.from_model(
            self, name='pendulum', fix_start=False, fix_goal=False)


class Biped(RigidBodyModel):
    """Pelvis fixed above the ground with two 3-joint legs and feet.

    Each foot carries one rectangular contact with four sub-points.
    """

    def __init__(self, pelvis_height=1.0, thigh_length=0.45,
                 shin_length=0.45, foot_height=0.05,
                 gravity=(0.0, 0.0, -9.81)):
        super(Biped, self).__init__(
            name='biped', base_position=[0.0, 0.0, pelvis_height],
            gravity=gravity)
        self.pelvis_id = self.add_body(
            'pelvis', joint_type='fixed', mass=5.0,
            inertia=np.diag([0.05, 0.05, 0.05]))
        self.foot_ids = []
        for side, y in (('left', 0.1), ('right', -0.1)):
            hip = self.add_body(
                '{}_thigh'.format(side), parent=self.pelvis_id,
                axis=[0.0, 1.0, 0.0], translation=[0.0, y, 0.0],
                mass=3.0, center_of_mass=[0.0, 0.0, -0.5 * thigh_length],
                inertia=_rod_inertia(3.0, thigh_length),
                joint_name='{}_hip_pitch'.format(side))
            knee = self.add_body(
                '{}_shin'.format(side), parent=hip,
                axis=[0.0, 1.0, 0.0], translation=[0.0, 0.0, -thigh_length],
                mass=2.0, center_of_mass=[0.0, 0.0, -0.5 * shin_length],
                inertia=_rod_inertia(2.0, shin_length),
                joint_name='{}_knee'.format(side))
            ankle = self.add_body(
                '{}_ankle'.format(side), parent=knee,
                axis=[0.0, 1.0, 0.0], translation=[0.0, 0.0, -shin_length],
                mass=0.5, joint_name='{}_ankle_pitch'.format(side))
            foot = self.add_body(
                '{}_foot'.format(side), parent=ankle, joint_type='fixed',
                translation=[0.0, 0.0, -foot_height], mass=0.5,
                inertia=np.diag([1e-3, 1e-3, 1e-3]))
            self.foot_ids.append(foot)

    @cached_property
    def contact_points(self):
        return [ContactPoint.rectangle('{}_foot'.format(side), foot_id,
                                       0.2, 0.1)
                for side, foot_id in zip(('left', 'right'), self.foot_ids)]

    @cached_property
    def legs(self):
        return PlanningGroup.from_model(
            self, name='legs', contact_points=self.contact_points)

    @cached_property
    def left_leg(self):
        return PlanningGroup.from_model(
            self, ['left_hip_pitch', 'left_knee', 'left_ankle_pitch'],
            contact_points=self.contact_points[:1], name='left_leg')
