import numpy as np
from cached_property import cached_property


class GroupJoint(object):
    """Joint of a planning group.

    Parameters
    ----------
    name : str
        Joint name.
    joint_index : int
        Column of the joint in the full trajectory and index into the
        model's joint vector.
    body_id : int
        Body moved by the joint.
    affected_body_ids : sequence of int
        Bodies whose kinematics change when the joint moves, the body
        itself included.
    """

    def __init__(self, name, joint_index, body_id, affected_body_ids):
        self.name = name
        self.joint_index = joint_index
        self.body_id = body_id
        self.affected_body_ids = tuple(sorted(affected_body_ids))

    def __repr__(self):
        return '<GroupJoint {} index={} affected={}>'.format(
            self.name, self.joint_index, len(self.affected_body_ids))


class ContactPoint(object):
    """Contact of a planning group.

    A contact is a rectangle-like patch rigidly attached to ``body_id``.
    ``point_offsets`` are the positions of the sub-contact points in the
    contact frame. Forces of a sub-point act on ``point_body_ids[i]``,
    which defaults to the contact body.
    """

    def __init__(self, name, body_id, point_offsets, point_body_ids=None):
        self.name = name
        self.body_id = body_id
        self.point_offsets = np.array(point_offsets, dtype=np.float64)
        if self.point_offsets.ndim != 2 or self.point_offsets.shape[1] != 3:
            raise ValueError(
                'point_offsets must have shape (S, 3), got {}'.format(
                    self.point_offsets.shape))
        if point_body_ids is None:
            point_body_ids = [body_id] * len(self.point_offsets)
        if len(point_body_ids) != len(self.point_offsets):
            raise ValueError(
                'expected {} point body ids, got {}'.format(
                    len(self.point_offsets), len(point_body_ids)))
        self.point_body_ids = tuple(int(i) for i in point_body_ids)

    @property
    def num_points(self):
        return len(self.point_offsets)

    @classmethod
    def rectangle(cls, name, body_id, size_x, size_y, point_body_ids=None):
        """Contact with four sub-points at the corners of a rectangle."""
        hx = 0.5 * size_x
        hy = 0.5 * size_y
        offsets = [[-hx, -hy, 0.0],
                   [hx, -hy, 0.0],
                   [hx, hy, 0.0],
                   [-hx, hy, 0.0]]
        return cls(name, body_id, offsets, point_body_ids)

    def __repr__(self):
        return '<ContactPoint {} body={} points={}>'.format(
            self.name, self.body_id, self.num_points)


class PlanningGroup(object):
    """Joints and contacts optimized together.

    Parameters
    ----------
    name : str
        Group name.
    group_joints : list[GroupJoint]
        Optimized joints.
    contact_points : list[ContactPoint]
        Contacts whose pose and forces are optimized.
    fix_start, fix_goal : bool
        Exclude the first and last joint keyframes from the parameters.
    """

    def __init__(self, name, group_joints, contact_points=None,
                 fix_start=True, fix_goal=True):
        self.name = name
        self.group_joints = list(group_joints)
        self.contact_points = list(contact_points or [])
        self.fix_start = fix_start
        self.fix_goal = fix_goal

    @classmethod
    def from_model(cls, model, joint_names=None, contact_points=None,
                   name=None, fix_start=True, fix_goal=True):
        """Build a group of ``model`` joints.

        ``affected_body_ids`` of every joint is the subtree below the body
        it moves. ``joint_names`` defaults to every joint of the model.
        """
        if joint_names is None:
            joint_names = model.joint_names
        group_joints = []
        body_ids = model.joint_body_ids
        for joint_name in joint_names:
            joint_index = model.joint_index(joint_name)
            body_id = body_ids[joint_index]
            group_joints.append(GroupJoint(
                joint_name, joint_index, body_id,
                model.descendant_body_ids(body_id)))
        if name is None:
            name = model.name
        return cls(name, group_joints, contact_points,
                   fix_start=fix_start, fix_goal=fix_goal)

    @property
    def num_joints(self):
        return len(self.group_joints)

    @property
    def num_contacts(self):
        return len(self.contact_points)

    @cached_property
    def joint_indices(self):
        return np.array([gj.joint_index for gj in self.group_joints],
                        dtype=np.int64)

    @cached_property
    def contact_body_ids(self):
        return [cp.body_id for cp in self.contact_points]

    def __repr__(self):
        return '<PlanningGroup {} joints={} contacts={}>'.format(
            self.name, self.num_joints, self.num_contacts)
