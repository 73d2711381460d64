"""Static obstacle world queried by the collision cost.

Example
-------
>>> import numpy as np
>>> from skcio.collision import CollisionWorld, SphereObstacle
>>> world = CollisionWorld([SphereObstacle(np.zeros(3), 0.5)])
>>> world.distance(np.array([2.0, 0.0, 0.0]))
1.5
"""

import copy
from dataclasses import dataclass
from dataclasses import field

import numpy as np


def point_to_sphere_distance(point, sphere_center, sphere_radius):
    """Signed distance from a point to a sphere surface.

    Negative inside the sphere.
    """
    point = np.asarray(point)
    sphere_center = np.asarray(sphere_center)
    return float(np.linalg.norm(point - sphere_center) - sphere_radius)


def point_to_box_distance(point, box_center, box_rotation, box_half_extents):
    """Signed distance from a point to a box surface.

    Negative inside the box, where its magnitude is the distance to the
    nearest face.
    """
    point = np.asarray(point)
    box_center = np.asarray(box_center)
    box_rotation = np.asarray(box_rotation)
    box_half_extents = np.asarray(box_half_extents)

    # Transform point to box local frame
    local_point = box_rotation.T @ (point - box_center)

    closest = np.clip(local_point, -box_half_extents, box_half_extents)
    outside = np.linalg.norm(local_point - closest)
    if outside > 0.0:
        return float(outside)
    return -float(np.min(box_half_extents - np.abs(local_point)))


@dataclass
class SphereObstacle:
    center: np.ndarray
    radius: float
    name: str = 'sphere'

    def distance(self, point):
        return point_to_sphere_distance(point, self.center, self.radius)


@dataclass
class BoxObstacle:
    center: np.ndarray
    half_extents: np.ndarray
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    name: str = 'box'

    def distance(self, point):
        return point_to_box_distance(
            point, self.center, self.rotation, self.half_extents)


class CollisionWorld(object):
    """Set of static obstacles.

    Bodies are approximated by spheres around their frame origin; the
    radius of each body is given by ``body_radii`` (default 0).

    Parameters
    ----------
    obstacles : list
        :class:`SphereObstacle` and :class:`BoxObstacle` instances.
    body_radii : dict, optional
        Map from body id to sphere radius.
    """

    def __init__(self, obstacles=None, body_radii=None):
        self.obstacles = list(obstacles or [])
        self.body_radii = dict(body_radii or {})

    def add_obstacle(self, obstacle):
        self.obstacles.append(obstacle)

    def distance(self, point):
        """Smallest signed distance from ``point`` to any obstacle.

        ``inf`` for an empty world.
        """
        if len(self.obstacles) == 0:
            return float('inf')
        return min(obstacle.distance(point) for obstacle in self.obstacles)

    def body_distance(self, body_id, position):
        return self.distance(position) - self.body_radii.get(body_id, 0.0)

    def clone(self):
        """Snapshot of the world for another evaluation worker."""
        return CollisionWorld(copy.deepcopy(self.obstacles),
                              self.body_radii)

    def __len__(self):
        return len(self.obstacles)

    def __repr__(self):
        return '<CollisionWorld obstacles={}>'.format(len(self.obstacles))
