# flake8: noqa

from skcio.collision.world import BoxObstacle
from skcio.collision.world import CollisionWorld
from skcio.collision.world import point_to_box_distance
from skcio.collision.world import point_to_sphere_distance
from skcio.collision.world import SphereObstacle
