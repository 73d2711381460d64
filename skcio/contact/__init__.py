# flake8: noqa

from skcio.contact.ground import FlatGround
from skcio.contact.ground import GroundModel
from skcio.contact.ground import PlaneGround
from skcio.contact.projector import ContactProjector
