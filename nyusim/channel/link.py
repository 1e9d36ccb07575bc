"""
Link identification and geometry shared by the channel models.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from ..core.errors import PreconditionError
from ..mobility.node import NodeMobility

SPEED_OF_LIGHT = 299792458.0  # m/s


@dataclass(frozen=True)
class LinkKey:
    """Unordered pair of node ids plus carrier frequency."""
    node_low: int
    node_high: int
    frequency: float

    @classmethod
    def of(cls, a: NodeMobility, b: NodeMobility, frequency: float) -> 'LinkKey':
        check_mobility(a, b)
        low, high = sorted((a.node_id, b.node_id))
        return cls(low, high, frequency)

    def stream_key(self) -> Tuple[int, int, int]:
        """Integers identifying the link in the random stream manager."""
        return self.node_low, self.node_high, int(round(self.frequency))


def check_mobility(a: NodeMobility, b: NodeMobility):
    if a is None or b is None:
        raise PreconditionError("Mobility handle of both link endpoints is required")


@dataclass
class LinkGeometry:
    """Distances, heights and line-of-sight angles (degrees) between two nodes."""
    distance_2d: float
    distance_3d: float
    height_a: float
    height_b: float
    azimuth_ab: float
    zenith_ab: float
    azimuth_ba: float
    zenith_ba: float

    @classmethod
    def between(cls, a: NodeMobility, b: NodeMobility, min_distance: float) -> 'LinkGeometry':
        pa = a.get_position()
        pb = b.get_position()
        dx, dy, dz = pb.x - pa.x, pb.y - pa.y, pb.z - pa.z
        distance_2d = max(math.hypot(dx, dy), min_distance)
        distance_3d = max(math.sqrt(dx**2 + dy**2 + dz**2), min_distance)
        azimuth = math.degrees(math.atan2(dy, dx))
        zenith = math.degrees(math.acos(max(-1.0, min(1.0, dz / distance_3d))))
        return cls(
            distance_2d=distance_2d,
            distance_3d=distance_3d,
            height_a=pa.z,
            height_b=pb.z,
            azimuth_ab=azimuth,
            zenith_ab=zenith,
            azimuth_ba=wrap_azimuth(azimuth + 180.0),
            zenith_ba=180.0 - zenith
        )

    @property
    def bs_height(self) -> float:
        """Height of the taller endpoint, taken as the base station."""
        return max(self.height_a, self.height_b)

    @property
    def ut_height(self) -> float:
        return min(self.height_a, self.height_b)


def wrap_azimuth(angle):
    """Wrap azimuth angles in degrees to [-180, 180)."""
    return (angle + 180.0) % 360.0 - 180.0
