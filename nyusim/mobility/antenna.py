"""
Antenna arrays and beamforming for channel simulations.

The channel models consume element locations, field patterns and the
current beamforming vector; the uniform planar array below is the default
provider of those.
"""

import logging
import math
from typing import Tuple

import numpy as np

from ..core.errors import PreconditionError
from .node import NodeMobility

logger = logging.getLogger(__name__)


class UniformPlanarArray:
    """
    Uniform planar array of isotropic, vertically polarized elements.

    Element locations are expressed in wavelengths, in the y-z plane.
    """

    def __init__(self, num_rows: int = 2, num_columns: int = 2,
                 vertical_spacing: float = 0.5, horizontal_spacing: float = 0.5,
                 element_gain_db: float = 0.0):
        if num_rows < 1 or num_columns < 1:
            raise ValueError("Array needs at least one row and one column")
        self.num_rows = num_rows
        self.num_columns = num_columns
        self.vertical_spacing = vertical_spacing
        self.horizontal_spacing = horizontal_spacing
        self.element_gain_db = element_gain_db
        self.beamforming_vector = np.ones(self.num_elements, dtype=complex) / math.sqrt(self.num_elements)

    @property
    def num_elements(self) -> int:
        return self.num_rows * self.num_columns

    def get_element_locations(self) -> np.ndarray:
        """Return a (num_elements, 3) array of element positions in wavelengths."""
        index = np.arange(self.num_elements)
        locations = np.zeros((self.num_elements, 3))
        locations[:, 1] = (index % self.num_columns) * self.horizontal_spacing
        locations[:, 2] = (index // self.num_columns) * self.vertical_spacing
        return locations

    def field_pattern(self, theta: np.ndarray, phi: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Field pattern components of a single element.

        Args:
            theta: Zenith angles in radians
            phi: Azimuth angles in radians

        Returns:
            (F_theta, F_phi) arrays broadcast to the input shape
        """
        amplitude = math.sqrt(10 ** (self.element_gain_db / 10))
        shape = np.broadcast(theta, phi).shape
        return np.full(shape, amplitude), np.zeros(shape)

    def get_beamforming_vector(self) -> np.ndarray:
        return self.beamforming_vector

    def set_beamforming_vector(self, weights):
        weights = np.asarray(weights, dtype=complex)
        if weights.shape != (self.num_elements,):
            raise PreconditionError(f"Beamforming vector must have {self.num_elements} entries, "
                             f"got shape {weights.shape}")
        self.beamforming_vector = weights.copy()


def dft_beamforming(this_node: NodeMobility, this_antenna: UniformPlanarArray,
                    other_node: NodeMobility) -> np.ndarray:
    """
    Steer an array towards another node using DFT beamforming.

    The total power is split equally among the elements and the resulting
    vector is stored on the antenna.

    Args:
        this_node: Node hosting the array
        this_antenna: Array to steer
        other_node: Node the beam points to

    Returns:
        The new beamforming vector
    """
    a_pos = this_node.get_position()
    b_pos = other_node.get_position()
    dx, dy, dz = b_pos.x - a_pos.x, b_pos.y - a_pos.y, b_pos.z - a_pos.z
    azimuth = math.atan2(dy, dx)
    distance = math.sqrt(dx**2 + dy**2 + dz**2)
    inclination = math.acos(dz / distance) if distance > 0 else 0.0

    power = 1.0 / math.sqrt(this_antenna.num_elements)
    direction = np.array([math.sin(inclination) * math.cos(azimuth),
                          math.sin(inclination) * math.sin(azimuth),
                          math.cos(inclination)])
    phase = -2 * math.pi * (this_antenna.get_element_locations() @ direction)
    weights = np.exp(1j * phase) * power

    this_antenna.set_beamforming_vector(weights)
    logger.debug(f"Node {this_node.node_id} steered towards node {other_node.node_id} "
                 f"(azimuth={math.degrees(azimuth):.1f}, inclination={math.degrees(inclination):.1f})")
    return weights


def steering_vector(antenna: UniformPlanarArray, azimuth: float, inclination: float,
                    normalize: bool = True) -> np.ndarray:
    """Array response exp(-j 2 pi r.d) for a direction given in radians."""
    direction = np.array([math.sin(inclination) * math.cos(azimuth),
                          math.sin(inclination) * math.sin(azimuth),
                          math.cos(inclination)])
    vector = np.exp(-2j * math.pi * (antenna.get_element_locations() @ direction))
    if normalize:
        vector = vector / math.sqrt(antenna.num_elements)
    return vector

