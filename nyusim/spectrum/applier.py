"""
Frequency-selective channel applied to power spectral densities.

The applier combines the small-scale channel matrix of a link with the
beamforming vectors of both endpoints, then rotates every cluster by its
Doppler and delay phases to get the complex gain of each frequency bin.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np

from ..channel.link import SPEED_OF_LIGHT, LinkKey
from ..channel.matrix import ChannelMatrix, ChannelMatrixGenerator, unit_vectors
from ..core.errors import PreconditionError
from ..mobility.node import NodeMobility
from .psd import SpectrumValue

logger = logging.getLogger(__name__)


@dataclass
class LongTermCacheEntry:
    """Per-cluster beamformed gains derived from one channel matrix."""
    long_term: np.ndarray
    matrix: ChannelMatrix
    tx_id: int
    tx_weights: np.ndarray
    rx_weights: np.ndarray

    def is_valid(self, matrix: ChannelMatrix, tx_id: int,
                 tx_weights: np.ndarray, rx_weights: np.ndarray) -> bool:
        return (self.matrix is matrix and self.tx_id == tx_id
                and np.array_equal(self.tx_weights, tx_weights)
                and np.array_equal(self.rx_weights, rx_weights))


class SpectrumApplier:
    """
    Applies the small-scale channel of a link to a transmit PSD.

    The long-term component of a link is cached until the channel matrix is
    replaced or one of the beamforming vectors changes.
    """

    def __init__(self, matrix_generator: ChannelMatrixGenerator,
                 clock: Optional[Callable[[], float]] = None):
        if matrix_generator is None:
            raise PreconditionError("A channel matrix generator is required")
        self.matrix_generator = matrix_generator
        self.clock = clock if clock is not None else matrix_generator.clock
        self._long_term_cache: Dict[LinkKey, LongTermCacheEntry] = {}
        self.long_term_computations = 0

    def apply_channel(self, tx_psd: SpectrumValue, a: NodeMobility, b: NodeMobility,
                      a_antenna, b_antenna, now: Optional[float] = None) -> SpectrumValue:
        """
        Compute the receive PSD of a transmission from a to b.

        Args:
            tx_psd: Transmit PSD
            a: Transmitter mobility
            b: Receiver mobility
            a_antenna: Transmitter antenna array (with its beamforming vector)
            b_antenna: Receiver antenna array (with its beamforming vector)
            now: Simulation time in seconds (defaults to the clock)

        Returns:
            Receive PSD, each bin scaled by the squared channel gain
        """
        if a_antenna is None or b_antenna is None:
            raise PreconditionError("Antenna arrays of both endpoints are required")
        now = self.clock() if now is None else now

        matrix = self.matrix_generator.get_matrix(a, b, a_antenna, b_antenna, now)
        long_term = self._get_long_term(matrix, a, a_antenna, b_antenna)

        _, tx_azimuth, tx_zenith, rx_azimuth, rx_zenith = matrix.oriented(a.node_id)
        doppler = self._doppler(matrix, a, b, tx_azimuth, tx_zenith, rx_azimuth, rx_zenith, now)
        delays = matrix.delays
        carrier = self.matrix_generator.frequency

        values = tx_psd.values.copy()
        active = values != 0
        if np.any(active):
            offsets = tx_psd.frequencies[active] - carrier
            delay_phase = np.exp(-2j * np.pi * np.outer(offsets, delays))
            gains = delay_phase @ (long_term * doppler)
            values[active] = values[active] * np.abs(gains) ** 2
        return tx_psd.with_values(values)

    # name used by the trace engine
    calc_rx_power_spectral_density = apply_channel

    def _get_long_term(self, matrix: ChannelMatrix, a: NodeMobility,
                       a_antenna, b_antenna) -> np.ndarray:
        """
        Per-cluster beamformed gain w_rx^T H w_tx, cached per link.

        The receive vector is applied as stored, without conjugation: callers
        pass the combiner already conjugated (dft_beamforming does this).
        """
        tx_weights = np.asarray(a_antenna.get_beamforming_vector(), dtype=complex)
        rx_weights = np.asarray(b_antenna.get_beamforming_vector(), dtype=complex)

        entry = self._long_term_cache.get(matrix.link_key)
        if entry is not None and entry.is_valid(matrix, a.node_id, tx_weights, rx_weights):
            return entry.long_term

        coefficients = matrix.oriented(a.node_id)[0]
        if coefficients.shape[:2] != (len(rx_weights), len(tx_weights)):
            raise PreconditionError(
                f"Beamforming vectors of sizes ({len(rx_weights)}, {len(tx_weights)}) do not "
                f"match the channel matrix of shape {coefficients.shape[:2]}")
        long_term = np.einsum('u,usn,s->n', rx_weights, coefficients, tx_weights)

        self._long_term_cache[matrix.link_key] = LongTermCacheEntry(
            long_term=long_term, matrix=matrix, tx_id=a.node_id,
            tx_weights=tx_weights.copy(), rx_weights=rx_weights.copy())
        self.long_term_computations += 1
        return long_term

    def _doppler(self, matrix: ChannelMatrix, a: NodeMobility, b: NodeMobility,
                 tx_azimuth, tx_zenith, rx_azimuth, rx_zenith, now: float) -> np.ndarray:
        """Per-cluster Doppler rotation accumulated since the matrix was generated."""
        elapsed = now - matrix.generation_time
        factor = 2 * math.pi * elapsed * self.matrix_generator.frequency / SPEED_OF_LIGHT
        tx_speed = np.array(a.get_velocity().as_tuple())
        rx_speed = np.array(b.get_velocity().as_tuple())
        tx_dirs = unit_vectors(np.radians(tx_zenith), np.radians(tx_azimuth))
        rx_dirs = unit_vectors(np.radians(rx_zenith), np.radians(rx_azimuth))
        return np.exp(1j * factor * (rx_dirs @ rx_speed + tx_dirs @ tx_speed))

    def clear(self):
        self._long_term_cache.clear()
