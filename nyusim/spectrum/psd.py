"""
Power spectral density values and resource block helpers.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..core.errors import PreconditionError

logger = logging.getLogger(__name__)

BOLTZMANN = 1.380649e-23  # J/K
REFERENCE_TEMPERATURE = 290.0  # K


@dataclass
class SpectrumValue:
    """
    Ordered frequency bins with a PSD value (W/Hz) per bin.

    Attributes:
        frequencies: Bin centre frequencies in Hz
        widths: Bin widths in Hz
        values: PSD per bin in W/Hz
    """
    frequencies: np.ndarray
    widths: np.ndarray
    values: np.ndarray

    def __post_init__(self):
        self.frequencies = np.asarray(self.frequencies, dtype=float)
        self.widths = np.asarray(self.widths, dtype=float)
        self.values = np.asarray(self.values, dtype=float)
        if not (self.frequencies.shape == self.widths.shape == self.values.shape):
            raise PreconditionError(f"PSD arrays must have matching shapes, got {self.frequencies.shape}, "
                             f"{self.widths.shape} and {self.values.shape}")
        if self.frequencies.ndim != 1:
            raise PreconditionError("PSD arrays must be one-dimensional")

    def __len__(self) -> int:
        return len(self.values)

    def total_power(self) -> float:
        """Integrated power in W."""
        return float(np.sum(self.values * self.widths))

    def copy(self) -> 'SpectrumValue':
        return SpectrumValue(self.frequencies.copy(), self.widths.copy(), self.values.copy())

    def scaled(self, factor) -> 'SpectrumValue':
        """New value with the PSD multiplied by a scalar or a per-bin array."""
        return SpectrumValue(self.frequencies.copy(), self.widths.copy(), self.values * factor)

    def with_values(self, values) -> 'SpectrumValue':
        return SpectrumValue(self.frequencies.copy(), self.widths.copy(), values)


def resource_block_frequencies(center_frequency: float, num_resource_blocks: int,
                               resource_block_bandwidth: float) -> np.ndarray:
    """Centre frequencies of a contiguous resource block grid around a carrier."""
    offsets = (np.arange(num_resource_blocks) - (num_resource_blocks - 1) / 2.0)
    return center_frequency + offsets * resource_block_bandwidth


def create_tx_psd(center_frequency: float, tx_power_dbm: float, num_resource_blocks: int = 100,
                  resource_block_bandwidth: float = 180e3,
                  active_resource_blocks: Optional[Sequence[int]] = None) -> SpectrumValue:
    """
    Build a transmit PSD spreading the power equally over the active blocks.

    Args:
        center_frequency: Carrier frequency in Hz
        tx_power_dbm: Total transmit power in dBm
        num_resource_blocks: Size of the resource block grid
        resource_block_bandwidth: Bandwidth of one block in Hz
        active_resource_blocks: Indices of the blocks carrying power (all if None)

    Returns:
        SpectrumValue with zero PSD on inactive blocks
    """
    if num_resource_blocks < 1:
        raise ValueError("At least one resource block is required")
    if active_resource_blocks is None:
        active_resource_blocks = range(num_resource_blocks)
    active = sorted(set(int(i) for i in active_resource_blocks))
    if not active:
        raise ValueError("At least one active resource block is required")
    if active[0] < 0 or active[-1] >= num_resource_blocks:
        raise ValueError(f"Active resource blocks must lie in [0, {num_resource_blocks})")

    frequencies = resource_block_frequencies(center_frequency, num_resource_blocks,
                                             resource_block_bandwidth)
    widths = np.full(num_resource_blocks, float(resource_block_bandwidth))
    values = np.zeros(num_resource_blocks)
    tx_power_w = 10 ** ((tx_power_dbm - 30) / 10)
    values[active] = tx_power_w / (len(active) * resource_block_bandwidth)
    return SpectrumValue(frequencies, widths, values)


def create_noise_psd(center_frequency: float, noise_figure_db: float,
                     num_resource_blocks: int = 100,
                     resource_block_bandwidth: float = 180e3) -> SpectrumValue:
    """Thermal noise PSD kT times the noise figure on every block."""
    frequencies = resource_block_frequencies(center_frequency, num_resource_blocks,
                                             resource_block_bandwidth)
    widths = np.full(num_resource_blocks, float(resource_block_bandwidth))
    noise = BOLTZMANN * REFERENCE_TEMPERATURE * 10 ** (noise_figure_db / 10)
    return SpectrumValue(frequencies, widths, np.full(num_resource_blocks, noise))


def average_snr_db(signal: SpectrumValue, noise: SpectrumValue) -> float:
    """Ratio of the summed signal PSD to the summed noise PSD over all bins, in dB."""
    noise_sum = float(np.sum(noise.values))
    if noise_sum <= 0:
        raise PreconditionError("Noise PSD must carry positive power")
    snr = float(np.sum(signal.values)) / noise_sum
    return 10 * math.log10(snr) if snr > 0 else -math.inf
