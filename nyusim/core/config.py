"""
Configuration classes for the channel modeling framework
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

MIN_FREQUENCY = 0.5e9  # Hz
MAX_FREQUENCY = 150e9  # Hz


class Scenario(Enum):
    """Propagation environments with calibrated parameter tables."""
    UMA = "Uma"
    UMI = "Umi"
    RMA = "Rma"
    INH = "InH"
    INF = "InF"

    @classmethod
    def from_string(cls, value: str) -> 'Scenario':
        """Parse a scenario tag, ignoring case."""
        if isinstance(value, cls):
            return value
        for scenario in cls:
            if scenario.value.lower() == str(value).lower():
                return scenario
        raise ConfigurationError(f"Unknown scenario: {value}")

    @property
    def is_outdoor(self) -> bool:
        return self in (Scenario.UMA, Scenario.UMI, Scenario.RMA)


class O2ILossType(Enum):
    """Building penetration models of 38.901 Table 7.4.3-2."""
    LOW = "Low"
    HIGH = "High"

    @classmethod
    def from_string(cls, value: str) -> 'O2ILossType':
        if isinstance(value, cls):
            return value
        tag = str(value).lower().replace(" loss", "").strip()
        for loss_type in cls:
            if loss_type.value.lower() == tag:
                return loss_type
        raise ConfigurationError(f"Unknown O2I loss type: {value}")


class InHType(Enum):
    """Indoor hotspot layouts."""
    MIXED_OFFICE = "mixed_office"
    OPEN_OFFICE = "open_office"

    @classmethod
    def from_string(cls, value: str) -> 'InHType':
        if isinstance(value, cls):
            return value
        for inh_type in cls:
            if inh_type.value == str(value).lower():
                return inh_type
        raise ConfigurationError(f"Unknown InH type: {value}")


class InFType(Enum):
    """Indoor factory sub-scenarios (sparse/dense clutter, low/high BS)."""
    SL = "SL"
    DL = "DL"
    SH = "SH"
    DH = "DH"
    HH = "HH"

    @classmethod
    def from_string(cls, value: str) -> 'InFType':
        if isinstance(value, cls):
            return value
        for inf_type in cls:
            if inf_type.value == str(value).upper():
                return inf_type
        raise ConfigurationError(f"Unknown InF sub-scenario: {value}")


@dataclass
class ChannelConfig:
    """Configuration value shared by the condition, path loss and channel models"""
    scenario: Scenario = Scenario.UMA
    frequency: float = 28e9  # Hz
    channel_update_period: float = 0.0  # seconds, 0 = generate once
    condition_update_period: float = 0.0  # seconds, 0 = generate once
    shadowing_enabled: bool = True
    foliage_loss_enabled: bool = False
    foliage_loss: float = 0.4  # dB/m
    foliage_depth: float = 10.0  # meters
    o2i_loss_type: O2ILossType = O2ILossType.LOW
    o2i_threshold: float = 0.0  # probability of an outdoor-to-indoor link

    # Random stream selection
    seed: int = 1
    run: int = 1

    min_distance: float = 0.01  # meters
    strict_frequency_range: bool = True

    # RMa environment
    building_height: float = 5.0  # meters
    street_width: float = 20.0  # meters

    # Indoor environments
    inh_type: InHType = InHType.MIXED_OFFICE
    inf_type: InFType = InFType.SL
    clutter_density: float = 0.2
    clutter_height: float = 2.0  # meters
    clutter_size: float = 10.0  # meters
    hall_volume: float = 72000.0  # cubic meters
    hall_surface: float = 18000.0  # square meters

    def __post_init__(self):
        self.scenario = Scenario.from_string(self.scenario)
        self.o2i_loss_type = O2ILossType.from_string(self.o2i_loss_type)
        self.inh_type = InHType.from_string(self.inh_type)
        self.inf_type = InFType.from_string(self.inf_type)

    @property
    def frequency_ghz(self) -> float:
        return self.frequency / 1e9

    def validate(self):
        """
        Check the configuration for consistency.

        Raises:
            ConfigurationError: if any field is out of range. An out-of-band
                frequency only logs a warning when strict_frequency_range is off.
        """
        if self.frequency <= 0:
            raise ConfigurationError(f"Frequency must be positive, got {self.frequency}")
        if not MIN_FREQUENCY <= self.frequency <= MAX_FREQUENCY:
            message = (f"Frequency {self.frequency / 1e9:.3f} GHz outside the calibrated "
                       f"range {MIN_FREQUENCY / 1e9}-{MAX_FREQUENCY / 1e9} GHz")
            if self.strict_frequency_range:
                raise ConfigurationError(message)
            logger.warning(message)
        if self.channel_update_period < 0 or self.condition_update_period < 0:
            raise ConfigurationError("Update periods must be non-negative")
        if self.seed < 0 or self.run < 0:
            raise ConfigurationError(f"Seed and run must be non-negative, got {self.seed}/{self.run}")
        if self.min_distance <= 0:
            raise ConfigurationError("min_distance must be positive")
        if not 0.0 <= self.o2i_threshold <= 1.0:
            raise ConfigurationError("o2i_threshold must be a probability")
        if self.foliage_loss < 0 or self.foliage_depth < 0:
            raise ConfigurationError("Foliage loss and depth must be non-negative")
        if not 0.0 < self.clutter_density < 1.0:
            raise ConfigurationError("clutter_density must lie in (0, 1)")
        if self.hall_volume <= 0 or self.hall_surface <= 0:
            raise ConfigurationError("Hall volume and surface must be positive")
        if self.building_height <= 0 or self.street_width <= 0:
            raise ConfigurationError("Building height and street width must be positive")


@dataclass
class SimulationConfig:
    """Configuration parameters for the trace simulation"""
    simulation_time: float = 1.0  # seconds
    time_resolution: float = 0.01  # seconds
    trace: str = "snr"  # "snr" or "rx_power"
    log_level: str = "INFO"
    output_directory: str = "results"
    trace_file: Optional[str] = None
    enable_plots: bool = False

    # Node configuration
    tx_position: tuple = (0.0, 0.0, 10.0)
    rx_position: tuple = (10.0, 0.0, 1.6)
    tx_velocity: tuple = (0.0, 0.0, 0.0)
    rx_velocity: tuple = (0.0, 0.0, 0.0)
    track_beams: bool = False

    # Link budget
    tx_power: float = 49.0  # dBm
    noise_figure: float = 9.0  # dB
    num_resource_blocks: int = 100
    resource_block_bandwidth: float = 180e3  # Hz
    active_resource_blocks: Optional[List[int]] = None

    # Antenna arrays
    antenna_rows: int = 2
    antenna_columns: int = 2

    channel: ChannelConfig = field(default_factory=ChannelConfig)

    def validate(self):
        """Check the simulation parameters, then the nested channel configuration."""
        if self.simulation_time <= 0 or self.time_resolution <= 0:
            raise ConfigurationError("Simulation time and resolution must be positive")
        if self.trace not in ("snr", "rx_power"):
            raise ConfigurationError(f"Unknown trace type: {self.trace}")
        if self.num_resource_blocks < 1 or self.resource_block_bandwidth <= 0:
            raise ConfigurationError("Invalid resource block grid")
        if self.antenna_rows < 1 or self.antenna_columns < 1:
            raise ConfigurationError("Antenna arrays need at least one element")
        self.channel.validate()
