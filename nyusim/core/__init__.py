"""Core configuration, errors and random streams."""

from .config import ChannelConfig, O2ILossType, Scenario, SimulationConfig
from .errors import ChannelModelError, ConfigurationError, PreconditionError
from .random import RandomStreams

__all__ = ['ChannelConfig', 'SimulationConfig', 'Scenario', 'O2ILossType',
           'ChannelModelError', 'ConfigurationError', 'PreconditionError', 'RandomStreams']
