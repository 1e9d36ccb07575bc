"""
Capability interfaces of the channel models.

Each capability has a closed set of scenario variants selected through
ChannelConfig.scenario; implementations only need the node mobility
handles, the antenna arrays where relevant, and the simulation time.
"""

from abc import ABC, abstractmethod


class ConditionProvider(ABC):
    """Provides the LOS/NLOS and O2I state of a link"""

    @abstractmethod
    def get_condition(self, a, b, now: float):
        """Return the ChannelCondition of the link between a and b at time now"""
        pass


class PathLossComputer(ABC):
    """Computes large-scale received power"""

    @abstractmethod
    def calc_rx_power(self, tx_power_dbm: float, a, b, now: float = None) -> float:
        """Return the received power in dBm"""
        pass


class MatrixGenerator(ABC):
    """Generates and caches small-scale channel matrices"""

    @abstractmethod
    def get_matrix(self, a, b, a_antenna, b_antenna, now: float = None, condition=None):
        """Return the current ChannelMatrix of the link"""
        pass
