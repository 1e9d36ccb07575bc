"""
Channel condition models for NYUSIM-style channel simulations.

This module decides whether a link is in line of sight and whether it is
an outdoor-to-indoor link, caching the outcome per link.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..core.config import ChannelConfig, InFType, InHType, Scenario
from ..core.errors import ConfigurationError
from ..core.random import CONDITION_STREAM, RandomStreams
from ..mobility.node import NodeMobility
from .base import ConditionProvider
from .link import LinkGeometry, LinkKey

logger = logging.getLogger(__name__)


class LosCondition(Enum):
    """Line-of-sight state of a link."""
    LOS = "line_of_sight"
    NLOS = "non_line_of_sight"


@dataclass(frozen=True)
class ChannelCondition:
    """Propagation condition of a link at the time it was drawn."""
    state: LosCondition
    outdoor_to_indoor: bool
    last_update_time: float

    @property
    def is_los(self) -> bool:
        return self.state == LosCondition.LOS

    def same_state(self, other: Optional['ChannelCondition']) -> bool:
        return (other is not None and self.state == other.state
                and self.outdoor_to_indoor == other.outdoor_to_indoor)


class ConditionModel(ConditionProvider):
    """
    Stochastic LOS/NLOS condition model.

    The LOS probability is a scenario-specific function of the 2D distance
    (and of clutter parameters for the factory scenario). A drawn condition
    is reused until the update period has elapsed.
    """

    def __init__(self, config: ChannelConfig, streams: Optional[RandomStreams] = None):
        config.validate()
        self.config = config
        self.scenario = config.scenario
        self.update_period = config.condition_update_period
        self.streams = streams if streams is not None else RandomStreams(config.seed, config.run)
        self._los_probability = self._select_los_probability()
        self._cache: Dict[LinkKey, ChannelCondition] = {}

        logger.info(f"Condition model created for scenario {self.scenario.value} "
                    f"(update period {self.update_period}s)")

    def _select_los_probability(self):
        probabilities = {
            Scenario.RMA: self._rma_los_probability,
            Scenario.UMA: self._uma_los_probability,
            Scenario.UMI: self._umi_los_probability,
            Scenario.INH: self._inh_los_probability,
            Scenario.INF: self._inf_los_probability,
        }
        if self.scenario not in probabilities:
            raise ConfigurationError(f"No condition model for scenario {self.scenario}")
        return probabilities[self.scenario]

    def get_condition(self, a: NodeMobility, b: NodeMobility, now: float) -> ChannelCondition:
        """
        Get the condition of the link between two nodes.

        Args:
            a: First endpoint
            b: Second endpoint
            now: Current simulation time in seconds

        Returns:
            The cached condition if still fresh, otherwise a newly drawn one
        """
        key = LinkKey.of(a, b, self.config.frequency)
        cached = self._cache.get(key)
        if cached is not None and not self._needs_update(cached, now):
            return cached

        # draw from the endpoints in a fixed order so the result is symmetric
        low, high = (a, b) if a.node_id == key.node_low else (b, a)
        condition = self._draw_condition(key, low, high, now)
        self._cache[key] = condition
        logger.debug(f"Link {key.node_low}-{key.node_high}: {condition.state.value}, "
                     f"O2I={condition.outdoor_to_indoor} at t={now}")
        return condition

    def _needs_update(self, condition: ChannelCondition, now: float) -> bool:
        if self.update_period == 0:
            return False
        return now - condition.last_update_time >= self.update_period

    def _draw_condition(self, key: LinkKey, a: NodeMobility, b: NodeMobility,
                        now: float) -> ChannelCondition:
        geometry = LinkGeometry.between(a, b, self.config.min_distance)
        rng = self.streams.stream(CONDITION_STREAM, *key.stream_key())

        p_los = self.get_los_probability(geometry)
        state = LosCondition.LOS if rng.uniform() < p_los else LosCondition.NLOS

        o2i = False
        if self.scenario.is_outdoor:
            o2i = bool(rng.uniform() < self.config.o2i_threshold)

        return ChannelCondition(state=state, outdoor_to_indoor=o2i, last_update_time=now)

    def get_los_probability(self, geometry: LinkGeometry) -> float:
        """LOS probability of a link for the configured scenario."""
        return min(1.0, max(0.0, self._los_probability(geometry)))

    def clear(self):
        self._cache.clear()

    # 3GPP TR 38.901 Table 7.4.2-1

    def _rma_los_probability(self, geometry: LinkGeometry) -> float:
        d = geometry.distance_2d
        if d <= 10.0:
            return 1.0
        return math.exp(-(d - 10.0) / 1000.0)

    def _umi_los_probability(self, geometry: LinkGeometry) -> float:
        d = geometry.distance_2d
        if d <= 18.0:
            return 1.0
        return 18.0 / d + math.exp(-d / 36.0) * (1 - 18.0 / d)

    def _uma_los_probability(self, geometry: LinkGeometry) -> float:
        d = geometry.distance_2d
        if d <= 18.0:
            return 1.0
        h_ut = geometry.ut_height
        c_prime = 0.0 if h_ut <= 13.0 else ((h_ut - 13.0) / 10.0) ** 1.5
        return ((18.0 / d + math.exp(-d / 63.0) * (1 - 18.0 / d))
                * (1 + c_prime * 5.0 / 4.0 * (d / 100.0) ** 3 * math.exp(-d / 150.0)))

    def _inh_los_probability(self, geometry: LinkGeometry) -> float:
        d = geometry.distance_2d
        if self.config.inh_type == InHType.OPEN_OFFICE:
            if d <= 5.0:
                return 1.0
            if d <= 49.0:
                return math.exp(-(d - 5.0) / 70.8)
            return math.exp(-(d - 49.0) / 211.7) * 0.54
        if d <= 1.2:
            return 1.0
        if d < 6.5:
            return math.exp(-(d - 1.2) / 4.7)
        return math.exp(-(d - 6.5) / 32.6) * 0.32

    def _inf_los_probability(self, geometry: LinkGeometry) -> float:
        inf_type = self.config.inf_type
        if inf_type == InFType.HH:
            return 1.0
        r = self.config.clutter_density
        k = -self.config.clutter_size / math.log(1 - r)
        if inf_type in (InFType.SH, InFType.DH):
            h_c = self.config.clutter_height
            h_bs, h_ut = geometry.bs_height, geometry.ut_height
            if h_ut >= h_c:
                return 1.0
            if h_bs > h_c:
                k = k * (h_bs - h_ut) / (h_c - h_ut)
        return math.exp(-geometry.distance_2d / k)
