"""
Large-scale path loss models for NYUSIM-style channel simulations.

This module implements the closed-form path loss of each scenario together
with the optional shadow fading, foliage and outdoor-to-indoor losses.
"""

import logging
import math
from typing import Callable, Dict, Optional, Tuple

from ..core.config import ChannelConfig, InFType, O2ILossType, Scenario
from ..core.errors import ConfigurationError
from ..core.random import O2I_STREAM, PATHLOSS_STREAM, RandomStreams
from ..mobility.node import NodeMobility
from .base import PathLossComputer
from .condition import ChannelCondition, ConditionModel
from .link import SPEED_OF_LIGHT, LinkGeometry, LinkKey

logger = logging.getLogger(__name__)

EFFECTIVE_ENVIRONMENT_HEIGHT = 1.0  # meters, UMa/UMi breakpoint


class PathLossModel(PathLossComputer):
    """
    Scenario path loss with LOS/NLOS coefficient sets.

    The received power is the transmit power minus the path loss and the
    optional shadowing, foliage and O2I penetration losses.
    """

    def __init__(self, config: ChannelConfig, condition_model: ConditionModel,
                 streams: Optional[RandomStreams] = None,
                 clock: Optional[Callable[[], float]] = None):
        config.validate()
        if condition_model is None:
            raise ConfigurationError("A channel condition model is required")
        self.config = config
        self.scenario = config.scenario
        self.frequency = config.frequency
        self.condition_model = condition_model
        self.streams = streams if streams is not None else condition_model.streams
        self.clock = clock if clock is not None else (lambda: 0.0)

        self._formulas = {
            Scenario.RMA: self._rma_path_loss,
            Scenario.UMA: self._uma_path_loss,
            Scenario.UMI: self._umi_path_loss,
            Scenario.INH: self._inh_path_loss,
            Scenario.INF: self._inf_path_loss,
        }
        if self.scenario not in self._formulas:
            raise ConfigurationError(f"No path loss formula for scenario {self.scenario}")

        # O2I loss drawn per link, valid as long as the link condition is unchanged
        self._o2i_cache: Dict[LinkKey, Tuple[ChannelCondition, float]] = {}

        logger.info(f"Path loss model created: {self.scenario.value} at "
                    f"{self.config.frequency_ghz:.3f} GHz, shadowing="
                    f"{config.shadowing_enabled}, foliage={config.foliage_loss_enabled}")

    def calc_rx_power(self, tx_power_dbm: float, a: NodeMobility, b: NodeMobility,
                      now: Optional[float] = None) -> float:
        """
        Calculate the received power between two nodes.

        Args:
            tx_power_dbm: Transmit power in dBm
            a: Transmitting node mobility
            b: Receiving node mobility
            now: Simulation time in seconds (defaults to the model clock)

        Returns:
            Received power in dBm
        """
        now = self.clock() if now is None else now
        key = LinkKey.of(a, b, self.frequency)
        condition = self.condition_model.get_condition(a, b, now)
        geometry = LinkGeometry.between(a, b, self.config.min_distance)

        loss = self.calc_path_loss(geometry, condition)
        if self.config.shadowing_enabled:
            rng = self.streams.stream(PATHLOSS_STREAM, *key.stream_key())
            loss += rng.normal(0.0, self.get_shadowing_std(geometry, condition))
        if self.config.foliage_loss_enabled:
            loss += self.get_foliage_loss()
        if condition.outdoor_to_indoor:
            loss += self._get_o2i_loss(key, geometry, condition)

        logger.debug(f"Link {key.node_low}-{key.node_high}: d3D={geometry.distance_3d:.2f}m, "
                     f"{condition.state.value}, total loss {loss:.2f} dB")
        return tx_power_dbm - loss

    def get_path_loss(self, a: NodeMobility, b: NodeMobility,
                      now: Optional[float] = None) -> float:
        """Deterministic path loss in dB for the current link condition."""
        now = self.clock() if now is None else now
        condition = self.condition_model.get_condition(a, b, now)
        geometry = LinkGeometry.between(a, b, self.config.min_distance)
        return self.calc_path_loss(geometry, condition)

    def calc_path_loss(self, geometry: LinkGeometry, condition: ChannelCondition) -> float:
        """Scenario path loss in dB, without any random component."""
        return self._formulas[self.scenario](geometry, condition.is_los)

    def get_foliage_loss(self) -> float:
        return self.config.foliage_loss * self.config.foliage_depth

    def get_shadowing_std(self, geometry: LinkGeometry, condition: ChannelCondition) -> float:
        """Shadow fading standard deviation in dB (38.901 Table 7.4.1-1)."""
        los = condition.is_los
        if self.scenario == Scenario.RMA:
            if not los:
                return 8.0
            return 4.0 if geometry.distance_2d <= self._rma_breakpoint(geometry) else 6.0
        if self.scenario == Scenario.UMA:
            return 4.0 if los else 6.0
        if self.scenario == Scenario.UMI:
            return 4.0 if los else 7.82
        if self.scenario == Scenario.INH:
            return 3.0 if los else 8.03
        inf_type = self.config.inf_type
        if los or inf_type == InFType.HH:
            return 4.3
        return {InFType.SL: 5.7, InFType.DL: 7.2, InFType.SH: 5.9, InFType.DH: 4.0}[inf_type]

    def _get_o2i_loss(self, key: LinkKey, geometry: LinkGeometry,
                      condition: ChannelCondition) -> float:
        cached = self._o2i_cache.get(key)
        if cached is not None and cached[0] is condition:
            return cached[1]

        rng = self.streams.stream(O2I_STREAM, *key.stream_key())
        f = self.config.frequency_ghz
        l_concrete = 5 + 4 * f
        if self.config.o2i_loss_type == O2ILossType.LOW:
            l_glass = 2 + 0.2 * f
            pl_tw = 5 - 10 * math.log10(0.3 * 10 ** (-l_glass / 10) + 0.7 * 10 ** (-l_concrete / 10))
            sigma_p = 4.4
        else:
            l_irr_glass = 23 + 0.3 * f
            pl_tw = 5 - 10 * math.log10(0.7 * 10 ** (-l_irr_glass / 10) + 0.3 * 10 ** (-l_concrete / 10))
            sigma_p = 6.5
        max_indoor = 10.0 if self.scenario == Scenario.RMA else 25.0
        d_2d_in = min(rng.uniform(0, max_indoor), rng.uniform(0, max_indoor))
        loss = pl_tw + 0.5 * d_2d_in + rng.normal(0.0, sigma_p)

        self._o2i_cache[key] = (condition, loss)
        logger.debug(f"O2I loss for link {key.node_low}-{key.node_high}: {loss:.2f} dB")
        return loss

    # 3GPP TR 38.901 Table 7.4.1-1, fc in GHz and distances in meters

    def _rma_breakpoint(self, geometry: LinkGeometry) -> float:
        return (2 * math.pi * geometry.bs_height * geometry.ut_height
                * self.frequency / SPEED_OF_LIGHT)

    def _rma_path_loss(self, geometry: LinkGeometry, los: bool) -> float:
        fc = self.config.frequency_ghz
        h = self.config.building_height
        w = self.config.street_width
        h_bs, h_ut = geometry.bs_height, geometry.ut_height
        d3 = geometry.distance_3d

        def pl1(d):
            return (20 * math.log10(40 * math.pi * d * fc / 3)
                    + min(0.03 * h ** 1.72, 10) * math.log10(d)
                    - min(0.044 * h ** 1.72, 14.77)
                    + 0.002 * math.log10(h) * d)

        d_bp = self._rma_breakpoint(geometry)
        if d_bp <= 0 or geometry.distance_2d <= d_bp:
            pl_los = pl1(d3)
        else:
            pl_los = pl1(d_bp) + 40 * math.log10(d3 / d_bp)
        if los:
            return pl_los

        h_bs = max(h_bs, self.config.min_distance)
        pl_nlos = (161.04 - 7.1 * math.log10(w) + 7.5 * math.log10(h)
                   - (24.37 - 3.7 * (h / h_bs) ** 2) * math.log10(h_bs)
                   + (43.42 - 3.1 * math.log10(h_bs)) * (math.log10(d3) - 3)
                   + 20 * math.log10(fc)
                   - (3.2 * math.log10(11.75 * max(h_ut, self.config.min_distance)) ** 2 - 4.97))
        return max(pl_los, pl_nlos)

    def _breakpoint_prime(self, geometry: LinkGeometry) -> float:
        h_bs = geometry.bs_height - EFFECTIVE_ENVIRONMENT_HEIGHT
        h_ut = geometry.ut_height - EFFECTIVE_ENVIRONMENT_HEIGHT
        return 4 * h_bs * h_ut * self.frequency / SPEED_OF_LIGHT

    def _breakpoint_term(self, geometry: LinkGeometry, d_bp: float) -> float:
        term = d_bp ** 2 + (geometry.bs_height - geometry.ut_height) ** 2
        return max(term, self.config.min_distance ** 2)

    def _uma_path_loss(self, geometry: LinkGeometry, los: bool) -> float:
        fc = self.config.frequency_ghz
        d3 = geometry.distance_3d
        d_bp = self._breakpoint_prime(geometry)
        if geometry.distance_2d <= d_bp:
            pl_los = 28.0 + 22 * math.log10(d3) + 20 * math.log10(fc)
        else:
            pl_los = (28.0 + 40 * math.log10(d3) + 20 * math.log10(fc)
                      - 9 * math.log10(self._breakpoint_term(geometry, d_bp)))
        if los:
            return pl_los
        pl_nlos = (13.54 + 39.08 * math.log10(d3) + 20 * math.log10(fc)
                   - 0.6 * (geometry.ut_height - 1.5))
        return max(pl_los, pl_nlos)

    def _umi_path_loss(self, geometry: LinkGeometry, los: bool) -> float:
        fc = self.config.frequency_ghz
        d3 = geometry.distance_3d
        d_bp = self._breakpoint_prime(geometry)
        if geometry.distance_2d <= d_bp:
            pl_los = 32.4 + 21 * math.log10(d3) + 20 * math.log10(fc)
        else:
            pl_los = (32.4 + 40 * math.log10(d3) + 20 * math.log10(fc)
                      - 9.5 * math.log10(self._breakpoint_term(geometry, d_bp)))
        if los:
            return pl_los
        pl_nlos = (35.3 * math.log10(d3) + 22.4 + 21.3 * math.log10(fc)
                   - 0.3 * (geometry.ut_height - 1.5))
        return max(pl_los, pl_nlos)

    def _inh_path_loss(self, geometry: LinkGeometry, los: bool) -> float:
        fc = self.config.frequency_ghz
        d3 = geometry.distance_3d
        pl_los = 32.4 + 17.3 * math.log10(d3) + 20 * math.log10(fc)
        if los:
            return pl_los
        pl_nlos = 38.3 * math.log10(d3) + 17.30 + 24.9 * math.log10(fc)
        return max(pl_los, pl_nlos)

    def _inf_path_loss(self, geometry: LinkGeometry, los: bool) -> float:
        fc = self.config.frequency_ghz
        d3 = geometry.distance_3d
        pl_los = 31.84 + 21.50 * math.log10(d3) + 19.00 * math.log10(fc)
        inf_type = self.config.inf_type
        if los or inf_type == InFType.HH:
            return pl_los
        pl_sl = 33 + 25.5 * math.log10(d3) + 20 * math.log10(fc)
        if inf_type == InFType.SL:
            return max(pl_sl, pl_los)
        if inf_type == InFType.DL:
            pl_dl = 18.6 + 35.7 * math.log10(d3) + 20 * math.log10(fc)
            return max(pl_dl, pl_los, pl_sl)
        if inf_type == InFType.SH:
            pl_sh = 32.4 + 23.0 * math.log10(d3) + 20 * math.log10(fc)
            return max(pl_sh, pl_los)
        pl_dh = 33.63 + 21.9 * math.log10(d3) + 20 * math.log10(fc)
        return max(pl_dh, pl_los)
