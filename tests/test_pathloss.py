"""
Tests for the path loss model.
"""

import unittest
import math
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nyusim.channel.condition import ChannelCondition, ConditionModel, LosCondition
from nyusim.channel.link import LinkGeometry
from nyusim.channel.pathloss import PathLossModel
from nyusim.core.config import ChannelConfig, InFType, O2ILossType, Scenario
from nyusim.core.errors import ConfigurationError
from nyusim.mobility.node import NodeMobility, Vector

LOS = ChannelCondition(LosCondition.LOS, False, 0.0)
NLOS = ChannelCondition(LosCondition.NLOS, False, 0.0)

BS_HEIGHTS = {
    Scenario.UMI: 10.0,
    Scenario.UMA: 25.0,
    Scenario.RMA: 35.0,
    Scenario.INH: 3.0,
    Scenario.INF: 8.0,
}


def build_model(**kwargs) -> PathLossModel:
    config = ChannelConfig(**kwargs)
    return PathLossModel(config, ConditionModel(config))


class TestPathLossModel(unittest.TestCase):
    """Test PathLossModel behavior."""

    def test_end_to_end_umi_28ghz(self):
        """UMi at 28 GHz, short LOS link, 10 dBm transmit power."""
        model = build_model(scenario=Scenario.UMI, frequency=28e9, shadowing_enabled=False,
                            seed=1, run=1)
        tx = NodeMobility(0, Vector(0.0, 0.0, 10.0))
        rx = NodeMobility(1, Vector(1.0, 0.0, 1.6))

        d3 = math.sqrt(1.0 + 8.4 ** 2)
        expected = 10.0 - (32.4 + 21 * math.log10(d3) + 20 * math.log10(28.0))
        self.assertAlmostEqual(model.calc_rx_power(10.0, tx, rx, 0.0), expected, places=9)

    def test_end_to_end_reproducible_with_shadowing(self):
        """The same seed/run pair reproduces the received power bit for bit."""
        tx = NodeMobility(0, Vector(0.0, 0.0, 10.0))
        rx = NodeMobility(1, Vector(1.0, 0.0, 1.6))
        first = build_model(scenario=Scenario.UMI, frequency=28e9, seed=1, run=1)
        second = build_model(scenario=Scenario.UMI, frequency=28e9, seed=1, run=1)
        self.assertEqual(first.calc_rx_power(10.0, tx, rx, 0.0),
                         second.calc_rx_power(10.0, tx, rx, 0.0))

        other_run = build_model(scenario=Scenario.UMI, frequency=28e9, seed=1, run=2)
        self.assertNotEqual(first.calc_rx_power(10.0, tx, rx, 0.0),
                            other_run.calc_rx_power(10.0, tx, rx, 0.0))

    def test_get_path_loss_matches_rx_power_without_random_terms(self):
        model = build_model(scenario=Scenario.INH, frequency=60e9, shadowing_enabled=False)
        tx = NodeMobility(0, Vector(0.0, 0.0, 3.0))
        rx = NodeMobility(1, Vector(0.5, 0.5, 1.0))
        self.assertAlmostEqual(model.get_path_loss(tx, rx, 0.0),
                               -model.calc_rx_power(0.0, tx, rx, 0.0), places=9)

    def test_distance_monotonicity(self):
        """Path loss never decreases with distance for a fixed condition."""
        for scenario, h_bs in BS_HEIGHTS.items():
            model = build_model(scenario=scenario, frequency=3.5e9, inf_type=InFType.DL)
            for condition in (LOS, NLOS):
                previous = -math.inf
                for d2 in [1.0 + 5.0 * i for i in range(1000)]:
                    d3 = math.hypot(d2, h_bs - 1.5)
                    geometry = LinkGeometry(d2, d3, h_bs, 1.5, 0.0, 90.0, 180.0, 90.0)
                    loss = model.calc_path_loss(geometry, condition)
                    self.assertGreaterEqual(loss, previous - 1e-9,
                                            f"{scenario.value} {condition.state.value} at {d2} m")
                    previous = loss

    def test_nlos_never_below_los(self):
        for scenario, h_bs in BS_HEIGHTS.items():
            model = build_model(scenario=scenario, frequency=28e9)
            geometry = LinkGeometry(60.0, math.hypot(60.0, h_bs - 1.5), h_bs, 1.5,
                                    0.0, 90.0, 180.0, 90.0)
            self.assertGreaterEqual(model.calc_path_loss(geometry, NLOS),
                                    model.calc_path_loss(geometry, LOS))

    def test_zero_distance_is_clamped(self):
        """Co-located nodes produce a finite loss."""
        model = build_model(scenario=Scenario.INH, frequency=28e9, shadowing_enabled=False)
        a = NodeMobility(0, Vector(1.0, 1.0, 1.0))
        b = NodeMobility(1, Vector(1.0, 1.0, 1.0))
        self.assertTrue(math.isfinite(model.calc_rx_power(0.0, a, b, 0.0)))

    def test_foliage_loss(self):
        tx = NodeMobility(0, Vector(0.0, 0.0, 10.0))
        rx = NodeMobility(1, Vector(5.0, 0.0, 1.5))
        plain = build_model(scenario=Scenario.UMI, frequency=28e9, shadowing_enabled=False)
        foliage = build_model(scenario=Scenario.UMI, frequency=28e9, shadowing_enabled=False,
                              foliage_loss_enabled=True, foliage_loss=0.5, foliage_depth=8.0)
        self.assertAlmostEqual(plain.calc_rx_power(0.0, tx, rx, 0.0)
                               - foliage.calc_rx_power(0.0, tx, rx, 0.0), 4.0, places=9)

    def test_o2i_loss_cached_per_condition(self):
        """O2I penetration loss is drawn once per link condition."""
        tx = NodeMobility(0, Vector(0.0, 0.0, 25.0))
        rx = NodeMobility(1, Vector(5.0, 0.0, 1.5))
        outdoor = build_model(scenario=Scenario.UMA, frequency=28e9, shadowing_enabled=False)
        o2i = build_model(scenario=Scenario.UMA, frequency=28e9, shadowing_enabled=False,
                          o2i_threshold=1.0)

        first = o2i.calc_rx_power(0.0, tx, rx, 0.0)
        self.assertEqual(first, o2i.calc_rx_power(0.0, tx, rx, 1.0))
        self.assertLess(first, outdoor.calc_rx_power(0.0, tx, rx, 0.0))

    def test_o2i_high_loss_exceeds_low(self):
        """High-loss buildings attenuate more than low-loss ones for the same draws."""
        tx = NodeMobility(0, Vector(0.0, 0.0, 25.0))
        rx = NodeMobility(1, Vector(5.0, 0.0, 1.5))
        low = build_model(scenario=Scenario.UMA, frequency=28e9, shadowing_enabled=False,
                          o2i_threshold=1.0, o2i_loss_type=O2ILossType.LOW)
        high = build_model(scenario=Scenario.UMA, frequency=28e9, shadowing_enabled=False,
                           o2i_threshold=1.0, o2i_loss_type=O2ILossType.HIGH)
        self.assertGreater(low.calc_rx_power(0.0, tx, rx, 0.0) - high.calc_rx_power(0.0, tx, rx, 0.0),
                           10.0)

    def test_shadowing_redrawn_per_call(self):
        """Each query draws new shadowing; the sequence repeats for the same seed and run."""
        tx = NodeMobility(0, Vector(0.0, 0.0, 10.0))
        rx = NodeMobility(1, Vector(30.0, 0.0, 1.5))
        first = build_model(scenario=Scenario.UMI, frequency=28e9, seed=3, run=1)
        second = build_model(scenario=Scenario.UMI, frequency=28e9, seed=3, run=1)

        values = [first.calc_rx_power(0.0, tx, rx, 0.0) for _ in range(5)]
        self.assertEqual(len(set(values)), 5)
        self.assertEqual(values, [second.calc_rx_power(0.0, tx, rx, 0.0) for _ in range(5)])

    def test_shadowing_std(self):
        model = build_model(scenario=Scenario.UMI, frequency=28e9)
        geometry = LinkGeometry(60.0, 60.6, 10.0, 1.5, 0.0, 90.0, 180.0, 90.0)
        self.assertEqual(model.get_shadowing_std(geometry, LOS), 4.0)
        self.assertEqual(model.get_shadowing_std(geometry, NLOS), 7.82)

    def test_out_of_band_frequency(self):
        """Frequencies outside 0.5-150 GHz are fatal unless strictness is off."""
        with self.assertRaises(ConfigurationError):
            build_model(scenario=Scenario.UMI, frequency=200e9)

        with self.assertLogs('nyusim.core.config', level='WARNING'):
            build_model(scenario=Scenario.UMI, frequency=200e9, strict_frequency_range=False)

    def test_missing_condition_model(self):
        with self.assertRaises(ConfigurationError):
            PathLossModel(ChannelConfig(scenario=Scenario.UMI), None)


if __name__ == '__main__':
    unittest.main()
