"""
Tests for the LOS/NLOS condition model.
"""

import unittest
import math
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nyusim.channel.condition import ChannelCondition, ConditionModel, LosCondition
from nyusim.channel.link import LinkGeometry
from nyusim.core.config import ChannelConfig, InFType, InHType, Scenario
from nyusim.core.errors import ConfigurationError, PreconditionError
from nyusim.core.random import RandomStreams
from nyusim.mobility.node import NodeMobility, Vector


def node(node_id, x, y, z):
    return NodeMobility(node_id, Vector(x, y, z))


class TestConditionModel(unittest.TestCase):
    """Test ConditionModel behavior."""

    def setUp(self):
        self.config = ChannelConfig(scenario=Scenario.UMI, frequency=28e9, seed=1, run=1)
        self.bs = node(0, 0.0, 0.0, 10.0)

    def test_short_link_is_los(self):
        """Links shorter than 18 m are always LOS in UMi."""
        model = ConditionModel(self.config)
        condition = model.get_condition(self.bs, node(1, 5.0, 0.0, 1.5), 0.0)
        self.assertEqual(condition.state, LosCondition.LOS)
        self.assertTrue(condition.is_los)
        self.assertFalse(condition.outdoor_to_indoor)

    def test_symmetry(self):
        """Condition(a, b) equals Condition(b, a), also across independent models."""
        ues = [node(i, 20.0 * i, 7.0 * i, 1.5) for i in range(1, 30)]
        forward = ConditionModel(self.config)
        backward = ConditionModel(self.config)

        for ue in ues:
            for now in (0.0, 1.0, 2.5):
                ab = forward.get_condition(self.bs, ue, now)
                ba = backward.get_condition(ue, self.bs, now)
                self.assertEqual(ab.state, ba.state)
                self.assertEqual(ab.outdoor_to_indoor, ba.outdoor_to_indoor)
                self.assertEqual(ab, forward.get_condition(ue, self.bs, now))

    def test_determinism(self):
        """Same seed and run give the same draws."""
        ues = [node(i, 30.0 * i, 0.0, 1.5) for i in range(1, 40)]
        first = [ConditionModel(self.config).get_condition(self.bs, ue, 0.0).state for ue in ues]
        second = [ConditionModel(self.config).get_condition(self.bs, ue, 0.0).state for ue in ues]
        self.assertEqual(first, second)

    def test_never_refreshed_with_zero_period(self):
        """An update period of 0 keeps the first draw forever."""
        model = ConditionModel(self.config)
        ue = node(1, 200.0, 0.0, 1.5)
        first = model.get_condition(self.bs, ue, 0.0)
        self.assertIs(model.get_condition(self.bs, ue, 1e6), first)

    def test_refresh_after_period(self):
        """A condition is redrawn once the update period has elapsed."""
        config = ChannelConfig(scenario=Scenario.UMI, frequency=28e9, condition_update_period=1.0)
        model = ConditionModel(config)
        ue = node(1, 200.0, 0.0, 1.5)
        first = model.get_condition(self.bs, ue, 0.0)
        self.assertIs(model.get_condition(self.bs, ue, 0.5), first)
        refreshed = model.get_condition(self.bs, ue, 1.0)
        self.assertIsNot(refreshed, first)
        self.assertEqual(refreshed.last_update_time, 1.0)

    def test_los_fraction_follows_probability(self):
        """The empirical LOS ratio matches the LOS probability."""
        config = ChannelConfig(scenario=Scenario.UMA, frequency=3.5e9, seed=7)
        model = ConditionModel(config, RandomStreams(7, 1))
        ues = [node(i, 100.0, 0.0, 1.5) for i in range(1, 2001)]
        los = sum(model.get_condition(self.bs, ue, 0.0).is_los for ue in ues)
        expected = model.get_los_probability(LinkGeometry.between(self.bs, ues[0], 0.01))
        self.assertAlmostEqual(los / len(ues), expected, delta=0.05)

    def test_o2i_threshold(self):
        """Outdoor links become O2I with the configured probability; indoor never."""
        config = ChannelConfig(scenario=Scenario.UMA, frequency=3.5e9, o2i_threshold=1.0)
        model = ConditionModel(config)
        self.assertTrue(model.get_condition(self.bs, node(1, 50.0, 0.0, 1.5), 0.0).outdoor_to_indoor)

        indoor = ConditionModel(ChannelConfig(scenario=Scenario.INH, frequency=28e9, o2i_threshold=1.0))
        self.assertFalse(indoor.get_condition(self.bs, node(1, 5.0, 0.0, 1.0), 0.0).outdoor_to_indoor)

    def test_los_probabilities(self):
        """Scenario LOS probabilities at a few reference distances."""
        geometry = LinkGeometry(100.0, 100.5, 10.0, 1.5, 0.0, 90.0, 180.0, 90.0)
        rma = ConditionModel(ChannelConfig(scenario=Scenario.RMA, frequency=3.5e9))
        self.assertAlmostEqual(rma.get_los_probability(geometry), 0.9139, places=3)
        umi = ConditionModel(ChannelConfig(scenario=Scenario.UMI, frequency=28e9))
        self.assertAlmostEqual(umi.get_los_probability(geometry), 0.18 + 0.82 * 0.0622, places=3)

        hh = ConditionModel(ChannelConfig(scenario=Scenario.INF, frequency=28e9, inf_type=InFType.HH))
        self.assertEqual(hh.get_los_probability(geometry), 1.0)

    def test_open_office_los_probability(self):
        model = ConditionModel(ChannelConfig(scenario=Scenario.INH, frequency=28e9,
                                             inh_type=InHType.OPEN_OFFICE))
        expected = {3.0: 1.0, 20.0: 0.8091, 100.0: 0.4244}
        for d2, probability in expected.items():
            geometry = LinkGeometry(d2, math.hypot(d2, 2.0), 3.0, 1.0, 0.0, 90.0, 180.0, 90.0)
            self.assertAlmostEqual(model.get_los_probability(geometry), probability, places=3)

    def test_inf_high_ut_is_los(self):
        """A UT above the clutter has LOS in the high-BS factory layouts."""
        config = ChannelConfig(scenario=Scenario.INF, frequency=28e9, inf_type=InFType.DH,
                               clutter_height=2.0)
        model = ConditionModel(config)
        geometry = LinkGeometry(50.0, 50.1, 8.0, 3.0, 0.0, 90.0, 180.0, 90.0)
        self.assertEqual(model.get_los_probability(geometry), 1.0)

    def test_missing_node_is_fatal(self):
        model = ConditionModel(self.config)
        with self.assertRaises(PreconditionError):
            model.get_condition(self.bs, None, 0.0)

    def test_invalid_scenario_is_fatal(self):
        with self.assertRaises(ConfigurationError):
            ChannelConfig(scenario="Suburban")

    def test_negative_seed_or_run_is_fatal(self):
        """Random stream selection is checked when the model is built."""
        with self.assertRaises(ConfigurationError):
            ConditionModel(ChannelConfig(scenario=Scenario.UMI, frequency=28e9, seed=-1))
        with self.assertRaises(ConfigurationError):
            ConditionModel(ChannelConfig(scenario=Scenario.UMI, frequency=28e9, run=-2))

    def test_unknown_indoor_layout_is_fatal(self):
        with self.assertRaises(ConfigurationError):
            ChannelConfig(scenario=Scenario.INH, inh_type="cubicle")
        with self.assertRaises(ConfigurationError):
            ChannelConfig(scenario=Scenario.INF, inf_type="XX")
        self.assertEqual(ChannelConfig(scenario=Scenario.INF, inf_type="dh").inf_type, InFType.DH)

    def test_same_state(self):
        a = ChannelCondition(LosCondition.LOS, False, 0.0)
        b = ChannelCondition(LosCondition.LOS, False, 5.0)
        c = ChannelCondition(LosCondition.NLOS, False, 5.0)
        self.assertTrue(a.same_state(b))
        self.assertFalse(a.same_state(c))
        self.assertFalse(a.same_state(None))


if __name__ == '__main__':
    unittest.main()
