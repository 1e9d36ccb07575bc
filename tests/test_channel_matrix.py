"""
Tests for the channel matrix generator.
"""

import unittest
import sys
import os

import numpy as np

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nyusim.channel.condition import ChannelCondition, ConditionModel, LosCondition
from nyusim.channel.matrix import ChannelMatrixGenerator
from nyusim.core.config import ChannelConfig, Scenario
from nyusim.core.errors import PreconditionError
from nyusim.core.random import RandomStreams
from nyusim.mobility.antenna import UniformPlanarArray
from nyusim.mobility.node import NodeMobility, Vector

LOS = ChannelCondition(LosCondition.LOS, False, 0.0)
NLOS = ChannelCondition(LosCondition.NLOS, False, 0.0)
O2I = ChannelCondition(LosCondition.NLOS, True, 0.0)


def build_generator(**kwargs) -> ChannelMatrixGenerator:
    config = ChannelConfig(**kwargs)
    streams = RandomStreams(config.seed, config.run)
    return ChannelMatrixGenerator(config, ConditionModel(config, streams), streams)


class TestChannelMatrixGenerator(unittest.TestCase):
    """Test ChannelMatrixGenerator behavior."""

    def setUp(self):
        self.tx = NodeMobility(0, Vector(0.0, 0.0, 10.0))
        self.rx = NodeMobility(1, Vector(40.0, 15.0, 1.5))
        self.tx_antenna = UniformPlanarArray(2, 2)
        self.rx_antenna = UniformPlanarArray(2, 2)

    def get(self, generator, now=0.0, condition=None):
        return generator.get_matrix(self.tx, self.rx, self.tx_antenna, self.rx_antenna,
                                    now, condition)

    def test_determinism(self):
        """Identical seed, run and call sequence give bit-identical matrices."""
        first = self.get(build_generator(scenario=Scenario.UMI, frequency=28e9, seed=3, run=2))
        second = self.get(build_generator(scenario=Scenario.UMI, frequency=28e9, seed=3, run=2))

        self.assertTrue(np.array_equal(first.coefficients, second.coefficients))
        self.assertTrue(np.array_equal(first.delays, second.delays))
        self.assertTrue(np.array_equal(first.powers, second.powers))
        self.assertTrue(np.array_equal(first.initial_phases, second.initial_phases))
        self.assertEqual(first.rng_state, second.rng_state)

    def test_different_runs_differ(self):
        first = self.get(build_generator(scenario=Scenario.UMI, frequency=28e9, run=1))
        second = self.get(build_generator(scenario=Scenario.UMI, frequency=28e9, run=2))
        self.assertFalse(np.array_equal(first.coefficients, second.coefficients))

    def test_power_normalization(self):
        """Cluster powers sum to one for every scenario and condition."""
        for scenario in Scenario:
            for condition in (LOS, NLOS, O2I):
                if condition is O2I and not scenario.is_outdoor:
                    continue
                generator = build_generator(scenario=scenario, frequency=28e9)
                matrix = self.get(generator, condition=condition)
                self.assertAlmostEqual(float(np.sum(matrix.powers)), 1.0, delta=1e-6,
                                       msg=f"{scenario.value}")

    def test_cluster_structure(self):
        """Delays start at zero and increase, angles lie in their ranges."""
        generator = build_generator(scenario=Scenario.UMA, frequency=3.5e9)
        for condition in (LOS, NLOS):
            matrix = self.get(generator, condition=condition)
            generator.clear()
            n = matrix.cluster_count

            self.assertEqual(matrix.delays[0], 0.0)
            self.assertTrue(np.all(np.diff(matrix.delays) >= 0))
            self.assertLessEqual(n, 20)
            self.assertEqual(matrix.coefficients.shape, (4, 4, n))
            self.assertEqual(matrix.ray_azimuth_arrival.shape, (n, 20))
            self.assertEqual(matrix.initial_phases.shape, (n, 20, 4))
            for zenith in (matrix.ray_zenith_arrival, matrix.ray_zenith_departure):
                self.assertTrue(np.all((zenith >= 0) & (zenith <= 180)))
            for azimuth in (matrix.ray_azimuth_arrival, matrix.ray_azimuth_departure):
                self.assertTrue(np.all((azimuth >= -180) & (azimuth < 180)))
            power_db = 10 * np.log10(matrix.powers)
            self.assertTrue(np.all(power_db >= power_db.max() - 25.0))

    def test_los_cluster_points_at_other_node(self):
        """Under LOS the first cluster is anchored on the direct path."""
        matrix = self.get(build_generator(scenario=Scenario.UMI, frequency=28e9), condition=LOS)
        azimuth = np.degrees(np.arctan2(15.0, 40.0))
        self.assertAlmostEqual(float(matrix.azimuth_departure[0]), azimuth, places=6)
        self.assertIsNotNone(matrix.k_factor_db)

    def test_o2i_arrival_zenith(self):
        """O2I links have no K-factor and arrive around the horizon."""
        matrix = self.get(build_generator(scenario=Scenario.UMA, frequency=28e9), condition=O2I)
        self.assertIsNone(matrix.k_factor_db)

    def test_cache_freshness(self):
        """Matrices are reused within the update period and redrawn after it."""
        generator = build_generator(scenario=Scenario.UMI, frequency=28e9,
                                    channel_update_period=0.1)
        first = self.get(generator, now=0.0)
        self.assertIs(self.get(generator, now=0.05), first)
        self.assertEqual(self.get(generator, now=0.05).generation_time, first.generation_time)

        later = self.get(generator, now=0.2)
        self.assertGreater(later.generation_time, first.generation_time)
        self.assertFalse(np.array_equal(later.coefficients, first.coefficients))

    def test_zero_period_generates_once(self):
        generator = build_generator(scenario=Scenario.UMI, frequency=28e9)
        first = self.get(generator, now=0.0)
        self.assertIs(self.get(generator, now=1e5), first)

    def test_reverse_orientation(self):
        """Swapped endpoints reuse the same matrix, transposed."""
        generator = build_generator(scenario=Scenario.UMI, frequency=28e9)
        forward = self.get(generator)
        backward = generator.get_matrix(self.rx, self.tx, self.rx_antenna, self.tx_antenna, 0.0)
        self.assertIs(forward, backward)

        self.assertFalse(forward.is_reverse(self.tx.node_id))
        self.assertTrue(forward.is_reverse(self.rx.node_id))
        h, tx_az, _, rx_az, _ = forward.oriented(self.rx.node_id)
        self.assertTrue(np.array_equal(h, forward.coefficients.transpose(1, 0, 2)))
        self.assertTrue(np.array_equal(tx_az, forward.azimuth_arrival))
        self.assertTrue(np.array_equal(rx_az, forward.azimuth_departure))

    def test_regenerates_on_condition_change(self):
        generator = build_generator(scenario=Scenario.UMI, frequency=28e9)
        first = self.get(generator, condition=LOS)
        second = self.get(generator, now=0.0, condition=NLOS)
        self.assertIsNot(first, second)
        self.assertGreater(second.generation_time, first.generation_time)
        self.assertIsNone(second.k_factor_db)

    def test_regenerates_on_antenna_change(self):
        generator = build_generator(scenario=Scenario.UMI, frequency=28e9)
        first = self.get(generator)
        self.rx_antenna = UniformPlanarArray(4, 4)
        second = self.get(generator)
        self.assertIsNot(first, second)
        self.assertEqual(second.coefficients.shape[:2], (16, 4))

    def test_matrix_is_read_only(self):
        matrix = self.get(build_generator(scenario=Scenario.UMI, frequency=28e9))
        with self.assertRaises(ValueError):
            matrix.coefficients[0, 0, 0] = 0

    def test_missing_antenna_is_fatal(self):
        generator = build_generator(scenario=Scenario.UMI, frequency=28e9)
        with self.assertRaises(PreconditionError):
            generator.get_matrix(self.tx, self.rx, None, self.rx_antenna, 0.0)

    def test_missing_node_is_fatal(self):
        generator = build_generator(scenario=Scenario.UMI, frequency=28e9)
        with self.assertRaises(PreconditionError):
            generator.get_matrix(self.tx, None, self.tx_antenna, self.rx_antenna, 0.0)


if __name__ == '__main__':
    unittest.main()
