"""
Tests for mobility and antenna functionality.
"""

import unittest
import sys
import os
import math

import numpy as np

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nyusim.mobility.antenna import UniformPlanarArray, dft_beamforming, steering_vector
from nyusim.mobility.node import MobilityType, NodeMobility, Vector


class TestVector(unittest.TestCase):
    """Test Vector class."""

    def test_distance_calculation(self):
        """Test distance calculation between positions."""
        pos1 = Vector(0, 0, 0)
        pos2 = Vector(3, 4, 12)
        self.assertAlmostEqual(pos1.distance_to(pos2), 13.0, places=5)
        self.assertAlmostEqual(pos1.distance_2d_to(pos2), 5.0, places=5)

    def test_vector_arithmetic(self):
        """Test vector addition, subtraction and scaling."""
        pos1 = Vector(1, 2, 3)
        pos2 = Vector(3, 4, 5)

        self.assertEqual((pos1 + pos2).as_tuple(), (4, 6, 8))
        self.assertEqual((pos2 - pos1).as_tuple(), (2, 2, 2))
        self.assertEqual((pos1 * 2).as_tuple(), (2, 4, 6))

    def test_from_sequence(self):
        self.assertEqual(Vector.from_sequence([1, 2]).as_tuple(), (1.0, 2.0, 0.0))
        self.assertEqual(Vector.from_sequence((1, 2, 3)).as_tuple(), (1.0, 2.0, 3.0))


class TestNodeMobility(unittest.TestCase):
    """Test NodeMobility functionality."""

    def test_constant_position(self):
        """A constant position node ignores time updates."""
        node = NodeMobility(0, Vector(10, 20, 1.5), Vector(5, 0, 0))
        for _ in range(10):
            node.update_position(0.1)
        self.assertEqual(node.get_position().as_tuple(), (10, 20, 1.5))
        self.assertEqual(node.get_velocity().norm, 0.0)

    def test_constant_velocity(self):
        node = NodeMobility(1, Vector(0, 0, 1.5), Vector(10, 0, 0), MobilityType.CONSTANT_VELOCITY)
        for _ in range(10):
            node.update_position(0.1)
        self.assertAlmostEqual(node.get_position().x, 10.0, places=9)
        self.assertAlmostEqual(node.get_position().z, 1.5, places=9)

    def test_negative_id(self):
        with self.assertRaises(ValueError):
            NodeMobility(-1, Vector())


class TestUniformPlanarArray(unittest.TestCase):
    """Test antenna array functionality."""

    def test_element_locations(self):
        array = UniformPlanarArray(2, 3)
        locations = array.get_element_locations()
        self.assertEqual(locations.shape, (6, 3))
        self.assertTrue(np.all(locations[:, 0] == 0))
        self.assertAlmostEqual(locations[5, 1], 1.0)
        self.assertAlmostEqual(locations[5, 2], 0.5)

    def test_default_beam_has_unit_power(self):
        array = UniformPlanarArray(4, 4)
        self.assertAlmostEqual(float(np.sum(np.abs(array.get_beamforming_vector()) ** 2)), 1.0)

    def test_set_beamforming_vector_checks_size(self):
        array = UniformPlanarArray(2, 2)
        with self.assertRaises(ValueError):
            array.set_beamforming_vector([1.0, 0.0])

    def test_dft_beamforming(self):
        """DFT weights have unit power and maximize the gain towards the target."""
        a = NodeMobility(0, Vector(0, 0, 10))
        b = NodeMobility(1, Vector(20, 20, 1.5))
        array = UniformPlanarArray(2, 2)
        weights = dft_beamforming(a, array, b)

        self.assertAlmostEqual(float(np.sum(np.abs(weights) ** 2)), 1.0)
        self.assertTrue(np.array_equal(array.get_beamforming_vector(), weights))

        azimuth = math.atan2(20, 20)
        inclination = math.acos(-8.5 / math.sqrt(20 ** 2 + 20 ** 2 + 8.5 ** 2))
        response = np.conj(steering_vector(array, azimuth, inclination, normalize=False))
        self.assertAlmostEqual(abs(np.dot(weights, response)), 2.0, places=9)

    def test_field_pattern_shape(self):
        array = UniformPlanarArray(2, 2, element_gain_db=3.0)
        theta, phi = array.field_pattern(np.zeros((3, 4)), np.zeros((3, 4)))
        self.assertEqual(theta.shape, (3, 4))
        self.assertTrue(np.allclose(theta, math.sqrt(10 ** 0.3)))
        self.assertTrue(np.all(phi == 0))


if __name__ == '__main__':
    unittest.main()
