"""
Mobility module for channel simulations.

This module implements node position/velocity handles and antenna arrays.
"""

from .antenna import UniformPlanarArray, dft_beamforming
from .node import MobilityType, NodeMobility, Vector

__all__ = ['NodeMobility', 'MobilityType', 'Vector', 'UniformPlanarArray', 'dft_beamforming']
