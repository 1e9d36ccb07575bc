"""
Utility modules for channel simulations.

This module provides configuration parsing, trace collection and visualization.
"""

from .config_parser import ConfigParser
from .metrics import TraceCollector
from .visualization import TraceVisualizer

__all__ = ['ConfigParser', 'TraceCollector', 'TraceVisualizer']
