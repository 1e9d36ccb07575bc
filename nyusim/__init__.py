"""
NYUSIM-style wideband channel simulation framework

This package provides LOS/NLOS condition, path loss, multipath channel
matrix and spectrum models for links between 0.5 and 150 GHz in urban,
rural, indoor office and indoor factory scenarios.
"""

__version__ = "1.0.0"
__author__ = "Carlos Lopes"
