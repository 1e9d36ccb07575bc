"""
Channel models: link condition, large-scale path loss and the drop-based
multipath channel matrix generator.
"""

from .base import ConditionProvider, MatrixGenerator, PathLossComputer
from .condition import ChannelCondition, ConditionModel, LosCondition
from .link import LinkGeometry, LinkKey
from .matrix import ChannelMatrix, ChannelMatrixGenerator
from .pathloss import PathLossModel

__all__ = ['ConditionProvider', 'PathLossComputer', 'MatrixGenerator',
           'ChannelCondition', 'ConditionModel', 'LosCondition', 'LinkGeometry', 'LinkKey',
           'ChannelMatrix', 'ChannelMatrixGenerator', 'PathLossModel']
