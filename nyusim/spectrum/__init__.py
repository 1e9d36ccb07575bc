"""Spectrum-domain channel application."""

from .applier import LongTermCacheEntry, SpectrumApplier
from .psd import SpectrumValue, create_noise_psd, create_tx_psd

__all__ = ['SpectrumApplier', 'LongTermCacheEntry', 'SpectrumValue', 'create_tx_psd', 'create_noise_psd']
