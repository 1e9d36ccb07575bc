"""
Reproducible random streams.

A (seed, run) pair selects a family of independent numpy generators. Each
component asks for the stream bound to a link, so a link's draws depend
only on the pair and on the sequence of calls made for that link.
"""

import logging
from typing import Dict, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# stream identifiers, one per consuming component
CONDITION_STREAM = 0
PATHLOSS_STREAM = 1
CHANNEL_STREAM = 2
O2I_STREAM = 3


class RandomStreams:
    """Hands out per-link numpy generators derived from a seed/run pair."""

    def __init__(self, seed: int = 1, run: int = 1):
        self.seed = int(seed)
        self.run = int(run)
        self._generators: Dict[Tuple[int, ...], np.random.Generator] = {}

    def stream(self, stream_id: int, *key: int) -> np.random.Generator:
        """
        Get the generator for a stream, creating it on first use.

        Args:
            stream_id: Component stream identifier
            key: Additional non-negative integers (e.g. link node ids)

        Returns:
            The persistent generator for this (stream, key) combination
        """
        full_key = (stream_id,) + tuple(int(k) for k in key)
        generator = self._generators.get(full_key)
        if generator is None:
            sequence = np.random.SeedSequence(entropy=self.seed,
                                              spawn_key=(self.run,) + full_key)
            generator = np.random.default_rng(sequence)
            self._generators[full_key] = generator
            logger.debug(f"Created random stream {full_key} (seed={self.seed}, run={self.run})")
        return generator
