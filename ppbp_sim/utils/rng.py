"""Random stream management for reproducible simulations."""

from typing import Optional
import numpy as np


class RandomStreams:
    """
    Hands out independent numpy Generators derived from one seed.

    Streams are numbered in the order they are requested, so a simulation that
    creates its applications in the same order reproduces the same traffic.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the stream factory

        Args:
            seed: Root seed (default: fresh OS entropy)
        """
        self.seed_sequence = np.random.SeedSequence(seed)
        self.seed = self.seed_sequence.entropy
        self.streams_created = 0

    def stream(self) -> np.random.Generator:
        """
        Create the next independent Generator

        Returns:
            A numpy Generator that shares no state with the previous ones
        """
        child = self.seed_sequence.spawn(1)[0]
        self.streams_created += 1
        return np.random.default_rng(child)
