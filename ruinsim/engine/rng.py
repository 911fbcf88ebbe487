"""
Random Source - Seeded uniform [0, 1) draws for the trial engine.
"""
import hashlib
from typing import Optional

import numpy as np


def seed_to_entropy(seed: str) -> int:
    """Map a seed string to a 256-bit integer usable as SeedSequence entropy."""
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest, "big")


class RandomSource:
    """
    Uniform [0, 1) generator backed by numpy's PCG64.

    The same seed string always yields the same sequence. Without a seed the
    stream is drawn from OS entropy. Draws are generated in blocks and handed
    out one at a time; one instance must be consumed sequentially.
    """

    BLOCK_SIZE = 1024

    def __init__(self, seed: Optional[str] = None):
        """
        Initialize the source.

        Args:
            seed: Optional seed string. None or "" means non-reproducible.
        """
        self.seed = seed or None
        if not seed:
            sequence = np.random.SeedSequence()
        else:
            sequence = np.random.SeedSequence(seed_to_entropy(seed))
        self._init_from_sequence(sequence)

    @classmethod
    def from_entropy(
        cls,
        entropy: int,
        spawn_key: tuple[int, ...] = (),
        seed: Optional[str] = None,
    ) -> "RandomSource":
        source = cls.__new__(cls)
        source.seed = seed
        source._init_from_sequence(np.random.SeedSequence(entropy, spawn_key=spawn_key))
        return source

    def _init_from_sequence(self, sequence: np.random.SeedSequence) -> None:
        self.entropy = sequence.entropy
        self.spawn_key = tuple(sequence.spawn_key)
        self._generator = np.random.Generator(np.random.PCG64(sequence))
        self._buffer: list[float] = []
        self._position = 0

    def spawn(self, run_id: int) -> "RandomSource":
        """Derive the independent stream for one trial of a batch."""
        return RandomSource.from_entropy(
            self.entropy,
            spawn_key=self.spawn_key + (run_id,),
            seed=self.seed,
        )

    def next(self) -> float:
        if self._position >= len(self._buffer):
            self._buffer = self._generator.random(self.BLOCK_SIZE).tolist()
            self._position = 0
        value = self._buffer[self._position]
        self._position += 1
        return value
