"""Standard-normal sampling with explicit, splittable generator state."""

from __future__ import annotations

import numpy as np


class NormalSampler:
    """Box-Muller standard-normal sampler over a seeded numpy Generator.

    Each sampler owns its generator, so samplers handed to different worker
    threads never share random state. ``spawn`` derives independent child
    streams from the same ``SeedSequence``, which keeps batched runs
    reproducible for a given seed regardless of how many workers execute them.
    """

    def __init__(self, seed: int | np.random.SeedSequence | None = None) -> None:
        if isinstance(seed, np.random.SeedSequence):
            self.seed_sequence = seed
        else:
            self.seed_sequence = np.random.SeedSequence(seed)
        self.rng = np.random.default_rng(self.seed_sequence)

    def uniform_open(self, size: int | tuple[int, ...]) -> np.ndarray:
        """Uniform draws on (0, 1], safe as a logarithm argument."""
        return 1.0 - self.rng.random(size)

    def standard_normal(self, size: int | tuple[int, ...]) -> np.ndarray:
        """Draw standard-normal variates via the Box-Muller transform."""
        u1 = self.uniform_open(size)
        u2 = self.rng.random(size)
        return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)

    def spawn(self, n: int) -> list[NormalSampler]:
        """Independent child samplers, one per parallel batch."""
        return [NormalSampler(child) for child in self.seed_sequence.spawn(n)]
