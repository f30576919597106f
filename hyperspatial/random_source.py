"""
Seeded random source for the stochastic correction terms.

The engine never draws from ambient global state. It owns (or is handed)
a ``RandomSource`` and passes it to every strategy that perturbs values,
so a caller can inject a deterministic source per context.

Reproducibility
---------------
Draws are serialized under a lock, which keeps the generator consistent
when batch workers share it. The ORDER of draws across workers is not
deterministic, so jittered parallel batches are not reproducible. The
same seed and the same sequential call sequence always are.
"""

import threading
from typing import Optional
import numpy as np
from numpy.typing import NDArray


class RandomSource:
    """Thread-safe, reseedable wrapper around ``numpy.random.Generator``.

    Parameters
    ----------
    seed : int, optional
        Initial seed. None draws fresh OS entropy.
    """

    def __init__(self, seed: Optional[int] = None):
        self._lock = threading.Lock()
        self._seed = seed
        self._rng = np.random.default_rng(seed)

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def reseed(self, seed: int) -> None:
        """Restart the sequence from ``seed``."""
        with self._lock:
            self._seed = seed
            self._rng = np.random.default_rng(seed)

    def gaussian(self) -> float:
        """One standard-normal draw."""
        with self._lock:
            return float(self._rng.standard_normal())

    def gaussians(self, shape) -> NDArray[np.float64]:
        """Standard-normal draws in row-major order."""
        with self._lock:
            return self._rng.standard_normal(shape)

    def uniform(self) -> float:
        """One draw from [0, 1)."""
        with self._lock:
            return float(self._rng.random())
