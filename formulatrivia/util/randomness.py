from __future__ import annotations

"""Randomness helpers for seeding and shuffling."""

import os
import random
from typing import List, Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


def seed_if_needed() -> Optional[int]:
    """Seed RNGs if SEED env var is set. Returns the seed used, if any."""
    seed = os.environ.get("SEED")
    if seed is None:
        return None
    try:
        s = int(seed)
    except ValueError:
        return None
    random.seed(s)
    np.random.seed(s % (2 ** 32))
    return s


def make_rng(seed: Optional[int] = None) -> random.Random:
    return random.Random(seed)


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy (Fisher-Yates via Random.shuffle)."""
    out = list(items)
    (rng or random).shuffle(out)
    return out
