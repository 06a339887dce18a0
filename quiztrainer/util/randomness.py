from __future__ import annotations

"""Randomness helpers for reproducible question planning."""

import os
import random
from typing import Optional

import numpy as np


def env_seed() -> Optional[int]:
    """Seed from the SEED env var, or None when unset or not an integer."""
    seed = os.environ.get("SEED")
    if seed is None:
        return None
    try:
        return int(seed)
    except ValueError:
        return None


def seed_if_needed() -> Optional[int]:
    """Seed the global RNGs if SEED env var is set; returns the seed used."""
    s = env_seed()
    if s is not None:
        random.seed(s)
        np.random.seed(s % (2**32))
    return s


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Dedicated Random instance; falls back to SEED from the environment."""
    if seed is None:
        seed = env_seed()
    return random.Random(seed)
