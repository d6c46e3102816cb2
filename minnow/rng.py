"""A well-seeded pseudo-random number generator."""

import os
import random

_SEED_BYTES = 1024 * 4


def get_random_engine() -> random.Random:
    """A generator seeded from the operating system's entropy source."""
    return random.Random(int.from_bytes(os.urandom(_SEED_BYTES), "little"))