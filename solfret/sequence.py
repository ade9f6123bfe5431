"""Random practice sequences of solfege digits.

The first seven digits are a shuffled permutation of 1-7, so every degree
appears at least once; any further digits are drawn independently.
"""

import logging
from random import Random
from typing import List, Optional

from solfret.constants import MIN_SEQUENCE_LENGTH, NUM_DEGREES

_DEGREES = list(range(1, NUM_DEGREES + 1))


def generate_sequence(length: int, rng: Optional[Random] = None) -> List[int]:
    """Generate a practice sequence.

    Args:
        length: Requested length; values below seven are raised to seven.
        rng: Source of randomness, for reproducible sequences.

    Returns:
        A list of digits 1-7 containing each digit at least once.
    """
    rng = rng if rng is not None else Random()
    safe_length = max(MIN_SEQUENCE_LENGTH, length)
    seq = list(_DEGREES)
    # Fisher-Yates, so every permutation is equally likely
    rng.shuffle(seq)
    for _ in range(safe_length - NUM_DEGREES):
        seq.append(rng.randint(1, NUM_DEGREES))
    logging.debug("generated sequence of %d digits", safe_length)
    return seq
