"""Vector similarity."""

import math
from collections.abc import Sequence


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors.

    Vectors of different length, and vectors with zero magnitude, have a
    similarity of 0.0 rather than raising.
    """
    if len(a) != len(b):
        return 0.0

    dot_product = 0.0
    magnitude_a = 0.0
    magnitude_b = 0.0
    for x, y in zip(a, b):
        dot_product += x * y
        magnitude_a += x * x
        magnitude_b += y * y

    magnitude_a = math.sqrt(magnitude_a)
    magnitude_b = math.sqrt(magnitude_b)

    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return dot_product / (magnitude_a * magnitude_b)
