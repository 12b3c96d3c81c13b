"""Unit tests for cosine similarity."""

import math

import pytest

from skillsearch.core.similarity import cosine_similarity
from skillsearch.providers.fallback import fallback_embedding


class TestCosineSimilarity:
    """Test cosine_similarity()."""

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 1.0], [5.0, 5.0]) == pytest.approx(1.0)

    def test_symmetric(self):
        a = fallback_embedding("react hooks")
        b = fallback_embedding("vue components")
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_self_similarity_of_embedding(self):
        v = fallback_embedding("anything")
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_length_mismatch_returns_zero(self):
        assert cosine_similarity(fallback_embedding("a", 1024), fallback_embedding("a", 512)) == 0.0

    def test_zero_magnitude_returns_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_known_angle(self):
        assert cosine_similarity([1.0, 0.0], [0.8, 0.6]) == pytest.approx(0.8)
        assert cosine_similarity([1.0, 0.0], [1.0, 1.0]) == pytest.approx(1 / math.sqrt(2))
