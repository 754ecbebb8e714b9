"""Vector operations for nearest-neighbour intent matching.

This module provides the cosine similarity contract used by the router:
- Strict argument checks (absent, empty or mismatched vectors are caller bugs)
- Zero-norm vectors are maximally dissimilar (score 0.0, never NaN)
- Results clipped to [-1, 1] to absorb floating-point drift

Example:
    >>> cosine_similarity([1.0, 0.0], [1.0, 0.0])
    1.0
    >>> cosine_similarity([0.0, 0.0], [1.0, 0.0])
    0.0
"""

from typing import Optional

import numpy as np

from ..types.types import EmbeddingLike, VectorArray


def as_vector(values: EmbeddingLike) -> VectorArray:
    """Convert a float sequence to an immutable 1-D float32 array.

    Args:
        values: Sequence of floats or numpy array

    Returns:
        Read-only C-contiguous float32 array
    """
    array = np.array(values, dtype=np.float32)
    if array.ndim != 1:
        raise ValueError(f"Embedding must be one-dimensional, got shape {array.shape}")
    array.setflags(write=False)
    return array


def cosine_similarity(a: Optional[EmbeddingLike], b: Optional[EmbeddingLike]) -> float:
    """Cosine similarity between two embedding vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero norm

    Raises:
        ValueError: If either vector is absent, empty, or lengths differ
    """
    if a is None or b is None:
        raise ValueError("Vectors cannot be None")

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)

    if vec_a.size == 0 or vec_b.size == 0:
        raise ValueError("Vectors cannot be empty")

    if vec_a.shape != vec_b.shape:
        raise ValueError(
            f"Vector dimensions must match. a: {vec_a.shape[0]}, b: {vec_b.shape[0]}"
        )

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    return float(np.clip(similarity, -1.0, 1.0))


def similarity_scores(query: EmbeddingLike, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of one query against every row of a matrix.

    Same contract as :func:`cosine_similarity`, applied row-wise: zero-norm
    rows (or a zero-norm query) score 0.0.

    Args:
        query: Shape (d,) query embedding
        matrix: Shape (n, d) corpus embeddings

    Returns:
        Shape (n,) float64 similarity scores clipped to [-1, 1]

    Raises:
        ValueError: If the query is empty or its length differs from the rows
    """
    query_vec = np.asarray(query, dtype=np.float64)
    if query_vec.size == 0:
        raise ValueError("Query vector cannot be empty")

    corpus = np.asarray(matrix, dtype=np.float64)
    if corpus.ndim != 2 or corpus.shape[1] != query_vec.shape[0]:
        raise ValueError(
            f"Vector dimensions must match. query: {query_vec.shape[0]}, "
            f"corpus: {corpus.shape[-1]}"
        )

    if corpus.shape[0] == 0:
        return np.empty(0, dtype=np.float64)

    query_norm = np.linalg.norm(query_vec)
    if query_norm == 0.0:
        return np.zeros(corpus.shape[0], dtype=np.float64)

    row_norms = np.linalg.norm(corpus, axis=1)
    denominators = row_norms * query_norm
    dots = corpus @ query_vec

    scores = np.zeros(corpus.shape[0], dtype=np.float64)
    nonzero = denominators > 0.0
    scores[nonzero] = dots[nonzero] / denominators[nonzero]

    # Clip to [-1, 1] to handle numerical errors
    return np.clip(scores, -1.0, 1.0)


def top_k_matches(scores: np.ndarray, k: int, floor: float = 0.0) -> np.ndarray:
    """Indices of the best scores strictly above ``floor``, sorted descending.

    Uses argpartition for O(n) selection before sorting the survivors.

    Args:
        scores: Shape (n,) similarity scores
        k: Maximum number of indices to return
        floor: Scores at or below this value are discarded

    Returns:
        Array of at most ``k`` indices ordered by descending score
    """
    if k <= 0 or scores.size == 0:
        return np.empty(0, dtype=np.int64)

    candidates = np.flatnonzero(scores > floor)
    if candidates.size == 0:
        return candidates

    k_min = min(k, candidates.size)
    if k_min < candidates.size:
        partitioned = np.argpartition(scores[candidates], -k_min)[-k_min:]
        candidates = np.sort(candidates[partitioned])

    # Stable sort keeps corpus order among equal scores
    order = np.argsort(-scores[candidates], kind="stable")
    return candidates[order]
