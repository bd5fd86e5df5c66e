"""Brute-force cosine similarity search over in-memory chunk vectors.

Every query rescans the whole corpus: O(corpus_size x dim). Chunks whose
score is undefined (zero-norm vectors) or whose vector length differs
from the query are left out of the ranking rather than scored.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from docmind.models import Chunk, ScoredChunk

log = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product over the product of Euclidean norms.

    Returns ``nan`` when either vector has zero norm.

    Raises:
        ValueError: if the vectors have different lengths.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Dimension mismatch: {va.shape[0]} != {vb.shape[0]}")

    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return math.nan
    return float(np.clip(np.dot(va, vb) / denom, -1.0, 1.0))


def search(
    query_vector: Sequence[float],
    corpus: Sequence[Chunk],
    k: int = 5,
) -> list[ScoredChunk]:
    """Return up to *k* chunks from *corpus*, highest cosine score first.

    Equal scores keep corpus order.
    """
    if k <= 0 or not corpus:
        return []

    query = np.asarray(query_vector, dtype=np.float64)
    query_norm = float(np.linalg.norm(query))
    if query_norm == 0.0:
        log.debug("Zero-norm query vector; nothing can be ranked")
        return []

    dim = query.shape[0]
    candidates = [c for c in corpus if len(c.embedding) == dim]
    if len(candidates) < len(corpus):
        log.warning(
            "Skipped %d chunk(s) whose embedding dimension differs from the query (%d)",
            len(corpus) - len(candidates),
            dim,
        )
    if not candidates:
        return []

    matrix = np.asarray([c.embedding for c in candidates], dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1)
    dots = matrix @ query

    scored: list[tuple[Chunk, float]] = []
    for chunk, dot, norm in zip(candidates, dots, norms):
        if norm == 0.0:
            log.debug("Chunk %s has a zero-norm embedding; excluded", chunk.id)
            continue
        score = float(np.clip(dot / (norm * query_norm), -1.0, 1.0))
        scored.append((chunk, score))

    # sorted() is stable, so ties stay in corpus order
    ranked = sorted(scored, key=lambda pair: -pair[1])
    return [ScoredChunk(chunk=c, score=s) for c, s in ranked[:k]]
