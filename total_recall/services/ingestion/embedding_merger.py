"""Merges per-chunk embeddings into one document vector.

A file too long for one embedding request is chunked and each chunk is
embedded separately.  Averaging the chunk vectors element-wise yields a
single representative vector, so retrieval still works per file.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from total_recall.utils.errors import DimensionMismatchError


class EmbeddingMerger:
    """Element-wise arithmetic mean of equally sized vectors."""

    def merge(self, vectors: Sequence[Sequence[float]]) -> list[float]:
        """Return the mean of *vectors*.

        Raises
        ------
        DimensionMismatchError
            If any vector's length differs from the first one's.  Nothing
            is computed in that case.
        """
        if not vectors:
            return []

        expected = len(vectors[0])
        for vector in vectors[1:]:
            if len(vector) != expected:
                raise DimensionMismatchError(expected=expected, actual=len(vector))

        if len(vectors) == 1:
            return [float(x) for x in vectors[0]]

        return np.asarray(vectors, dtype=np.float64).mean(axis=0).tolist()
