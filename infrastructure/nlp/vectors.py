"""
Vector Representations

Term-frequency vectors for annotated texts and cosine similarity between
dense or sparse vectors. Sparse vectors use the flat list encoding
``[n, i_1, ..., i_n, v_1, ..., v_n]``: the entry count, then the sorted
indices, then the values in the same order.
"""

import zlib
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from domain.entities import AnnotatedText


def lemma_index(lemma: str) -> int:
    """Stable vector index of a lemma (CRC-32 of its lower-cased UTF-8 form)."""
    return zlib.crc32(lemma.lower().encode("utf-8"))


@dataclass(frozen=True)
class SparseVector:
    indices: np.ndarray
    values: np.ndarray

    @classmethod
    def from_map(cls, weights: Mapping[int, float]) -> "SparseVector":
        ordered = sorted(weights.items())
        return cls(np.array([i for i, _ in ordered], dtype=np.int64),
                   np.array([v for _, v in ordered], dtype=np.float64))

    @classmethod
    def from_list(cls, encoded: Sequence[float]) -> "SparseVector":
        if not encoded:
            return cls.from_map({})
        n = int(encoded[0])
        if len(encoded) != 1 + 2 * n:
            raise ValueError(f"Sparse vector of {n} entries must have {1 + 2 * n} elements, got {len(encoded)}")
        indices = [int(i) for i in encoded[1:1 + n]]
        values = [float(v) for v in encoded[1 + n:]]
        return cls.from_map(dict(zip(indices, values)))

    def to_list(self) -> List[float]:
        return [float(len(self.indices))] + [float(i) for i in self.indices] + [float(v) for v in self.values]

    def as_map(self) -> Dict[int, float]:
        return {int(i): float(v) for i, v in zip(self.indices, self.values)}

    def norm(self) -> float:
        return float(np.linalg.norm(self.values))

    def dot(self, other: "SparseVector") -> float:
        common, left, right = np.intersect1d(self.indices, other.indices, return_indices=True)
        if common.size == 0:
            return 0.0
        return float(np.dot(self.values[left], other.values[right]))


def term_frequency(annotated_text: AnnotatedText) -> SparseVector:
    """Sparse term-frequency vector over the tag lemmas of a text."""
    weights: Dict[int, float] = {}
    for tag in annotated_text.tags:
        index = lemma_index(tag.lemma)
        weights[index] = weights.get(index, 0.0) + tag.multiplicity
    return SparseVector.from_map(weights)


def cosine(vector1: Optional[Sequence[float]], vector2: Optional[Sequence[float]],
           is_sparse: bool = False) -> float:
    """
    Cosine similarity of two vectors; 0.0 when either is missing or all zero.

    Raises:
        ValueError: If dense vectors differ in length or a sparse encoding is malformed
    """
    if vector1 is None or vector2 is None:
        return 0.0

    if is_sparse:
        left, right = SparseVector.from_list(vector1), SparseVector.from_list(vector2)
        denominator = left.norm() * right.norm()
        return left.dot(right) / denominator if denominator else 0.0

    a = np.asarray(vector1, dtype=np.float64)
    b = np.asarray(vector2, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Vectors must have the same length ({a.size} != {b.size})")
    denominator = float(np.linalg.norm(a) * np.linalg.norm(b))
    return float(np.dot(a, b)) / denominator if denominator else 0.0
