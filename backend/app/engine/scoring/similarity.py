# engine/scoring/similarity.py
"""
Primitives numériques partagées par les algorithmes de scoring.
"""
import math
import numpy as np
from typing import Sequence


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosinus entre deux vecteurs, tronqués à leur longueur commune.
    Vecteur nul (ou vide) → 0.
    """
    n = min(len(a), len(b))
    if n == 0:
        return 0.0
    va = np.asarray(a[:n], dtype=float)
    vb = np.asarray(b[:n], dtype=float)

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0 or norm_b == 0:
        return 0.0

    # Bornage : l'arrondi flottant peut sortir très légèrement de [-1, 1]
    return max(-1.0, min(1.0, float(np.dot(va, vb)) / (norm_a * norm_b)))


def population_std(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def relu(x: float) -> float:
    return max(0.0, x)


def sigmoid(x: float) -> float:
    return 1 / (1 + math.exp(-x))
