"""
Int8 quantization for embedding vectors.

Embeddings are float sequences in [-1, 1]. They are stored as a JSON list of
round(value * 127) so a 1536-dim vector costs a few KB of text instead of a
float dump; decompressing divides by 127 again. The error per component is at
most 1/254, well inside what the 0.3 similarity threshold tolerates.
"""
import json
import math
from typing import List, Optional, Sequence

QUANTIZATION_SCALE = 127


def compress_embedding(embedding: Sequence[float]) -> str:
    quantized = [
        max(-128, min(127, int(round(value * QUANTIZATION_SCALE)))) for value in embedding
    ]
    return json.dumps(quantized, separators=(",", ":"))


def decompress_embedding(blob: Optional[str]) -> Optional[List[float]]:
    """Return the float vector for a stored blob, or None if it cannot be decoded."""
    if not blob:
        return None
    try:
        values = json.loads(blob)
    except (TypeError, ValueError):
        return None
    if not isinstance(values, list):
        return None
    try:
        return [float(value) / QUANTIZATION_SCALE for value in values]
    except (TypeError, ValueError):
        return None


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0

    dot = mag_a = mag_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        mag_a += x * x
        mag_b += y * y

    if mag_a == 0 or mag_b == 0:
        return 0.0
    return dot / (math.sqrt(mag_a) * math.sqrt(mag_b))
