import math
from typing import List, Sequence

import numpy as np

MANTISSA_BITS = 53


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negatives.

    Non-finite and negative values read as zero.
    """
    if value is None or not math.isfinite(value) or value <= 0:
        return 0
    return int(math.floor(value + 0.5))


def _integer_weights(weights: Sequence[float]) -> List[int]:
    """Exact integer images of the weights on a shared power-of-two scale.

    Non-finite and non-positive weights map to 0.
    """
    w = np.asarray(weights, dtype=np.float64)
    w = np.where(np.isfinite(w) & (w > 0), w, 0.0)
    mantissa, exponent = np.frexp(w)
    ints = (mantissa * (1 << MANTISSA_BITS)).astype(np.int64)
    live = ints > 0
    if not live.any():
        return [0] * len(w)
    shift = exponent - exponent[live].min()
    return [int(m) << int(s) if m > 0 else 0 for m, s in zip(ints, shift)]


def allocate(total: int, weights: Sequence[float]) -> List[int]:
    """Split `total` into integer shares proportional to `weights` (largest remainder).

    The shares always sum to `total`. Leftover units after flooring go to the
    buckets with the largest remainders, ties broken by index. All quota
    arithmetic is done on Python integers, so any total is exact.
    """
    n = len(weights)
    if n == 0:
        return []
    if isinstance(total, float) and not math.isfinite(total):
        total = 0
    total = int(total) if total and total > 0 else 0
    scaled = _integer_weights(weights)
    weight_sum = sum(scaled)
    if total == 0 or weight_sum == 0:
        return [0] * n

    floors: List[int] = []
    remainders: List[int] = []
    for a in scaled:
        q, r = divmod(total * a, weight_sum)
        floors.append(q)
        remainders.append(r)

    # 0 <= leftover < n: each floor drops less than one unit
    leftover = total - sum(floors)
    order = sorted(range(n), key=lambda i: -remainders[i])
    for i in order[:leftover]:
        floors[i] += 1

    return floors
