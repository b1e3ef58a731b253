"""Deterministic seeding and a small 32-bit pseudo-random generator.

Nothing here is suitable for cryptography. The generator is mulberry32: one
32-bit word of state, a Weyl increment and an avalanche mix per draw.
"""
MASK32 = 0xFFFFFFFF

# Per-stream seed offsets. Units and sales of the current and last-year series
# each draw from their own stream so the four weight vectors never coincide.
UNITS_STREAM = 0
SALES_STREAM = 1013904223
LAST_YEAR_UNITS_STREAM = 2027808447
LAST_YEAR_SALES_STREAM = 3101313841


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


def hash_string(value: str) -> int:
    """Fold a string into a non-negative 32-bit seed (31-polynomial rolling hash).

    Iterates UTF-16 code units and wraps to signed 32 bits on every step, so the
    result only depends on the text, never on platform or interpreter.
    """
    h = 0
    raw = value.encode("utf-16-le")
    for i in range(0, len(raw), 2):
        unit = raw[i] | (raw[i + 1] << 8)
        h = (h * 31 + unit) & MASK32
    if h & 0x80000000:
        h -= 1 << 32
    return abs(h)


def derive_seed(*parts: object) -> int:
    return hash_string("-".join(str(p) for p in parts))


def offset_seed(seed: int, stream: int) -> int:
    return (seed + stream) & MASK32


class SeededRng:
    """mulberry32; calling the instance returns a float in [0, 1)."""

    __slots__ = ("state",)

    def __init__(self, seed: int) -> None:
        self.state = seed & MASK32

    def __call__(self) -> float:
        self.state = (self.state + 0x6D2B79F5) & MASK32
        s = self.state
        t = _imul(s ^ (s >> 15), 1 | s)
        t = (t ^ ((t + _imul(t ^ (t >> 7), 61 | t)) & MASK32)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / 4294967296.0

    def uniform(self, low: float, high: float) -> float:
        return low + self() * (high - low)


def create_rng(seed: int) -> SeededRng:
    return SeededRng(seed)
