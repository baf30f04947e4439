"""Deterministic float stream keyed by an identifier string.

The stream is a closed-form sine generator over an integer counter. It
exists only for bit-reproducibility of historical marker assignments;
swapping it for a statistical PRNG would change every stored variation.
"""

import math
import struct


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_units(text: str):
    raw = text.encode('utf-16-le', 'surrogatepass')
    return struct.unpack(f'<{len(raw) // 2}H', raw)


def hash_identifier(identifier: str) -> int:
    """Polynomial rolling hash (x31) over UTF-16 code units, signed 32-bit."""
    seed = 0
    for unit in _utf16_units(identifier):
        seed = _to_int32(seed * 31 + unit)
    return seed


class SeededStream:
    """Reproducible stream of floats in ``[0, 1)``.

    Callers spell out their arithmetic on ``next()`` explicitly; folding
    constants (``lo + r * (hi - lo)``) changes the last bits of the result.
    """

    def __init__(self, identifier: str):
        self.identifier = identifier
        self.seed = hash_identifier(identifier)
        self.draws = 0

    def next(self) -> float:
        self.seed += 1
        self.draws += 1
        x = math.sin(self.seed) * 10000
        return x - math.floor(x)

    __call__ = next

    def choice_index(self, n: int) -> int:
        return int(math.floor(self.next() * n))
