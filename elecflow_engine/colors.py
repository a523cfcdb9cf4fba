from __future__ import annotations

import math
from typing import List, Tuple


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    h = (hex_color or "").strip().lstrip("#")
    if len(h) != 6:
        raise ValueError(f"Invalid hex string: {hex_color!r}")
    try:
        return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
    except ValueError:
        raise ValueError(f"Invalid hex string: {hex_color!r}") from None


def rgb_to_hex(r: float, g: float, b: float) -> str:
    channels = [min(max(_round_half_up(c), 0), 255) for c in (r, g, b)]
    return "#" + "".join(f"{c:02x}" for c in channels)


def clip_ratio(ratio: float) -> float:
    if ratio != ratio:
        return 0.0
    return min(max(float(ratio), 0.0), 1.0)


def safe_ratio(part: float, total: float) -> float:
    """part / total clipped to [0, 1]; a zero total means no contribution."""
    if not total:
        return 0.0
    return clip_ratio(part / total)


def mix_hexes(hex1: str, hex2: str, ratio: float = 0.5) -> str:
    """Blend two colors; ratio is the weight of hex1."""
    ratio = clip_ratio(ratio)
    r1, g1, b1 = hex_to_rgb(hex1)
    r2, g2, b2 = hex_to_rgb(hex2)
    return rgb_to_hex(
        _round_half_up(r1 * ratio + r2 * (1 - ratio)),
        _round_half_up(g1 * ratio + g2 * (1 - ratio)),
        _round_half_up(b1 * ratio + b2 * (1 - ratio)),
    )


def _non_negative(ratio: float) -> float:
    if ratio != ratio:
        return 0.0
    return max(float(ratio), 0.0)


def normalise_ratios(*ratios: float) -> List[float]:
    weights = [_non_negative(r) for r in ratios]
    total = sum(weights)
    if total <= 0:
        return [0.0 for _ in weights]
    return [r / total for r in weights]


def mix3_hexes(hex1: str, hex2: str, hex3: str, ratio1: float, ratio2: float, ratio3: float) -> str:
    """Blend three colors by weight.

    Widths are floored to one unit independently, so the incoming ratios do
    not always sum to exactly 1; they are normalised first.
    """
    w1, w2, w3 = normalise_ratios(ratio1, ratio2, ratio3)
    r1, g1, b1 = hex_to_rgb(hex1)
    r2, g2, b2 = hex_to_rgb(hex2)
    r3, g3, b3 = hex_to_rgb(hex3)
    return rgb_to_hex(
        _round_half_up(r1 * w1 + r2 * w2 + r3 * w3),
        _round_half_up(g1 * w1 + g2 * w2 + g3 * w3),
        _round_half_up(b1 * w1 + b2 * w2 + b3 * w3),
    )
