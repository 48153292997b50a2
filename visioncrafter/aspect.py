import math
import re
from dataclasses import dataclass

BASE_MAX = 4096
MIN_SIDE = 512
SNAP = 8

_RATIO_PATTERN = re.compile(r"(\d+(?:\.\d+)?):(\d+(?:\.\d+)?)", re.ASCII)


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int
    ratio: str


DEFAULT_DIMENSIONS = Dimensions(width=3840, height=2160, ratio="16:9")


def _snap(value: float) -> int:
    snapped = math.floor(value / SNAP + 0.5) * SNAP
    return max(MIN_SIDE, snapped)


def _format_component(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def resolve_dimensions(ratio: str | None) -> Dimensions:
    """Map a ``w:h`` string onto pixel dimensions whose longer side is 4096.

    Anything unparseable resolves to the 3840x2160 default instead of failing.
    """
    if not ratio:
        return DEFAULT_DIMENSIONS

    match = _RATIO_PATTERN.fullmatch(ratio.strip())
    if not match:
        return DEFAULT_DIMENSIONS

    ratio_width = float(match.group(1))
    ratio_height = float(match.group(2))
    if not (math.isfinite(ratio_width) and math.isfinite(ratio_height)):
        return DEFAULT_DIMENSIONS
    if ratio_width <= 0 or ratio_height <= 0:
        return DEFAULT_DIMENSIONS

    scale = BASE_MAX / max(ratio_width, ratio_height)
    return Dimensions(
        width=_snap(ratio_width * scale),
        height=_snap(ratio_height * scale),
        ratio=f"{_format_component(ratio_width)}:{_format_component(ratio_height)}",
    )
