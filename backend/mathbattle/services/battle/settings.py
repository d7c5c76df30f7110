"""Room configuration: bounds, defaults and permissive parsing."""
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidInput

ROUNDS_MIN, ROUNDS_MAX, ROUNDS_DEFAULT = 1, 20, 5
ROUND_TIME_MIN, ROUND_TIME_MAX, ROUND_TIME_DEFAULT = 10, 600, 60
PENALTY_MIN, PENALTY_MAX, PENALTY_DEFAULT = 0, 50, 1
POINTS_MAX_VALUE = 100
POINTS_MAX_LENGTH = 8
POINTS_DEFAULT: Tuple[int, ...] = (5, 3, 1)

_POINTS_SPLIT = re.compile(r'[\s,;/、]+')


@dataclass(frozen=True)
class BattleConfig:
    rounds: int = ROUNDS_DEFAULT
    round_time_seconds: int = ROUND_TIME_DEFAULT
    placement_points: Tuple[int, ...] = POINTS_DEFAULT
    penalty: int = PENALTY_DEFAULT

    @property
    def round_time_ms(self) -> int:
        return self.round_time_seconds * 1000

    @property
    def max_correct(self) -> int:
        return len(self.placement_points)

    def award_for(self, placement: int) -> int:
        if 1 <= placement <= len(self.placement_points):
            return self.placement_points[placement - 1]
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rounds': self.rounds,
            'roundTimeSeconds': self.round_time_seconds,
            'placementPoints': list(self.placement_points),
            'penalty': self.penalty,
        }


DEFAULT_CONFIG = BattleConfig()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _to_number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def _clamp_int(value, low: int, high: int, default: int) -> int:
    num = _to_number(value)
    if num is None:
        return default
    return max(low, min(high, _round_half_up(num)))


def parse_placement_points(value) -> Tuple[int, ...]:
    """Accept a list or a delimiter separated string of positive numbers."""
    if isinstance(value, str):
        items = [part for part in _POINTS_SPLIT.split(value) if part]
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        items = []

    points = []
    for item in items:
        num = _to_number(item)
        if num is None or num <= 0:
            continue
        rounded = min(POINTS_MAX_VALUE, _round_half_up(num))
        if rounded < 1:
            continue
        points.append(rounded)
        if len(points) == POINTS_MAX_LENGTH:
            break
    return tuple(points) or POINTS_DEFAULT


def normalize_config(raw) -> BattleConfig:
    """Build a config from a loosely typed payload.

    Each field is clamped or defaulted on its own; only a payload that is not
    an object at all is rejected.
    """
    if not isinstance(raw, dict):
        raise InvalidInput('Config must be a JSON object.')
    return BattleConfig(
        rounds=_clamp_int(raw.get('rounds'), ROUNDS_MIN, ROUNDS_MAX, ROUNDS_DEFAULT),
        round_time_seconds=_clamp_int(
            raw.get('roundTimeSeconds'), ROUND_TIME_MIN, ROUND_TIME_MAX, ROUND_TIME_DEFAULT
        ),
        placement_points=parse_placement_points(raw.get('placementPoints')),
        penalty=_clamp_int(raw.get('penalty'), PENALTY_MIN, PENALTY_MAX, PENALTY_DEFAULT),
    )
