"""
Per-period score strings as stored on matches.

Scores are kept as comma-separated goals per period: "1,0,2" means 1 goal in the
first half, none in the second and 2 in extra time. Totals are the sum.
Non-numeric fragments count as 0 (non-fatal).
"""
from typing import List, Optional, Union


def parse_periods(value: Optional[Union[str, int]]) -> List[int]:
    if value is None:
        return []
    if isinstance(value, int):
        return [value]
    periods: List[int] = []
    for part in str(value).split(","):
        part = part.strip()
        if not part:
            continue
        try:
            periods.append(int(part))
        except ValueError:
            periods.append(0)
    return periods


def parse_total(value: Optional[Union[str, int]]) -> int:
    """Total goals for a stored score value ("2,1,0" -> 3, None -> 0)."""
    return sum(parse_periods(value))


def format_periods(periods: List[int]) -> str:
    return ",".join(str(int(p)) for p in periods)
