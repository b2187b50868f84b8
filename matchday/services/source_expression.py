"""
Team source expressions used by match templates and overrides.

  "A1"         draw slot: block A, draw position 1 (filled when the draw is applied)
  "A_1"        block standing: 1st place of preliminary block A
  "M3_winner"  bracket result: winner of match M3 ("M3_loser" for the loser)
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from matchday.errors import ValidationFailedError

KIND_DRAW_SLOT = "draw_slot"
KIND_BLOCK_RANK = "block_rank"
KIND_MATCH_RESULT = "match_result"

ROLE_WINNER = "winner"
ROLE_LOSER = "loser"

_MATCH_RESULT_RE = re.compile(r"^([A-Za-z0-9]+)_(winner|loser)$")
_BLOCK_RANK_RE = re.compile(r"^([A-Za-z]+)_(\d+)$")
_DRAW_SLOT_RE = re.compile(r"^([A-Za-z]+)(\d+)$")


@dataclass(frozen=True)
class SourceRef:
    kind: str
    block: Optional[str] = None
    number: Optional[int] = None  # rank for block_rank, position for draw_slot
    match_code: Optional[str] = None
    role: Optional[str] = None


def match_source(text: Optional[str]) -> Optional[SourceRef]:
    """Recognize a source expression. Returns None for empty or unrecognized text."""
    if not text or not text.strip():
        return None
    value = text.strip()

    m = _MATCH_RESULT_RE.match(value)
    if m:
        return SourceRef(kind=KIND_MATCH_RESULT, match_code=m.group(1), role=m.group(2))

    m = _BLOCK_RANK_RE.match(value)
    if m and int(m.group(2)) > 0:
        return SourceRef(kind=KIND_BLOCK_RANK, block=m.group(1), number=int(m.group(2)))

    m = _DRAW_SLOT_RE.match(value)
    if m and int(m.group(2)) > 0:
        return SourceRef(kind=KIND_DRAW_SLOT, block=m.group(1), number=int(m.group(2)))

    return None


def parse_source(text: Optional[str]) -> Optional[SourceRef]:
    """Strict variant of match_source: unrecognized non-empty text is an error."""
    if not text or not text.strip():
        return None
    ref = match_source(text)
    if ref is None:
        raise ValidationFailedError(f"Invalid team source expression: '{text}'")
    return ref


def format_source(ref: SourceRef) -> str:
    if ref.kind == KIND_MATCH_RESULT:
        return f"{ref.match_code}_{ref.role}"
    if ref.kind == KIND_BLOCK_RANK:
        return f"{ref.block}_{ref.number}"
    return f"{ref.block}{ref.number}"


def result_source(match_code: str, role: str) -> str:
    return f"{match_code}_{role}"


def effective_sources(template, override=None) -> Tuple[Optional[str], Optional[str]]:
    """Override values win over template values, side by side."""
    team1 = template.team1_source
    team2 = template.team2_source
    if override is not None:
        team1 = override.team1_source_override or team1
        team2 = override.team2_source_override or team2
    return team1, team2
