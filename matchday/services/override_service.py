"""
Match overrides: administrator replacements for a template's team sources.

Any change resets the affected slots to their placeholders and replays draw slots,
block promotion and bracket progression, so slots always reflect the current
effective sources.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from matchday.errors import ConflictError, NotFoundError, ValidationFailedError
from matchday.models.match_override import MatchOverride
from matchday.models.match_template import PHASE_FINAL, PHASE_PRELIMINARY, MatchTemplate
from matchday.services import draw_service, progression_service, promotion_service
from matchday.services.source_expression import KIND_MATCH_RESULT, parse_source
from matchday.services.template_sources import find_template, get_templates, get_tournament

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("team1_source_override", "team2_source_override", "override_reason", "overridden_by")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate(
    session: Session, format_id: int, match_code: str, team1: Optional[str], team2: Optional[str]
) -> MatchTemplate:
    template = find_template(session, format_id, match_code)
    if template is None:
        raise NotFoundError(f"Match code {match_code} not found in tournament format")
    if not template.team1_source and not template.team2_source:
        raise ValidationFailedError(f"Match {match_code} has no team sources to override")
    if not team1 and not team2:
        raise ValidationFailedError("At least one of team1_source_override or team2_source_override is required")
    for value in (team1, team2):
        ref = parse_source(value)
        if ref is not None and ref.kind == KIND_MATCH_RESULT and ref.match_code == match_code:
            raise ValidationFailedError(f"Match {match_code} cannot take a team from itself")
    return template


def _replay(session: Session, tournament_id: int, reset: Iterable[str]) -> Dict:
    for match_code in sorted(set(reset)):
        for position in (1, 2):
            progression_service.reset_slot(session, tournament_id, match_code, position)

    draw_slots = draw_service.fill_draw_slots(session, tournament_id)
    promotion = promotion_service.promote_from_blocks(session, tournament_id)
    progressed = 0
    for phase in (PHASE_PRELIMINARY, PHASE_FINAL):
        progressed += progression_service.recalculate_all_progression(session, tournament_id, phase)["slots_updated"]
    return {"draw_slots": draw_slots, "slots_promoted": promotion["slots_updated"], "slots_progressed": progressed}


def override_to_dict(override: MatchOverride, template: Optional[MatchTemplate]) -> Dict:
    data = override.model_dump()
    data.update(
        original_team1_source=template.team1_source if template else None,
        original_team2_source=template.team2_source if template else None,
        team1_display_name=template.team1_display_name if template else None,
        team2_display_name=template.team2_display_name if template else None,
        round_name=template.round_name if template else None,
        phase=template.phase if template else None,
    )
    return data


def list_overrides(session: Session, tournament_id: int) -> List[Dict]:
    tournament = get_tournament(session, tournament_id)
    templates = {t.match_code: t for t in get_templates(session, tournament.format_id)}
    overrides = session.exec(
        select(MatchOverride).where(MatchOverride.tournament_id == tournament_id).order_by(MatchOverride.match_code)
    ).all()
    return [override_to_dict(o, templates.get(o.match_code)) for o in overrides]


def _get_override(session: Session, tournament_id: int, override_id: int) -> MatchOverride:
    override = session.get(MatchOverride, override_id)
    if override is None or override.tournament_id != tournament_id:
        raise NotFoundError("Override not found")
    return override


def _commit(session: Session, match_code: str) -> None:
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError(f"An override for {match_code} already exists")


def create_override(session: Session, tournament_id: int, data: Dict) -> Tuple[MatchOverride, Dict]:
    tournament = get_tournament(session, tournament_id)
    match_code = data["match_code"]
    team1 = _clean(data.get("team1_source_override"))
    team2 = _clean(data.get("team2_source_override"))
    _validate(session, tournament.format_id, match_code, team1, team2)

    existing = session.exec(
        select(MatchOverride).where(MatchOverride.tournament_id == tournament_id, MatchOverride.match_code == match_code)
    ).first()
    if existing is not None:
        raise ConflictError(f"An override for {match_code} already exists")

    override = MatchOverride(
        tournament_id=tournament_id,
        match_code=match_code,
        team1_source_override=team1,
        team2_source_override=team2,
        override_reason=data.get("override_reason"),
        overridden_by=data.get("overridden_by"),
    )
    session.add(override)
    session.flush()
    replay = _replay(session, tournament_id, [match_code])
    _commit(session, match_code)
    session.refresh(override)
    logger.info("Override created for %s in tournament %s", match_code, tournament_id)
    return override, replay


def update_override(session: Session, tournament_id: int, override_id: int, data: Dict) -> Tuple[MatchOverride, Dict]:
    tournament = get_tournament(session, tournament_id)
    override = _get_override(session, tournament_id, override_id)

    for key in _EDITABLE_FIELDS:
        if key in data:
            value = data[key]
            if key.endswith("_source_override"):
                value = _clean(value)
            setattr(override, key, value)
    _validate(
        session,
        tournament.format_id,
        override.match_code,
        override.team1_source_override,
        override.team2_source_override,
    )

    now = datetime.utcnow()
    override.overridden_at = now
    override.updated_at = now
    session.add(override)
    session.flush()
    replay = _replay(session, tournament_id, [override.match_code])
    _commit(session, override.match_code)
    session.refresh(override)
    return override, replay


def delete_override(session: Session, tournament_id: int, override_id: int) -> Dict:
    override = _get_override(session, tournament_id, override_id)
    match_code = override.match_code
    session.delete(override)
    session.flush()
    replay = _replay(session, tournament_id, [match_code])
    session.commit()
    logger.info("Override for %s removed from tournament %s", match_code, tournament_id)
    return {"deleted": 1, "match_code": match_code, **replay}


def delete_all_overrides(session: Session, tournament_id: int) -> Dict:
    get_tournament(session, tournament_id)
    overrides = session.exec(select(MatchOverride).where(MatchOverride.tournament_id == tournament_id)).all()
    codes = [o.match_code for o in overrides]
    for override in overrides:
        session.delete(override)
    session.flush()
    replay = _replay(session, tournament_id, codes)
    session.commit()
    return {"deleted": len(codes), **replay}


def bulk_upsert_overrides(session: Session, tournament_id: int, items: List[Dict]) -> Tuple[List[MatchOverride], Dict]:
    """Create or update overrides by match_code in one transaction, then replay once."""
    tournament = get_tournament(session, tournament_id)
    codes = [item["match_code"] for item in items]
    if len(set(codes)) != len(codes):
        raise ValidationFailedError("Each match_code may appear only once")

    existing = {
        o.match_code: o
        for o in session.exec(select(MatchOverride).where(MatchOverride.tournament_id == tournament_id)).all()
    }
    now = datetime.utcnow()
    saved: List[MatchOverride] = []
    for item in items:
        team1 = _clean(item.get("team1_source_override"))
        team2 = _clean(item.get("team2_source_override"))
        _validate(session, tournament.format_id, item["match_code"], team1, team2)
        override = existing.get(item["match_code"]) or MatchOverride(
            tournament_id=tournament_id, match_code=item["match_code"]
        )
        override.team1_source_override = team1
        override.team2_source_override = team2
        override.override_reason = item.get("override_reason")
        override.overridden_by = item.get("overridden_by")
        override.overridden_at = now
        override.updated_at = now
        session.add(override)
        saved.append(override)
    session.flush()

    replay = _replay(session, tournament_id, codes)
    session.commit()
    for override in saved:
        session.refresh(override)
    return saved, replay
