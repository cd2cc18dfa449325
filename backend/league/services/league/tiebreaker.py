"""Sudden-death putt-offs for first-place ties.

A putt-off is a persisted state machine: it sits ``in_progress`` on some
round until one player out-putts everybody else in that round
(``resolved``) or an operator gives up on it (``abandoned``). Equal top
scores simply move the tied players to the next round; there is no round
limit and a stuck putt-off is reported as still tied, never as an error.
"""

from dataclasses import dataclass, asdict, field
from typing import List, Optional, Sequence

from flask import current_app

from league import db
from league.errors import NotFoundError, ValidationError
from league.models import (
    Division, Player, PuttOff, PuttOffParticipant,
    PUTT_OFF_IN_PROGRESS, PUTT_OFF_RESOLVED, PUTT_OFF_ABANDONED,
)
from league.services.league.scoring import MAX_MADE, get_league_night, validate_made


@dataclass
class PuttOffResult:
    winner_id: Optional[int]
    still_tied: bool
    round: int
    tied_player_ids: List[int] = field(default_factory=list)

    def to_dict(self):
        return asdict(self)


def resolve_round(scores: Sequence[dict]) -> List:
    """Player ids sharing the top ``made`` of one round, in input order."""
    if not scores:
        return []
    top = max(s['made'] for s in scores)
    return [s['player_id'] for s in scores if s['made'] == top]


def get_putt_off(putt_off_id) -> PuttOff:
    putt_off = db.session.get(PuttOff, putt_off_id)
    if putt_off is None:
        raise NotFoundError('Putt-off not found')
    return putt_off


def create_putt_off(league_night_id, division_id, player_ids) -> PuttOff:
    get_league_night(league_night_id)
    if db.session.get(Division, division_id) is None:
        raise NotFoundError('Division not found')
    if not isinstance(player_ids, list):
        raise ValidationError('player_ids must be a list')
    unique_ids = list(dict.fromkeys(player_ids))
    if len(unique_ids) < 2:
        raise ValidationError('A putt-off needs at least two players')
    for pid in unique_ids:
        if db.session.get(Player, pid) is None:
            raise NotFoundError(f'Player {pid} not found')

    putt_off = PuttOff(league_night_id=league_night_id, division_id=division_id, round=1)
    for pid in unique_ids:
        putt_off.participants.append(PuttOffParticipant(player_id=pid, round=1, made=0))
    db.session.add(putt_off)
    db.session.commit()
    current_app.logger.info(
        f"[putt-off-create] night={league_night_id} division={division_id} players={unique_ids}"
    )
    return putt_off


def record_putt_off_round(putt_off_id, scores) -> PuttOffResult:
    """Store scores for the current round and resolve or advance.

    Scores are upserted per player for the current round, so re-sending a
    player's score replaces it. The round is then decided on every
    participant row of the round; anyone not yet scored counts as 0.
    """
    putt_off = get_putt_off(putt_off_id)
    if putt_off.status != PUTT_OFF_IN_PROGRESS:
        raise ValidationError(f'Putt-off is already {putt_off.status}')
    if not isinstance(scores, list) or not scores:
        raise ValidationError('scores must be a non-empty list')

    current_round = putt_off.round
    rows = {p.player_id: p for p in putt_off.current_participants()}
    for s in scores:
        if not isinstance(s, dict):
            raise ValidationError('each score must be an object')
        validate_made(s.get('made'))
        if s.get('player_id') not in rows:
            raise ValidationError(f"Player {s.get('player_id')} is not in round {current_round} of this putt-off")

    try:
        for s in scores:
            row = rows[s['player_id']]
            row.made = s['made']
            row.bonus = s['made'] == MAX_MADE
            db.session.add(row)

        winners = resolve_round([
            {'player_id': p.player_id, 'made': p.made} for p in putt_off.current_participants()
        ])

        if len(winners) == 1:
            putt_off.winner_id = winners[0]
            putt_off.status = PUTT_OFF_RESOLVED
            result = PuttOffResult(winner_id=winners[0], still_tied=False, round=current_round)
        else:
            putt_off.round = current_round + 1
            for pid in winners:
                putt_off.participants.append(
                    PuttOffParticipant(player_id=pid, round=putt_off.round, made=0)
                )
            result = PuttOffResult(winner_id=None, still_tied=True, round=putt_off.round,
                                   tied_player_ids=winners)
        db.session.add(putt_off)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if result.still_tied:
        current_app.logger.info(
            f"[putt-off-round] putt_off={putt_off.id} round {current_round} -> {putt_off.round} still tied={winners}"
        )
    else:
        current_app.logger.info(
            f"[putt-off-round] putt_off={putt_off.id} resolved in round {current_round} winner={result.winner_id}"
        )
    return result


def abandon_putt_off(putt_off_id) -> PuttOff:
    """Operator abort: the division falls back to a split payout."""
    putt_off = get_putt_off(putt_off_id)
    if putt_off.status == PUTT_OFF_RESOLVED:
        raise ValidationError('Putt-off is already resolved')
    if putt_off.status == PUTT_OFF_ABANDONED:
        return putt_off
    putt_off.status = PUTT_OFF_ABANDONED
    db.session.add(putt_off)
    db.session.commit()
    current_app.logger.warning(f"[putt-off-abandon] putt_off={putt_off.id} at round={putt_off.round}")
    return putt_off


def list_putt_offs(league_night_id) -> List[PuttOff]:
    get_league_night(league_night_id)
    return PuttOff.query.filter_by(league_night_id=league_night_id).order_by(PuttOff.id).all()
