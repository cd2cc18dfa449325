from dataclasses import dataclass, asdict
from typing import Iterable, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from league import db
from league.errors import NotFoundError, ValidationError
from league.models import Hole, LeagueNight, Player, Round, Score, POSITIONS, SHORT, LONG

MAX_MADE = 3


@dataclass
class PlayerTotals:
    player_id: int
    player_name: str
    division_id: Optional[int]
    division_code: Optional[str]
    total_made: int = 0
    total_bonus: int = 0
    total_score: int = 0
    short_made: int = 0
    long_made: int = 0
    perfect_rounds: int = 0

    def to_dict(self):
        return asdict(self)


def validate_made(made) -> int:
    """Return ``made`` if it is an int in [0, 3]; never clamps."""
    if isinstance(made, bool) or not isinstance(made, int):
        raise ValidationError('made must be an integer between 0 and 3')
    if made < 0 or made > MAX_MADE:
        raise ValidationError('made must be between 0 and 3')
    return made


def validate_position(position) -> str:
    if position not in POSITIONS:
        raise ValidationError(f"position must be one of {', '.join(POSITIONS)}")
    return position


def rank_players(totals: Iterable) -> list:
    """Canonical leaderboard order.

    Stable sort by ``total_score`` descending. Players on equal scores keep
    the order they were handed in, which for :func:`calc_night_totals` is
    the order their first shot row was stored. SPLIT payouts give the
    rounding remainder to the last player of a tie, so this order decides
    who receives it.
    """
    return sorted(totals, key=lambda t: t.total_score, reverse=True)


def aggregate_totals(shots: Iterable) -> List[PlayerTotals]:
    """Fold shot rows into per-player totals, ranked.

    ``shots`` are ``Score`` rows (or anything with ``player``, ``position``,
    ``made`` and ``bonus``).
    """
    by_player = {}
    for shot in shots:
        player = shot.player
        t = by_player.get(player.id)
        if t is None:
            t = PlayerTotals(
                player_id=player.id,
                player_name=player.name,
                division_id=player.division_id,
                division_code=player.division_code,
            )
            by_player[player.id] = t
        t.total_made += shot.made
        t.total_bonus += 1 if shot.bonus else 0
        t.total_score = t.total_made + t.total_bonus
        if shot.position == SHORT:
            t.short_made += shot.made
        elif shot.position == LONG:
            t.long_made += shot.made
        if shot.bonus:
            t.perfect_rounds += 1
    return rank_players(by_player.values())


def get_league_night(league_night_id) -> LeagueNight:
    night = db.session.get(LeagueNight, league_night_id)
    if night is None:
        raise NotFoundError('League night not found')
    return night


def night_scores(league_night_id) -> List[Score]:
    """All shot rows of a night in storage order."""
    return (
        Score.query
        .join(Hole, Score.hole_id == Hole.id)
        .filter(Hole.league_night_id == league_night_id)
        .order_by(Score.id)
        .all()
    )


def calc_night_totals(league_night_id) -> List[PlayerTotals]:
    get_league_night(league_night_id)
    return aggregate_totals(night_scores(league_night_id))


def _upsert_score(player_id, hole_id, round_id, position, made, entered_by=None) -> Score:
    score = Score.query.filter_by(
        player_id=player_id, hole_id=hole_id, round_id=round_id, position=position
    ).first()
    if score is None:
        score = Score(player_id=player_id, hole_id=hole_id, round_id=round_id, position=position)
    score.made = made
    score.bonus = made == MAX_MADE
    score.entered_by = entered_by
    db.session.add(score)
    return score


def _store_scores(entries, entered_by=None) -> List[Score]:
    """Upsert ``(player_id, hole_id, round_id, position, made)`` tuples and commit.

    A concurrent writer can insert the same shot key between our lookup
    and the commit. The batch is then replayed onto the stored rows, so
    the latest write wins.
    """
    scores = [_upsert_score(*entry, entered_by=entered_by) for entry in entries]
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.warning(f"[shot-race] retrying {len(entries)} shot(s) onto stored rows")
        scores = [_upsert_score(*entry, entered_by=entered_by) for entry in entries]
        db.session.commit()
    return scores


def _check_shot(player_id, hole_id, round_id, position, made) -> Hole:
    validate_made(made)
    validate_position(position)
    hole = db.session.get(Hole, hole_id)
    if hole is None:
        raise NotFoundError('Hole not found')
    rnd = db.session.get(Round, round_id)
    if rnd is None:
        raise NotFoundError('Round not found')
    if rnd.league_night_id != hole.league_night_id:
        raise ValidationError('Hole and round belong to different league nights')
    if db.session.get(Player, player_id) is None:
        raise NotFoundError('Player not found')
    return hole


def record_shot(player_id, hole_id, round_id, position, made, entered_by=None) -> Score:
    """Upsert one shot result; a re-submission overwrites the stored one."""
    _check_shot(player_id, hole_id, round_id, position, made)
    (score,) = _store_scores([(player_id, hole_id, round_id, position, made)], entered_by)
    current_app.logger.info(
        f"[shot] player={player_id} hole={hole_id} round={round_id} {position} made={made}"
    )
    return score


def record_shots(entries, entered_by=None) -> List[Score]:
    """Bulk upsert. Every entry is checked before anything is written.

    Returns the stored rows; all entries must belong to the same night.
    """
    if not isinstance(entries, list) or not entries:
        raise ValidationError('scores must be a non-empty list')
    night_ids = set()
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValidationError('each score must be an object')
        hole = _check_shot(entry.get('player_id'), entry.get('hole_id'), entry.get('round_id'),
                           entry.get('position'), entry.get('made'))
        night_ids.add(hole.league_night_id)
    if len(night_ids) > 1:
        raise ValidationError('All scores in a bulk entry must belong to one league night')

    scores = _store_scores(
        [(e['player_id'], e['hole_id'], e['round_id'], e['position'], e['made']) for e in entries],
        entered_by,
    )
    current_app.logger.info(f"[shot-bulk] night={night_ids.pop()} count={len(scores)}")
    return scores


def complete_round(round_id) -> Round:
    rnd = db.session.get(Round, round_id)
    if rnd is None:
        raise NotFoundError('Round not found')
    rnd.is_complete = True
    db.session.add(rnd)
    db.session.commit()
    current_app.logger.info(f"[round-complete] night={rnd.league_night_id} round={rnd.number}")
    return rnd


def leaderboard(league_night_id) -> dict:
    """Overall ranking plus the same ranking split by division code."""
    totals = calc_night_totals(league_night_id)
    by_division = {}
    for t in totals:
        by_division.setdefault(t.division_code, []).append(t.to_dict())
    return {
        'overall': [t.to_dict() for t in totals],
        'by_division': by_division,
    }


def hole_breakdown(league_night_id) -> list:
    get_league_night(league_night_id)
    by_hole = {}
    for s in night_scores(league_night_id):
        n = s.hole.number
        h = by_hole.setdefault(n, {'hole_number': n, 'total_made': 0, 'total_bonus': 0, 'attempts': 0})
        h['total_made'] += s.made
        if s.bonus:
            h['total_bonus'] += 1
        h['attempts'] += 1
    breakdown = []
    for n in sorted(by_hole):
        h = by_hole[n]
        h['accuracy'] = (h['total_made'] / (h['attempts'] * MAX_MADE)) * 100 if h['attempts'] else 0
        breakdown.append(h)
    return breakdown


def station_hole(station_index: int, round_number: int, total_holes: int) -> int:
    """Hole a station is nominally on in a given round; stations move forward one hole per round."""
    return ((station_index + round_number - 1) % total_holes) + 1
