from datetime import datetime

from flask import current_app

from league import db
from league.errors import NotFoundError, ValidationError
from league.models import (
    CheckIn, Division, Hole, LeagueNight, Player, Round, Score,
    NIGHT_STATUSES, TIE_BREAKER_MODES, SPLIT,
)
from league.services.league.scoring import get_league_night


def _positive_int(value, name, maximum):
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= maximum:
        raise ValidationError(f'{name} must be an integer between 1 and {maximum}')
    return value


def _parse_date(value):
    if not isinstance(value, str) or not value:
        raise ValidationError('date is required')
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f'Invalid date: {value}')


def create_league_night(date, tie_breaker_mode=SPLIT, notes=None, hole_count=None, round_count=None) -> LeagueNight:
    """Create a night with holes 1..hole_count and rounds 1..round_count."""
    cfg = current_app.config
    hole_count = cfg.get('DEFAULT_HOLE_COUNT', 6) if hole_count is None else hole_count
    round_count = cfg.get('DEFAULT_ROUND_COUNT', 3) if round_count is None else round_count
    _positive_int(hole_count, 'hole_count', 36)
    _positive_int(round_count, 'round_count', 20)
    if tie_breaker_mode not in TIE_BREAKER_MODES:
        raise ValidationError(f"tie_breaker_mode must be one of {', '.join(TIE_BREAKER_MODES)}")

    night = LeagueNight(date=_parse_date(date), tie_breaker_mode=tie_breaker_mode, notes=notes)
    night.holes = [Hole(number=i + 1) for i in range(hole_count)]
    night.rounds = [Round(number=i + 1) for i in range(round_count)]
    db.session.add(night)
    db.session.commit()
    current_app.logger.info(
        f"[night-create] night={night.id} holes={hole_count} rounds={round_count} mode={tie_breaker_mode}"
    )
    return night


def update_league_night(league_night_id, data: dict) -> LeagueNight:
    night = get_league_night(league_night_id)
    if 'date' in data:
        night.date = _parse_date(data['date'])
    if 'status' in data:
        if data['status'] not in NIGHT_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(NIGHT_STATUSES)}")
        night.status = data['status']
    if 'tie_breaker_mode' in data:
        if data['tie_breaker_mode'] not in TIE_BREAKER_MODES:
            raise ValidationError(f"tie_breaker_mode must be one of {', '.join(TIE_BREAKER_MODES)}")
        night.tie_breaker_mode = data['tie_breaker_mode']
    if 'notes' in data:
        night.notes = data['notes']
    db.session.add(night)
    db.session.commit()
    return night


def delete_league_night(league_night_id) -> None:
    night = get_league_night(league_night_id)
    hole_ids = [h.id for h in night.holes]
    # Scores hang off holes and rounds without an ORM cascade
    if hole_ids:
        Score.query.filter(Score.hole_id.in_(hole_ids)).delete(synchronize_session=False)
    db.session.delete(night)
    db.session.commit()


def create_division(code, name, entry_fee=0, sort_order=0) -> Division:
    if not isinstance(code, str) or not code.strip():
        raise ValidationError('code is required')
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('name is required')
    if isinstance(entry_fee, bool) or not isinstance(entry_fee, (int, float)) or entry_fee < 0:
        raise ValidationError('entry_fee must be a non-negative number')
    code = code.strip().upper()
    if Division.query.filter_by(code=code).first():
        raise ValidationError(f'Division {code} already exists')
    division = Division(code=code, name=name.strip(), entry_fee=entry_fee, sort_order=sort_order or 0)
    db.session.add(division)
    db.session.commit()
    return division


def update_division(division_id, data: dict) -> Division:
    division = db.session.get(Division, division_id)
    if division is None:
        raise NotFoundError('Division not found')
    if 'entry_fee' in data:
        fee = data['entry_fee']
        if isinstance(fee, bool) or not isinstance(fee, (int, float)) or fee < 0:
            raise ValidationError('entry_fee must be a non-negative number')
        division.entry_fee = fee
    if 'name' in data:
        division.name = data['name']
    if 'sort_order' in data:
        division.sort_order = data['sort_order']
    db.session.add(division)
    db.session.commit()
    return division


def create_player(name, division_id=None, user_id=None) -> Player:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('name is required')
    if division_id is not None and db.session.get(Division, division_id) is None:
        raise NotFoundError('Division not found')
    player = Player(name=name.strip(), division_id=division_id, user_id=user_id)
    db.session.add(player)
    db.session.commit()
    return player


def check_in(league_night_id, player_id, has_paid=None, checked_in_by=None) -> CheckIn:
    """Idempotent check-in; ``has_paid`` is only changed when given."""
    get_league_night(league_night_id)
    if db.session.get(Player, player_id) is None:
        raise NotFoundError('Player not found')
    ci = CheckIn.query.filter_by(league_night_id=league_night_id, player_id=player_id).first()
    if ci is None:
        ci = CheckIn(league_night_id=league_night_id, player_id=player_id, checked_in_by=checked_in_by)
    if has_paid is not None:
        ci.has_paid = bool(has_paid)
    db.session.add(ci)
    db.session.commit()
    return ci


def set_paid(league_night_id, player_id, has_paid: bool) -> CheckIn:
    ci = CheckIn.query.filter_by(league_night_id=league_night_id, player_id=player_id).first()
    if ci is None:
        raise NotFoundError('Player is not checked in')
    ci.has_paid = bool(has_paid)
    db.session.add(ci)
    db.session.commit()
    current_app.logger.info(f"[paid] night={league_night_id} player={player_id} has_paid={ci.has_paid}")
    return ci


def check_out(league_night_id, player_id) -> None:
    ci = CheckIn.query.filter_by(league_night_id=league_night_id, player_id=player_id).first()
    if ci is None:
        raise NotFoundError('Player is not checked in')
    db.session.delete(ci)
    db.session.commit()


def list_check_ins(league_night_id):
    get_league_night(league_night_id)
    return (
        CheckIn.query
        .join(Player, CheckIn.player_id == Player.id)
        .filter(CheckIn.league_night_id == league_night_id)
        .order_by(Player.name, Player.id)
        .all()
    )
