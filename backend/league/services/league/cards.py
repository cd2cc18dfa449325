import math
import random
from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app

from league import db
from league.errors import EmptyInputError, NotFoundError, ValidationError
from league.models import Card, CardPlayer, CheckIn, Player
from league.services.league.scoring import get_league_night


@dataclass
class CardPlan:
    name: str
    starting_hole: int
    players: list = field(default_factory=list)


def _division_code(player):
    if isinstance(player, dict):
        return player.get('division_code')
    return getattr(player, 'division_code', None)


def card_count_for(n_players: int, min_players_per_card: int, total_holes: int) -> int:
    """Number of cards: one per ``min_players_per_card`` players, at most one per hole."""
    if n_players < min_players_per_card:
        return 1
    return min(n_players // min_players_per_card, total_holes)


def partition_cards(players, min_players_per_card: int, total_holes: int, shuffle: bool,
                    protected_code: str, rng: Optional[random.Random] = None) -> List[CardPlan]:
    """Split players into near-equal cards, giving the protected division its own cards.

    Card sizes are as even as possible (the first ``N % cards`` cards take
    one extra player). The protected division gets one card when it fits in
    the largest card size, otherwise as many as it needs, but never all of
    them while other players remain. Its cards are filled up to size with
    other players. When it cannot have a card of its own its players are
    folded into the general pool.

    Protected cards can hold more players than their target size when the
    division is large. The general cards after them then share what is left
    and the last ones may be empty (7 players, one per card, six holes with
    five protected players gives sizes 2, 2, 1, 1, 1, 0). Every player is
    still placed exactly once.
    """
    if min_players_per_card < 1:
        raise ValidationError('min_players_per_card must be at least 1')
    if total_holes < 1:
        raise ValidationError('total_holes must be at least 1')
    n = len(players)
    if n == 0:
        raise EmptyInputError('No checked-in players to generate cards from')
    rng = rng or random.Random()

    card_count = card_count_for(n, min_players_per_card, total_holes)

    protected = [p for p in players if _division_code(p) == protected_code]
    others = [p for p in players if _division_code(p) != protected_code]
    if shuffle:
        rng.shuffle(protected)
        rng.shuffle(others)

    max_card_size = math.ceil(n / card_count)

    if not protected:
        protected_cards = 0
    elif len(protected) <= max_card_size:
        protected_cards = 1
    else:
        protected_cards = math.ceil(len(protected) / max_card_size)
    if others:
        protected_cards = min(protected_cards, card_count - 1)

    if protected_cards == 0 and protected:
        others.extend(protected)
        if shuffle:
            rng.shuffle(others)

    base, remainder = divmod(n, card_count)
    target_sizes = [base + 1 if i < remainder else base for i in range(card_count)]

    groups = []
    other_idx = 0
    if protected_cards:
        per_card, extra = divmod(len(protected), protected_cards)
        protected_idx = 0
        for i in range(protected_cards):
            on_card = per_card + 1 if i < extra else per_card
            fill = max(target_sizes[i] - on_card, 0)
            groups.append(
                protected[protected_idx:protected_idx + on_card]
                + others[other_idx:other_idx + fill]
            )
            protected_idx += on_card
            other_idx += fill

    for i in range(protected_cards, card_count):
        groups.append(others[other_idx:other_idx + target_sizes[i]])
        other_idx += target_sizes[i]

    return [
        CardPlan(name=f'Card {i + 1}', starting_hole=(i % total_holes) + 1, players=group)
        for i, group in enumerate(groups)
    ]


def generate_cards(league_night_id, min_players_per_card: int, shuffle: bool = True,
                   rng: Optional[random.Random] = None) -> List[Card]:
    """Replace every card of the night with freshly partitioned ones."""
    night = get_league_night(league_night_id)
    check_ins = (
        CheckIn.query
        .join(Player, CheckIn.player_id == Player.id)
        .filter(CheckIn.league_night_id == league_night_id)
        .order_by(Player.name, Player.id)
        .all()
    )
    if not check_ins:
        raise EmptyInputError('No checked-in players to generate cards from')

    total_holes = len(night.holes) or 1
    plans = partition_cards(
        [ci.player for ci in check_ins],
        min_players_per_card,
        total_holes,
        shuffle,
        current_app.config.get('PROTECTED_DIVISION_CODE', 'CCC'),
        rng=rng,
    )

    try:
        for old in Card.query.filter_by(league_night_id=league_night_id).all():
            db.session.delete(old)
        db.session.flush()
        cards = []
        for plan in plans:
            card = Card(league_night_id=league_night_id, name=plan.name, starting_hole=plan.starting_hole)
            for order, player in enumerate(plan.players):
                card.players.append(CardPlayer(player_id=player.id, sort_order=order))
            db.session.add(card)
            cards.append(card)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        f"[cards-generate] night={league_night_id} players={len(check_ins)} cards={len(cards)} "
        f"sizes={[len(p.players) for p in plans]}"
    )
    return cards


def list_cards(league_night_id) -> List[Card]:
    get_league_night(league_night_id)
    return Card.query.filter_by(league_night_id=league_night_id).order_by(Card.id).all()


def get_card(card_id) -> Card:
    card = db.session.get(Card, card_id)
    if card is None:
        raise NotFoundError('Card not found')
    return card


def _check_name(name):
    if not isinstance(name, str) or not 1 <= len(name.strip()) <= 50:
        raise ValidationError('name must be 1 to 50 characters')
    return name.strip()


def _check_starting_hole(starting_hole):
    if isinstance(starting_hole, bool) or not isinstance(starting_hole, int) or starting_hole < 1:
        raise ValidationError('starting_hole must be a positive integer')
    return starting_hole


def create_card(league_night_id, name, starting_hole=1, player_ids=None) -> Card:
    get_league_night(league_night_id)
    card = Card(league_night_id=league_night_id, name=_check_name(name),
                starting_hole=_check_starting_hole(starting_hole))
    for order, pid in enumerate(dict.fromkeys(player_ids or [])):
        if db.session.get(Player, pid) is None:
            raise NotFoundError(f'Player {pid} not found')
        card.players.append(CardPlayer(player_id=pid, sort_order=order))
    db.session.add(card)
    db.session.commit()
    return card


def randomize_card_order(card: Card, rng: Optional[random.Random] = None) -> None:
    """Give the card's players a fresh random throw order."""
    rng = rng or random.Random()
    entries = list(card.players)
    rng.shuffle(entries)
    for i, cp in enumerate(entries):
        cp.sort_order = i
        db.session.add(cp)


def update_card(card_id, name=None, starting_hole=None, scorekeeper_id=None, clear_scorekeeper=False) -> Card:
    card = get_card(card_id)
    if name is not None:
        card.name = _check_name(name)
    if starting_hole is not None:
        card.starting_hole = _check_starting_hole(starting_hole)
    if clear_scorekeeper:
        card.scorekeeper_id = None
    elif scorekeeper_id is not None:
        assign_scorekeeper(card, scorekeeper_id, commit=False)
    db.session.add(card)
    db.session.commit()
    return card


def assign_scorekeeper(card: Card, player_id, commit: bool = True,
                       rng: Optional[random.Random] = None) -> Card:
    """Make a player on the card its scorekeeper and reshuffle the throw order."""
    if player_id not in {cp.player_id for cp in card.players}:
        raise ValidationError('Scorekeeper must be a player on the card')
    card.scorekeeper_id = player_id
    randomize_card_order(card, rng=rng)
    db.session.add(card)
    if commit:
        db.session.commit()
    current_app.logger.info(f"[card-scorekeeper] card={card.id} scorekeeper={player_id}")
    return card


def pick_random_scorekeeper(card_id, rng: Optional[random.Random] = None) -> Card:
    card = get_card(card_id)
    if not card.players:
        raise EmptyInputError('Card has no players')
    rng = rng or random.Random()
    picked = rng.choice(list(card.players))
    return assign_scorekeeper(card, picked.player_id, rng=rng)


def add_player_to_card(card_id, player_id) -> Card:
    card = get_card(card_id)
    if db.session.get(Player, player_id) is None:
        raise NotFoundError('Player not found')
    if player_id not in {cp.player_id for cp in card.players}:
        next_order = max((cp.sort_order for cp in card.players), default=-1) + 1
        card.players.append(CardPlayer(player_id=player_id, sort_order=next_order))
        db.session.add(card)
        db.session.commit()
    return card


def remove_player_from_card(card_id, player_id) -> Card:
    card = get_card(card_id)
    entry = next((cp for cp in card.players if cp.player_id == player_id), None)
    if entry is None:
        raise NotFoundError('Player is not on this card')
    if card.scorekeeper_id == player_id:
        card.scorekeeper_id = None
    card.players.remove(entry)
    db.session.add(card)
    db.session.commit()
    return card


def delete_card(card_id) -> None:
    card = get_card(card_id)
    db.session.delete(card)
    db.session.commit()
