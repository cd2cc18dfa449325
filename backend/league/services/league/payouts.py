"""Prize pool distribution.

Pools are whole currency units. Every place's share is rounded half up,
then the last paid group absorbs the rounding drift so the shares always
add back up to the pool.
"""

import math
from dataclasses import dataclass, asdict
from typing import List, Sequence, Tuple

from league.errors import ValidationError
from league.models import CheckIn, PuttOff, SPLIT, PUTT_OFF, TIE_BREAKER_MODES, PUTT_OFF_ABANDONED
from league.services.league.ranking import group_by_consecutive_score
from league.services.league.scoring import PlayerTotals, calc_night_totals, get_league_night, rank_players

# (largest paid-player count, percentages by place); counts past the last
# bound use the last row.
PAYOUT_TIERS: List[Tuple[int, List[float]]] = [
    (0, []),
    (3, [1.000]),
    (6, [0.625, 0.375]),
    (9, [0.475, 0.300, 0.225]),
    (12, [0.410, 0.260, 0.190, 0.140]),
    (15, [0.360, 0.245, 0.170, 0.125, 0.100]),
    (16, [0.330, 0.230, 0.155, 0.120, 0.095, 0.070]),
]


@dataclass
class PayoutEntry:
    place: int
    player_id: int
    player_name: str
    total_score: int
    payout: int
    is_tied: bool
    pending_putt_off: bool

    def to_dict(self):
        return asdict(self)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def get_payout_percentages(count: int) -> List[float]:
    for upper_bound, percentages in PAYOUT_TIERS:
        if count <= upper_bound:
            return list(percentages)
    return list(PAYOUT_TIERS[-1][1])


def _field(player, name):
    return player[name] if isinstance(player, dict) else getattr(player, name)


def calc_group_amounts(pool, ranked_players: Sequence) -> List[Tuple[list, int]]:
    """Pair every equal-score group with its combined prize.

    The combined amounts always sum to ``pool`` unless there are no players.
    """
    if pool < 0:
        raise ValidationError('pool must not be negative')
    percentages = get_payout_percentages(len(ranked_players))

    amounts = []
    place_offset = 0
    for group in group_by_consecutive_score(ranked_players):
        pct = sum(percentages[place_offset:place_offset + len(group)])
        amounts.append([group, round_half_up(pool * pct)])
        place_offset += len(group)

    last_paid = None
    for i in range(len(amounts) - 1, -1, -1):
        if amounts[i][1] > 0:
            last_paid = i
            break
    if last_paid is not None:
        amounts[last_paid][1] = pool - sum(a for _, a in amounts[:last_paid])
    elif pool > 0 and percentages:
        # Every share rounded down to zero; first place takes the pool
        amounts[0][1] = pool

    return [(group, amount) for group, amount in amounts]


def calc_division_payouts(pool, ranked_players: Sequence, tie_breaker_mode: str,
                          putt_off_winner_id=None) -> List[PayoutEntry]:
    """Payout entries for one division, in rank order.

    ``ranked_players`` must already be in canonical rank order (see
    ``rank_players``). In SPLIT mode a tied group shares its amount and the
    last player of the tie takes the remainder. In PUTT_OFF mode a
    first-place tie pays everything to ``putt_off_winner_id`` or, without a
    winner, holds the money back and flags the group as pending; lower ties
    are still split.
    """
    if tie_breaker_mode not in TIE_BREAKER_MODES:
        raise ValidationError(f'Unknown tie breaker mode: {tie_breaker_mode}')
    if not ranked_players:
        return []

    result: List[PayoutEntry] = []
    place = 0

    def entry(player, payout, is_tied, pending):
        return PayoutEntry(
            place=place + 1,
            player_id=_field(player, 'player_id'),
            player_name=_field(player, 'player_name'),
            total_score=_field(player, 'total_score'),
            payout=payout,
            is_tied=is_tied,
            pending_putt_off=pending,
        )

    for index, (group, combined) in enumerate(calc_group_amounts(pool, ranked_players)):
        is_tied = len(group) > 1

        if is_tied and combined > 0 and tie_breaker_mode == PUTT_OFF and index == 0:
            winner = None
            if putt_off_winner_id is not None:
                winner = next((p for p in group if _field(p, 'player_id') == putt_off_winner_id), None)
            for p in group:
                if winner is None:
                    payout = 0
                else:
                    payout = combined if p is winner else 0
                result.append(entry(p, payout, True, winner is None))
                place += 1
        elif is_tied and combined > 0:
            base = combined // len(group)
            remainder = combined - base * len(group)
            for i, p in enumerate(group):
                payout = base + remainder if i == len(group) - 1 else base
                result.append(entry(p, payout, True, False))
                place += 1
        else:
            # Outright place, or a tie that is out of the money
            for p in group:
                result.append(entry(p, combined, False, False))
                place += 1

    return result


def _latest_putt_offs(league_night_id) -> dict:
    latest = {}
    for po in PuttOff.query.filter_by(league_night_id=league_night_id).order_by(PuttOff.id).all():
        latest[po.division_id] = po
    return latest


def compute_night_payouts(league_night_id) -> dict:
    """Per-division pools and payouts for a league night.

    Only paid check-ins count toward a pool and the ranking; a paid player
    who has no shots yet ranks with a score of 0.
    """
    night = get_league_night(league_night_id)
    check_ins = CheckIn.query.filter_by(league_night_id=league_night_id).order_by(CheckIn.id).all()
    putt_offs = _latest_putt_offs(league_night_id)
    all_totals = calc_night_totals(league_night_id)

    divisions = {}
    for ci in check_ins:
        div = ci.player.division
        if div is None:
            continue
        d = divisions.setdefault(div.id, {'division': div, 'checked_in_count': 0, 'paid': []})
        d['checked_in_count'] += 1
        if ci.has_paid:
            d['paid'].append(ci.player)

    report = []
    for d in divisions.values():
        div = d['division']
        paid_ids = {p.id for p in d['paid']}
        ranked = [t for t in all_totals if t.player_id in paid_ids]
        scored_ids = {t.player_id for t in ranked}
        ranked += [
            PlayerTotals(player_id=p.id, player_name=p.name, division_id=div.id, division_code=div.code)
            for p in d['paid'] if p.id not in scored_ids
        ]
        ranked = rank_players(ranked)

        paid_count = len(paid_ids)
        pool = round_half_up(paid_count * (div.entry_fee or 0))

        mode = night.tie_breaker_mode
        winner_id = None
        putt_off = putt_offs.get(div.id)
        if putt_off is not None:
            if putt_off.status == PUTT_OFF_ABANDONED:
                mode = SPLIT
            else:
                winner_id = putt_off.winner_id

        payouts = calc_division_payouts(pool, ranked, mode, winner_id)
        report.append({
            'division_id': div.id,
            'division_code': div.code,
            'division_name': div.name,
            'entry_fee': div.entry_fee,
            'sort_order': div.sort_order,
            'checked_in_count': d['checked_in_count'],
            'paid_count': paid_count,
            'pool': pool,
            'tie_breaker_mode': mode,
            'percentages': get_payout_percentages(paid_count),
            'payouts': [p.to_dict() for p in payouts],
        })

    report.sort(key=lambda r: (r['sort_order'], r['division_code']))
    return {'tie_breaker_mode': night.tie_breaker_mode, 'divisions': report}


def payout_map(league_night_id) -> dict:
    """Players currently in the money (or waiting on a putt-off), keyed by player id."""
    in_the_money = {}
    for division in compute_night_payouts(league_night_id)['divisions']:
        for p in division['payouts']:
            if p['payout'] > 0 or p['pending_putt_off']:
                in_the_money[p['player_id']] = {
                    'payout': p['payout'],
                    'place': p['place'],
                    'pool': division['pool'],
                    'is_tied': p['is_tied'],
                    'pending_putt_off': p['pending_putt_off'],
                }
    return in_the_money
