from typing import List, Sequence

from league.services.league.scoring import calc_night_totals


def _score_of(player):
    if isinstance(player, dict):
        return player['total_score']
    return player.total_score


def group_by_consecutive_score(ranked_players: Sequence) -> List[list]:
    """Split a ranked list into maximal runs of equal ``total_score``.

    Input must already be in rank order; groups keep that order and so do
    the players inside each group.
    """
    groups: List[list] = []
    for player in ranked_players:
        if groups and _score_of(groups[-1][0]) == _score_of(player):
            groups[-1].append(player)
        else:
            groups.append([player])
    return groups


def top_tie(ranked_players: Sequence) -> list:
    """Players tied for first place, or an empty list when first is outright.

    Only a first-place tie can go to a putt-off; lower ties are always split.
    """
    groups = group_by_consecutive_score(ranked_players)
    if groups and len(groups[0]) > 1:
        return groups[0]
    return []


def detect_ties(league_night_id) -> list:
    """First-place ties per division for a league night."""
    by_division = {}
    for t in calc_night_totals(league_night_id):
        by_division.setdefault(t.division_id, []).append(t)

    ties = []
    for division_id, players in by_division.items():
        if len(players) < 2:
            continue
        tied = top_tie(players)
        if tied:
            ties.append({
                'division_id': division_id,
                'division_code': tied[0].division_code,
                'tied': [t.to_dict() for t in tied],
            })
    return ties
