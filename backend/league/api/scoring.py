from flask import Blueprint, jsonify
from flask_login import current_user, login_required
from league.api import json_body
from league.main import admin_required
from league.services.league import payouts as payout_service
from league.services.league import scoring as scoring_service
from league.services.league.ranking import detect_ties
from league.socketio_events import notify, SCORE_UPDATED, LEADERBOARD_UPDATED, ROUND_COMPLETED


scoring = Blueprint('scoring', __name__)


@scoring.route('/scoring/score', methods=['POST'])
@login_required
def enter_score():
    data = json_body()
    score = scoring_service.record_shot(
        data.get('player_id'),
        data.get('hole_id'),
        data.get('round_id'),
        data.get('position'),
        data.get('made'),
        entered_by=current_user.id,
    )
    night_id = score.hole.league_night_id
    totals = scoring_service.calc_night_totals(night_id)
    notify(night_id, SCORE_UPDATED, {
        'score': score.to_dict(),
        'leaderboard': [t.to_dict() for t in totals],
    })
    return jsonify({'score': score.to_dict()}), 201


@scoring.route('/scoring/bulk', methods=['POST'])
@login_required
def enter_scores_bulk():
    data = json_body()
    scores = scoring_service.record_shots(data.get('scores'), entered_by=current_user.id)
    night_id = scores[0].hole.league_night_id
    totals = scoring_service.calc_night_totals(night_id)
    notify(night_id, LEADERBOARD_UPDATED, {'leaderboard': [t.to_dict() for t in totals]})
    return jsonify({'scores': [s.to_dict() for s in scores]})


@scoring.route('/scoring/rounds/<int:round_id>/complete', methods=['POST'])
@login_required
def complete_round(round_id):
    rnd = scoring_service.complete_round(round_id)
    notify(rnd.league_night_id, ROUND_COMPLETED, {'round_id': rnd.id, 'round_number': rnd.number})
    return jsonify({'round': rnd.to_dict()})


@scoring.route('/league-nights/<int:night_id>/scores', methods=['GET'])
def list_scores(night_id):
    scoring_service.get_league_night(night_id)
    return jsonify({'scores': [s.to_dict() for s in scoring_service.night_scores(night_id)]})


@scoring.route('/league-nights/<int:night_id>/leaderboard', methods=['GET'])
def get_leaderboard(night_id):
    return jsonify(scoring_service.leaderboard(night_id))


@scoring.route('/league-nights/<int:night_id>/ties', methods=['GET'])
def get_ties(night_id):
    return jsonify({'ties': detect_ties(night_id)})


@scoring.route('/league-nights/<int:night_id>/hole-breakdown', methods=['GET'])
def get_hole_breakdown(night_id):
    return jsonify({'hole_breakdown': scoring_service.hole_breakdown(night_id)})


@scoring.route('/admin/league-nights/<int:night_id>/payouts', methods=['GET'])
@admin_required
def get_payouts(night_id):
    return jsonify(payout_service.compute_night_payouts(night_id))


@scoring.route('/league-nights/<int:night_id>/payouts', methods=['GET'])
def get_public_payouts(night_id):
    return jsonify({'payouts': payout_service.payout_map(night_id)})
