from flask import Blueprint, jsonify
from flask_login import login_required
from league.api import json_body, require_int
from league.main import admin_required
from league.services.league import tiebreaker
from league.socketio_events import notify, PUTT_OFF_UPDATED


putt_offs = Blueprint('putt_offs', __name__)


@putt_offs.route('/scoring/league-nights/<int:night_id>/putt-off', methods=['POST'])
@login_required
def start_putt_off(night_id):
    data = json_body()
    putt_off = tiebreaker.create_putt_off(night_id, require_int(data, 'division_id'), data.get('player_ids'))
    notify(night_id, PUTT_OFF_UPDATED, {'putt_off': putt_off.to_dict()})
    return jsonify({'putt_off': putt_off.to_dict()}), 201


@putt_offs.route('/scoring/putt-offs/<int:putt_off_id>/round', methods=['POST'])
@login_required
def record_round(putt_off_id):
    data = json_body()
    result = tiebreaker.record_putt_off_round(putt_off_id, data.get('scores'))
    putt_off = tiebreaker.get_putt_off(putt_off_id)
    notify(putt_off.league_night_id, PUTT_OFF_UPDATED, {
        'putt_off': putt_off.to_dict(),
        'result': result.to_dict(),
    })
    return jsonify({'result': result.to_dict(), 'putt_off': putt_off.to_dict()})


@putt_offs.route('/admin/putt-offs/<int:putt_off_id>/abandon', methods=['POST'])
@admin_required
def abandon(putt_off_id):
    putt_off = tiebreaker.abandon_putt_off(putt_off_id)
    notify(putt_off.league_night_id, PUTT_OFF_UPDATED, {'putt_off': putt_off.to_dict()})
    return jsonify({'putt_off': putt_off.to_dict()})


@putt_offs.route('/league-nights/<int:night_id>/putt-offs', methods=['GET'])
def list_putt_offs(night_id):
    return jsonify({'putt_offs': [p.to_dict() for p in tiebreaker.list_putt_offs(night_id)]})
