from flask import Blueprint, jsonify
from flask_login import current_user
from league.api import json_body, require_int
from league.main import admin_required
from league.models import Division, LeagueNight, Player
from league.services.league import roster
from league.services.league.scoring import get_league_night


league_nights = Blueprint('league_nights', __name__)


@league_nights.route('/league-nights', methods=['GET'])
def list_league_nights():
    nights = LeagueNight.query.order_by(LeagueNight.date.desc()).all()
    return jsonify({'league_nights': [n.to_dict(include_layout=False) for n in nights]})


@league_nights.route('/league-nights/<int:night_id>', methods=['GET'])
def get_league_night_detail(night_id):
    return jsonify({'league_night': get_league_night(night_id).to_dict()})


@league_nights.route('/admin/league-nights', methods=['POST'])
@admin_required
def create_league_night():
    data = json_body()
    night = roster.create_league_night(
        data.get('date'),
        tie_breaker_mode=data.get('tie_breaker_mode', 'SPLIT'),
        notes=data.get('notes'),
        hole_count=data.get('hole_count'),
        round_count=data.get('round_count'),
    )
    return jsonify({'league_night': night.to_dict()}), 201


@league_nights.route('/admin/league-nights/<int:night_id>', methods=['PATCH'])
@admin_required
def update_league_night(night_id):
    night = roster.update_league_night(night_id, json_body())
    return jsonify({'league_night': night.to_dict()})


@league_nights.route('/admin/league-nights/<int:night_id>', methods=['DELETE'])
@admin_required
def delete_league_night(night_id):
    roster.delete_league_night(night_id)
    return '', 204


@league_nights.route('/divisions', methods=['GET'])
def list_divisions():
    divisions = Division.query.order_by(Division.sort_order, Division.code).all()
    return jsonify({'divisions': [d.to_dict() for d in divisions]})


@league_nights.route('/admin/divisions', methods=['POST'])
@admin_required
def create_division():
    data = json_body()
    division = roster.create_division(
        data.get('code'),
        data.get('name'),
        entry_fee=data.get('entry_fee', 0),
        sort_order=data.get('sort_order', 0),
    )
    return jsonify({'division': division.to_dict()}), 201


@league_nights.route('/admin/divisions/<int:division_id>', methods=['PATCH'])
@admin_required
def update_division(division_id):
    division = roster.update_division(division_id, json_body())
    return jsonify({'division': division.to_dict()})


@league_nights.route('/players', methods=['GET'])
def list_players():
    players = Player.query.order_by(Player.name, Player.id).all()
    return jsonify({'players': [p.to_dict() for p in players]})


@league_nights.route('/admin/players', methods=['POST'])
@admin_required
def create_player():
    data = json_body()
    player = roster.create_player(data.get('name'), division_id=data.get('division_id'),
                                  user_id=data.get('user_id'))
    return jsonify({'player': player.to_dict()}), 201


@league_nights.route('/league-nights/<int:night_id>/checkins', methods=['GET'])
def list_check_ins(night_id):
    return jsonify({'check_ins': [ci.to_dict() for ci in roster.list_check_ins(night_id)]})


@league_nights.route('/league-nights/<int:night_id>/checkins', methods=['POST'])
@admin_required
def check_in_player(night_id):
    data = json_body()
    ci = roster.check_in(night_id, require_int(data, 'player_id'), has_paid=data.get('has_paid'),
                         checked_in_by=current_user.id)
    return jsonify({'check_in': ci.to_dict()}), 201


@league_nights.route('/league-nights/<int:night_id>/checkins/<int:player_id>', methods=['PATCH'])
@admin_required
def update_check_in(night_id, player_id):
    data = json_body()
    ci = roster.set_paid(night_id, player_id, bool(data.get('has_paid')))
    return jsonify({'check_in': ci.to_dict()})


@league_nights.route('/league-nights/<int:night_id>/checkins/<int:player_id>', methods=['DELETE'])
@admin_required
def check_out_player(night_id, player_id):
    roster.check_out(night_id, player_id)
    return '', 204
