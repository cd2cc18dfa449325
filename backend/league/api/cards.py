from flask import Blueprint, jsonify, current_app
from flask_login import current_user, login_required
from league.api import json_body, require_int
from league.errors import ValidationError
from league.main import admin_required
from league.models import Player
from league.services.league import cards as card_service
from league.socketio_events import notify, CARDS_UPDATED


cards = Blueprint('cards', __name__)


def _card_changed(card):
    notify(card.league_night_id, CARDS_UPDATED, {'card': card.to_dict()})
    return jsonify({'card': card.to_dict()})


@cards.route('/league-nights/<int:night_id>/cards', methods=['GET'])
def list_cards(night_id):
    return jsonify({'cards': [c.to_dict() for c in card_service.list_cards(night_id)]})


@cards.route('/league-nights/<int:night_id>/cards', methods=['POST'])
@admin_required
def create_card(night_id):
    data = json_body()
    card = card_service.create_card(
        night_id,
        data.get('name'),
        starting_hole=data.get('starting_hole', 1),
        player_ids=data.get('player_ids') or [],
    )
    notify(night_id, CARDS_UPDATED, {'card': card.to_dict()})
    return jsonify({'card': card.to_dict()}), 201


@cards.route('/league-nights/<int:night_id>/cards/generate', methods=['POST'])
@admin_required
def generate_cards(night_id):
    data = json_body()
    min_players = data.get('min_players_per_card', current_app.config.get('DEFAULT_MIN_PLAYERS_PER_CARD', 3))
    if isinstance(min_players, bool) or not isinstance(min_players, int) or not 1 <= min_players <= 20:
        raise ValidationError('min_players_per_card must be an integer between 1 and 20')
    shuffle = data.get('shuffle', True)
    if not isinstance(shuffle, bool):
        raise ValidationError('shuffle must be a boolean')

    generated = card_service.generate_cards(night_id, min_players, shuffle=shuffle)
    payload = [c.to_dict() for c in generated]
    notify(night_id, CARDS_UPDATED, {'cards': payload})
    return jsonify({'cards': payload})


@cards.route('/cards/<int:card_id>', methods=['PATCH'])
@admin_required
def update_card(card_id):
    data = json_body()
    card = card_service.update_card(
        card_id,
        name=data.get('name'),
        starting_hole=data.get('starting_hole'),
        scorekeeper_id=data.get('scorekeeper_id'),
        clear_scorekeeper='scorekeeper_id' in data and data['scorekeeper_id'] is None,
    )
    return _card_changed(card)


@cards.route('/cards/<int:card_id>/volunteer', methods=['POST'])
@login_required
def volunteer(card_id):
    player = Player.query.filter_by(user_id=current_user.id).first()
    if not player:
        return jsonify({'error': 'No player profile found'}), 400
    card = card_service.get_card(card_id)
    if player.id not in {cp.player_id for cp in card.players}:
        return jsonify({'error': 'You are not on this card'}), 403
    return _card_changed(card_service.assign_scorekeeper(card, player.id))


@cards.route('/cards/<int:card_id>/random-scorekeeper', methods=['POST'])
@login_required
def random_scorekeeper(card_id):
    card = card_service.get_card(card_id)
    if not current_user.is_admin:
        player = Player.query.filter_by(user_id=current_user.id).first()
        if not player or player.id not in {cp.player_id for cp in card.players}:
            return jsonify({'error': 'You are not on this card'}), 403
    return _card_changed(card_service.pick_random_scorekeeper(card_id))


@cards.route('/cards/<int:card_id>/players', methods=['POST'])
@admin_required
def add_player(card_id):
    data = json_body()
    return _card_changed(card_service.add_player_to_card(card_id, require_int(data, 'player_id')))


@cards.route('/cards/<int:card_id>/players/<int:player_id>', methods=['DELETE'])
@admin_required
def remove_player(card_id, player_id):
    return _card_changed(card_service.remove_player_from_card(card_id, player_id))


@cards.route('/cards/<int:card_id>', methods=['DELETE'])
@admin_required
def delete_card(card_id):
    card = card_service.get_card(card_id)
    night_id = card.league_night_id
    card_service.delete_card(card_id)
    notify(night_id, CARDS_UPDATED, {'deleted_card_id': card_id})
    return '', 204
