from flask import Blueprint, jsonify, request, current_app
from bingo_client import get_engine
from bingo_client.services.game import (
    BingoClientError,
    ClaimAlreadyPending,
    InvalidCardNumber,
    NoWinningPattern,
    NumberNotOnCard,
    PhaseMismatch,
    TransportLost,
)
from bingo_client.socketio_events import publish_ui_updates


client_api = Blueprint('client_api', __name__)

_ERROR_STATUS = {
    InvalidCardNumber: 400,
    NumberNotOnCard: 400,
    PhaseMismatch: 409,
    NoWinningPattern: 409,
    ClaimAlreadyPending: 409,
    TransportLost: 503,
}


@client_api.errorhandler(BingoClientError)
def handle_client_error(exc):
    status = _ERROR_STATUS.get(type(exc), 400)
    current_app.logger.info(f"[api] {request.method} {request.path} -> {status}: {exc}")
    publish_ui_updates(get_engine())
    return jsonify({'error': str(exc), 'kind': type(exc).__name__}), status


@client_api.errorhandler(ValueError)
def handle_value_error(exc):
    return jsonify({'error': str(exc), 'kind': 'ValueError'}), 400


def _done(payload, status=200):
    publish_ui_updates(get_engine())
    return jsonify(payload), status


@client_api.route('/state', methods=['GET'])
def get_state():
    return jsonify(get_engine().snapshot())


@client_api.route('/card', methods=['POST'])
def select_card():
    data = request.get_json(silent=True) or {}
    card_number = data.get('cardNumber')
    if card_number is None:
        return jsonify({'error': 'cardNumber is required'}), 400
    card = get_engine().select_card(card_number)
    return _done(card.to_dict(), 201)


@client_api.route('/card/quick', methods=['POST'])
def quick_select_card():
    card = get_engine().quick_select_card()
    return _done(card.to_dict(), 201)


@client_api.route('/cards/<int:card_number>', methods=['GET'])
def preview_card(card_number):
    """Re-derive a card locally, e.g. to verify a winner's grid."""
    card = get_engine().generator.generate(card_number)
    return jsonify(card.to_dict())


@client_api.route('/marks/<int:number>', methods=['POST'])
def toggle_mark(number):
    engine = get_engine()
    marked = engine.toggle_mark(number)
    state = engine.snapshot()
    return _done({'number': number, 'marked': marked, 'pendingPattern': state['pendingPattern']})


@client_api.route('/marks', methods=['DELETE'])
def clear_marks():
    get_engine().clear_marks()
    return _done({'marked': []})


@client_api.route('/claim', methods=['POST'])
def claim_bingo():
    intent = get_engine().claim_bingo()
    return _done({'message': 'Claiming BINGO...', 'claim': intent.payload}, 202)


@client_api.route('/join', methods=['POST'])
def join_game():
    data = request.get_json(silent=True) or {}
    intent = get_engine().join_game(data.get('betAmount'))
    return _done({'message': 'Join requested', 'betAmount': intent.payload['betAmount']}, 202)


@client_api.route('/play/quick', methods=['POST'])
def quick_play():
    data = request.get_json(silent=True) or {}
    engine = get_engine()
    sent = engine.quick_play(data.get('betAmount'))
    card = engine.round.card
    return _done({
        'sent': [intent.name for intent in sent],
        'card': card.to_dict() if card is not None else None,
    }, 202)


@client_api.route('/settings', methods=['GET'])
def get_settings():
    return jsonify(get_engine().settings.to_dict())


@client_api.route('/settings', methods=['PATCH'])
def update_settings():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'A JSON object of settings is required'}), 400
    settings = get_engine().update_settings(**data)
    return _done(settings.to_dict())


@client_api.route('/stats', methods=['GET'])
def get_stats():
    return jsonify(get_engine().stats.to_dict())
