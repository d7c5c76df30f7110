from flask import Blueprint, current_app, jsonify, request

from mathbattle.services.battle.errors import BattleError, InvalidInput, Unauthorized

battle = Blueprint('battle', __name__)


def _service():
    return current_app.extensions['battle']


def _payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        if request.get_data():
            raise InvalidInput('Invalid JSON payload.')
        return {}
    if not isinstance(data, dict):
        raise InvalidInput('Payload must be a JSON object.')
    return data


def _optional_str(data: dict, key: str):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput(f'{key} must be a string.')
    return value.strip() or None


def _require_token(data: dict) -> str:
    token = _optional_str(data, 'token')
    if not token:
        raise Unauthorized('Missing player token.')
    return token


@battle.errorhandler(BattleError)
def handle_battle_error(exc):
    if exc.status_code >= 500:
        current_app.logger.error(f"Battle error on {request.path}: {exc.message}")
    return jsonify({'ok': False, 'message': exc.message}), exc.status_code


@battle.route('/join', methods=['POST'])
@battle.route('/rooms/join', methods=['POST'])
def join_room():
    data = _payload()
    name = data.get('name')
    if name is not None and not isinstance(name, str):
        raise InvalidInput('name must be a string.')
    service = _service()
    room, player, rejoined = service.join(
        _optional_str(data, 'roomId'),
        name,
        _optional_str(data, 'token'),
    )
    return jsonify({
        'roomId': room.id,
        'playerToken': player.token,
        'game': service.game_view(room, player.token),
        'rejoined': rejoined,
    })


@battle.route('/rooms/quick', methods=['POST'])
def quick_join():
    room = _service().quick_join_target()
    return jsonify({'roomId': room.id, 'playerCount': len(room.players)})


@battle.route('/rooms/<string:room_id>/config', methods=['POST'])
def configure_room(room_id):
    data = _payload()
    token = _require_token(data)
    service = _service()
    room, config = service.configure(room_id, token, data.get('config'))
    return jsonify({'config': config.to_dict(), 'game': service.game_view(room, token)})


@battle.route('/rooms/<string:room_id>/start', methods=['POST'])
def start_game(room_id):
    data = _payload()
    token = _require_token(data)
    service = _service()
    room = service.start(room_id, token)
    return jsonify({'game': service.game_view(room, token)})


@battle.route('/rooms/<string:room_id>/answer', methods=['POST'])
def submit_answer(room_id):
    data = _payload()
    token = _require_token(data)
    service = _service()
    room, result = service.answer(room_id, token, data.get('answers'))
    payload = dict(result)
    payload['game'] = service.game_view(room, token)
    return jsonify(payload)


@battle.route('/rooms/<string:room_id>/leave', methods=['POST'])
def leave_room(room_id):
    data = _payload()
    token = _require_token(data)
    service = _service()
    room = service.leave(room_id, token)
    return jsonify({'game': service.game_view(room)})


@battle.route('/rooms/<string:room_id>/state', methods=['GET'])
def room_state(room_id):
    token = (request.args.get('token') or '').strip() or None
    room, game = _service().state(room_id, token)
    return jsonify({'roomId': room.id, 'game': game})
