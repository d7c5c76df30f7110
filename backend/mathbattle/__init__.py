from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
import click
from config import Config

socketio = SocketIO(async_mode=None)


def _cors_origins(value):
    if not value or value == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def build_battle_service(flask_app, clock=None):
    """Battle engine wired to Socket.IO background tasks and push updates.

    Timers are registered but not started in TESTING mode unless
    ENABLE_SCHEDULER_IN_TESTS is set; tests fire them explicitly.
    """
    from mathbattle.services.battle import BattleService, RoomTimers
    from mathbattle.services.battle.models import now_ms

    cfg = flask_app.config
    timers = RoomTimers(
        start_task=socketio.start_background_task,
        sleep=socketio.sleep,
        enabled=not (cfg.get('TESTING') and not cfg.get('ENABLE_SCHEDULER_IN_TESTS')),
        heartbeat_sec=int(cfg.get('TIMER_HEARTBEAT_SEC', 0)),
    )

    def notify(room_id):
        socketio.emit('state_update', {'roomId': room_id}, to=f"battle:{room_id}", namespace='/ws')

    return BattleService.from_config(cfg, timers, on_change=notify, clock=clock or now_ms)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = _cors_origins(flask_app.config.get('CORS_ORIGINS'))
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    flask_app.extensions['battle'] = build_battle_service(flask_app)

    # Import and register blueprints here
    from mathbattle.main import main
    flask_app.register_blueprint(main)

    from mathbattle.api.problems import problems
    flask_app.register_blueprint(problems, url_prefix='/api')

    from mathbattle.api.battle import battle
    flask_app.register_blueprint(battle, url_prefix='/api/battle')

    from mathbattle.services.battle.errors import Internal, TooLarge

    from mathbattle.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @flask_app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(exc):
        return jsonify({'ok': False, 'message': TooLarge.default_message}), TooLarge.status_code

    @flask_app.errorhandler(HTTPException)
    def handle_http_error(exc):
        if not request.path.startswith('/api'):
            return exc
        return jsonify({'ok': False, 'message': exc.description or exc.name}), exc.code

    @flask_app.errorhandler(Exception)
    def handle_unexpected(exc):
        flask_app.logger.exception(f"Unhandled error on {request.method} {request.path}")
        return jsonify({'ok': False, 'message': Internal.default_message}), Internal.status_code

    @click.command('battle-rooms')
    def battle_rooms_command():
        """Lists live battle rooms."""
        service = flask_app.extensions['battle']
        rooms = service.registry.rooms()
        if not rooms:
            click.echo('No live rooms.')
            return
        for room in sorted(rooms, key=lambda r: r.created_at):
            host = room.host
            round_index = room.round.index if room.round else '-'
            click.echo(
                f"{room.id:<12} state={room.state:<8} players={len(room.players):<3} "
                f"round={round_index} host={host.name if host else '-'}"
            )

    flask_app.cli.add_command(battle_rooms_command)

    return flask_app
