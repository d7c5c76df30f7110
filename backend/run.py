import os

from mathbattle import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so timers run as background tasks and websockets work in dev
    socketio.run(
        app,
        host=os.environ.get('HOST', '0.0.0.0'),
        port=int(os.environ.get('PORT', '3000')),
        debug=os.environ.get('FLASK_DEBUG') == '1',
        allow_unsafe_werkzeug=True,
    )
