from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the math battle server!'})


@main.route('/health')
def health():
    service = current_app.extensions['battle']
    return jsonify({'status': 'healthy', 'rooms': len(service.registry)})
