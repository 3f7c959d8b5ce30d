from flask import Blueprint, jsonify

from kneading import get_machine

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Kneading Challenge kiosk!'})

@main.route('/health')
def health():
    return jsonify({'ok': True, 'scene': get_machine().scene.value})
