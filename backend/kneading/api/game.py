from flask import Blueprint, jsonify, request

from kneading import get_machine
from kneading.services.game import WrongSceneError


game = Blueprint('game', __name__)


@game.route('/state', methods=['GET'])
def get_state():
    return jsonify(get_machine().snapshot())


@game.route('/tap', methods=['POST'])
def tap():
    machine = get_machine()
    accepted = machine.tap()
    payload = machine.snapshot()
    payload['accepted'] = accepted
    return jsonify(payload)


@game.route('/entry', methods=['PATCH'])
def update_entry():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Entry fields must be a JSON object'}), 400
    machine = get_machine()
    try:
        machine.update_form(data)
    except WrongSceneError as exc:
        return jsonify({'error': str(exc)}), 409
    return jsonify(machine.snapshot())


@game.route('/entry', methods=['POST'])
def submit_entry():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Entry fields must be a JSON object'}), 400
    machine = get_machine()
    try:
        error = machine.submit_form(data)
    except WrongSceneError as exc:
        return jsonify({'error': str(exc)}), 409
    if error:
        return jsonify({'error': error, 'state': machine.snapshot()}), 400
    return jsonify(machine.snapshot())
