import time

from flask import Blueprint, jsonify, request

from kneading import get_machine
from kneading.services.game import GatewayError, ScoreSubmission, generate_nickname


leaderboard = Blueprint('leaderboard', __name__)

MAX_LIMIT = 50


@leaderboard.route('', methods=['GET'])
def top_scores():
    machine = get_machine()
    limit = request.args.get('limit', default=machine.settings.leaderboard_size, type=int)
    if limit is None or not 1 <= limit <= MAX_LIMIT:
        return jsonify({'error': f'limit must be between 1 and {MAX_LIMIT}'}), 400
    try:
        entries = machine.gateway.fetch_top(limit)
    except GatewayError as exc:
        return jsonify({'error': str(exc)}), 503
    return jsonify([e.to_dict() for e in entries])


@leaderboard.route('', methods=['POST'])
def insert_score():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Score must be a JSON object'}), 400
    name = str(data.get('name') or '').strip()
    phone = str(data.get('phone') or '').strip()
    email = str(data.get('email') or '').strip()
    if not all([name, phone, email]):
        return jsonify({'error': 'Name, phone and email are required'}), 400

    score = data.get('score')
    if isinstance(score, bool) or not isinstance(score, int) or score < 0:
        return jsonify({'error': 'score must be a non-negative integer'}), 400

    submission = ScoreSubmission(
        name=name,
        phone=phone,
        email=email,
        score=score,
        nickname=data.get('nickname') or generate_nickname(),
        timestamp=time.time(),
    )
    try:
        entry = get_machine().gateway.insert(submission)
    except GatewayError as exc:
        return jsonify({'error': str(exc)}), 503
    return jsonify(entry.to_dict()), 201
