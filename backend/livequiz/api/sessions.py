from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from livequiz.api import instructor_required
from livequiz.services.quiz.errors import RoomNotFound
from livequiz.services.quiz.store import QuizStore

sessions = Blueprint('sessions', __name__)


def _rooms():
    return current_app.extensions['quiz_rooms']


@sessions.route('/create', methods=['POST'])
@instructor_required
def create_session():
    data = request.get_json(silent=True) or {}
    quiz_id = data.get('quiz_id', data.get('quizId'))
    if quiz_id is None:
        return jsonify({'error': 'quiz_id is required'}), 400
    if QuizStore().get_quiz_by_id(quiz_id) is None:
        return jsonify({'error': 'Quiz not found'}), 404

    outcome = _rooms().create(quiz_id, current_user.id)
    audit = current_app.extensions['quiz_audit']
    audit.write_all(outcome.records)
    return jsonify({
        'success': True,
        'game_code': outcome.room_code,
        'session_id': audit.session_id(outcome.room_code),
    }), 201


@sessions.route('/active', methods=['GET'])
@instructor_required
def active_sessions():
    store = QuizStore()
    payload = []
    for room in _rooms().rooms_for_instructor(current_user.id):
        summary = room.to_dict()
        quiz = store.get_quiz_by_id(room.quiz_id)
        summary['quiz_title'] = quiz['title'] if quiz else 'Unknown Quiz'
        payload.append(summary)
    return jsonify(payload)


@sessions.route('/<string:game_code>/state', methods=['GET'])
@instructor_required
def get_session_state(game_code):
    try:
        room = _rooms().get(game_code)
    except RoomNotFound as exc:
        return jsonify({'error': str(exc)}), 404
    if room.instructor_id != current_user.id:
        current_app.logger.info(f'[state] instructor={current_user.id} denied room={room.code}')
        return jsonify({'error': 'Unauthorized'}), 403
    with room.lock:
        return jsonify(room.to_dict())
