from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from .models import User

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Live quiz server is running.'})


@main.route('/api/instructor/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if not user or not user.is_instructor or not user.check_password(data.get('password') or ''):
        current_app.logger.info(f"[login] rejected username={data.get('username')!r}")
        return jsonify({'error': 'Invalid credentials'}), 401
    login_user(user)
    return jsonify({'success': True, 'user': user.to_dict()})


@main.route('/api/auth/check', methods=['GET', 'OPTIONS'])
def check_login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    if current_user.is_authenticated:
        return jsonify({'authenticated': True, 'user': current_user.to_dict()})
    return jsonify({'authenticated': False})


@main.route('/api/auth/logout', methods=['POST', 'OPTIONS'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})
