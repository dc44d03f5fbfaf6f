from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from sketchguess import db
from sketchguess.models import User

main = Blueprint('main', __name__)


@main.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    if not username or not password:
        return jsonify({'error': 'invalid_payload', 'message': 'Missing username or password'}), 400
    if len(username) > 64:
        return jsonify({'error': 'invalid_payload', 'message': 'Username is too long'}), 400

    if User.query.filter_by(username=username).first():
        return jsonify({'error': 'username_taken', 'message': 'Username already exists'}), 400

    display_name = (data.get('display_name') or '').strip()[:64] or username
    user = User(username=username, display_name=display_name)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    login_user(user)
    return jsonify({'user': user.to_dict()}), 201


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password') or ''):
        login_user(user, remember=True)
        return jsonify({'user': user.to_dict()})
    return jsonify({'error': 'invalid_credentials', 'message': 'Invalid username or password'}), 401


@main.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'ok': True})
