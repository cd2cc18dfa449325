from functools import wraps

from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from league import db
from league.models import User

main = Blueprint('main', __name__)


def admin_required(view):
    """Like ``login_required`` but also requires ``User.is_admin``."""
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({'error': 'Admin access required'}), 403
        return view(*args, **kwargs)
    return wrapper


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the putt league server!'})

@main.route('/users/add', methods=['POST'])
@admin_required
def add_user():
    data = request.get_json(silent=True)
    if not data or not 'username' in data or not 'password' in data:
        return jsonify({'error': 'Missing username or password'}), 400

    if User.query.filter_by(username=data['username']).first():
        return jsonify({'error': 'Username already exists'}), 400

    user = User(username=data['username'], is_admin=bool(data.get('is_admin')))
    user.set_password(data['password'])
    db.session.add(user)
    db.session.commit()

    return jsonify(user.to_dict()), 201

@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password') or ''):
        login_user(user, remember=True)
        return jsonify({'message': 'Logged in successfully.', 'user': user.to_dict()})
    return jsonify({'error': 'Invalid username or password'}), 401

@main.route('/check_login')
@login_required
def check_login():
    return jsonify({'user': current_user.to_dict()})

@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})
