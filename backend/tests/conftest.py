import os
import sys
from datetime import datetime

import pytest

# Ensure the backend root (containing the `league` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from league import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    PROTECTED_DIVISION_CODE = 'CCC'
    DEFAULT_MIN_PLAYERS_PER_CARD = 3
    DEFAULT_HOLE_COUNT = 6
    DEFAULT_ROUND_COUNT = 3
    ADMIN_USERNAME = 'admin'
    ADMIN_PASSWORD = 'password'
    # Keep password hashing fast in tests
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import league.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def _login(flask_app, username, is_admin):
    from league.models import User
    user = User(username=username, is_admin=is_admin)
    user.set_password('password')
    db.session.add(user)
    db.session.commit()
    test_client = flask_app.test_client()
    res = test_client.post('/login', json={'username': username, 'password': 'password'})
    assert res.status_code == 200
    return test_client


@pytest.fixture()
def admin_client(flask_app):
    return _login(flask_app, 'admin', True)


@pytest.fixture()
def user_client(flask_app):
    return _login(flask_app, 'scorer', False)


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


class LeagueFactory:
    """Creates rows straight through the session for service-level tests."""

    def division(self, code, entry_fee=10, sort_order=0):
        from league.models import Division
        division = Division(code=code, name=f'{code} Pool', entry_fee=entry_fee, sort_order=sort_order)
        db.session.add(division)
        db.session.commit()
        return division

    def player(self, name, division=None):
        from league.models import Player
        player = Player(name=name, division_id=division.id if division else None)
        db.session.add(player)
        db.session.commit()
        return player

    def night(self, holes=6, rounds=3, tie_breaker_mode='SPLIT'):
        from league.models import Hole, LeagueNight, Round
        night = LeagueNight(date=datetime(2025, 6, 4, 18, 30), tie_breaker_mode=tie_breaker_mode)
        night.holes = [Hole(number=i + 1) for i in range(holes)]
        night.rounds = [Round(number=i + 1) for i in range(rounds)]
        db.session.add(night)
        db.session.commit()
        return night

    def check_in(self, night, player, has_paid=True):
        from league.models import CheckIn
        ci = CheckIn(league_night_id=night.id, player_id=player.id, has_paid=has_paid)
        db.session.add(ci)
        db.session.commit()
        return ci

    def shot(self, night, player, made, hole=1, rnd=1, position='SHORT'):
        from league.services.league.scoring import record_shot
        return record_shot(player.id, night.holes[hole - 1].id, night.rounds[rnd - 1].id, position, made)


@pytest.fixture()
def factory(flask_app):
    return LeagueFactory()
