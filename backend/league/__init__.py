from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

DEFAULT_DIVISIONS = [
    ('AAA', 'A Pool - Advanced', 1),
    ('BBB', "B Pool - Beginner Men's", 2),
    ('CCC', "C Pool - Women's All Levels", 3),
    ('DDD', "D Pool - Men's 55+", 4),
]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from league.errors import LeagueError

    @flask_app.errorhandler(LeagueError)
    def handle_league_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    from league.main import main
    flask_app.register_blueprint(main)

    from league.api.league_nights import league_nights
    from league.api.scoring import scoring
    from league.api.putt_offs import putt_offs
    from league.api.cards import cards
    flask_app.register_blueprint(league_nights, url_prefix='/api')
    flask_app.register_blueprint(scoring, url_prefix='/api')
    flask_app.register_blueprint(putt_offs, url_prefix='/api')
    flask_app.register_blueprint(cards, url_prefix='/api')

    from league.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Flask-Login user loader
    from league.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Login required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from league.models import Division
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for code, name, sort_order in DEFAULT_DIVISIONS:
                db.session.add(Division(code=code, name=name, sort_order=sort_order))

            admin = User(username=flask_app.config['ADMIN_USERNAME'], is_admin=True)
            admin.set_password(flask_app.config['ADMIN_PASSWORD'])
            db.session.add(admin)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
