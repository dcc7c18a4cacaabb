from flask import Flask
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


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One room registry per app; handlers and routes reach it through app.extensions
    from livequiz.services.quiz.session import RoomRegistry
    from livequiz.services.quiz.audit import SqlAuditSink
    rooms = RoomRegistry(
        code_length=flask_app.config.get('ROOM_CODE_LENGTH', 6),
        default_time_limit_ms=flask_app.config.get('DEFAULT_TIME_LIMIT_MS', 75000),
        leaderboard_every=flask_app.config.get('LEADERBOARD_EVERY', 5),
    )
    flask_app.extensions['quiz_rooms'] = rooms
    flask_app.extensions['quiz_audit'] = SqlAuditSink()

    # Import and register blueprints here
    from livequiz.main import main
    flask_app.register_blueprint(main)

    from livequiz.api.quizzes import quizzes
    flask_app.register_blueprint(quizzes, url_prefix='/api')

    from livequiz.api.modules import modules
    flask_app.register_blueprint(modules, url_prefix='/api')

    from livequiz.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    # Register Socket.IO event handlers
    from livequiz.socketio_events import RoomBroadcaster, register_socketio_handlers
    broadcaster = RoomBroadcaster(rooms, flask_app.extensions['quiz_audit'])
    flask_app.extensions['quiz_broadcaster'] = broadcaster
    register_socketio_handlers(
        broadcaster,
        namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'),
        testing=flask_app.config.get('TESTING', False),
    )

    # Flask-Login user loader
    from livequiz.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from livequiz.seed import seed_demo_data
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            quiz = seed_demo_data()
            print(f'Database has been reset and seeded! Demo quiz id={quiz.id}')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
