from livequiz import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone
import json


def _utcnow():
    return datetime.now(timezone.utc)


def _loads(value, default):
    if value is None:
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return value


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(32), nullable=False, default='student')
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    @property
    def is_instructor(self):
        return self.role == 'instructor'

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
        }


class Module(db.Model):
    __tablename__ = 'module'
    id = db.Column(db.String(32), primary_key=True)  # e.g. 'M13'
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(64), nullable=True)
    topics = db.Column(db.Text, nullable=True)  # JSON-encoded list of topic names
    is_custom = db.Column(db.Boolean, nullable=False, default=True)

    @property
    def topic_list(self):
        topics = _loads(self.topics, [])
        return topics if isinstance(topics, list) else []

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'topics': self.topic_list,
            'is_custom': self.is_custom,
        }


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    module_id = db.Column(db.String(32), nullable=True, index=True)
    topic = db.Column(db.String(128), nullable=True)
    question_text = db.Column(db.Text, nullable=False)
    question_type = db.Column(db.String(16), nullable=False)  # single, multiple, truefalse, short, fillblank
    options = db.Column(db.Text, nullable=True)  # JSON-encoded list of option labels
    correct_answer = db.Column(db.Text, nullable=False)  # JSON-encoded, shape depends on question_type
    explanation = db.Column(db.Text, nullable=False, default='')
    image_url = db.Column(db.String(512), nullable=True)
    difficulty = db.Column(db.String(16), nullable=True)
    time_limit = db.Column(db.Integer, nullable=True)  # seconds
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'module_id': self.module_id,
            'topic': self.topic,
            'question_text': self.question_text,
            'question_type': self.question_type,
            'options': _loads(self.options, []),
            'correct_answer': _loads(self.correct_answer, None),
            'explanation': self.explanation,
            'image_url': self.image_url,
            'difficulty': self.difficulty,
            'time_limit': self.time_limit,
        }

    def to_record(self):
        """Raw row values; the quiz engine does its own fail-safe decoding."""
        return {
            'id': self.id,
            'question_text': self.question_text,
            'question_type': self.question_type,
            'options': self.options,
            'correct_answer': self.correct_answer,
            'explanation': self.explanation,
            'image_url': self.image_url,
            'time_limit': self.time_limit,
        }


class Quiz(db.Model):
    __tablename__ = 'quiz'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    mode = db.Column(db.String(16), nullable=False, default='practice')  # practice, exam, mixed
    question_refs = db.Column(db.Text, nullable=True)  # JSON-encoded ordered list of question ids
    time_limit = db.Column(db.Integer, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    @property
    def question_ids(self):
        refs = _loads(self.question_refs, [])
        return refs if isinstance(refs, list) else []

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'mode': self.mode,
            'question_refs': self.question_ids,
            'question_count': len(self.question_ids),
            'time_limit': self.time_limit,
            'created_by': self.created_by,
        }


class QuizSession(db.Model):
    __tablename__ = 'quiz_session'
    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quiz.id'), nullable=True)
    # Codes are reused once a room ends, so no unique constraint here.
    game_code = db.Column(db.String(16), nullable=False, index=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    status = db.Column(db.String(16), nullable=False, default='waiting')  # waiting, active, completed
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    ended_at = db.Column(db.DateTime(timezone=True), nullable=True)
    responses = db.relationship('StudentResponse', backref='session', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'game_code': self.game_code,
            'instructor_id': self.instructor_id,
            'status': self.status,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'ended_at': self.ended_at.isoformat() if self.ended_at else None,
        }


class StudentResponse(db.Model):
    __tablename__ = 'student_response'
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('quiz_session.id'), nullable=False)
    student_name = db.Column(db.String(64), nullable=False)
    question_id = db.Column(db.Integer, nullable=True)
    answer = db.Column(db.Text, nullable=True)  # JSON-encoded submission
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    response_time = db.Column(db.Integer, nullable=True)  # milliseconds
    points = db.Column(db.Integer, nullable=False, default=0)
    answered_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'session_id': self.session_id,
            'student_name': self.student_name,
            'question_id': self.question_id,
            'answer': _loads(self.answer, None),
            'is_correct': self.is_correct,
            'response_time': self.response_time,
            'points': self.points,
        }
