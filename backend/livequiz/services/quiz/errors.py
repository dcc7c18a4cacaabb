class QuizError(Exception):
    """Base class for every error raised by the live quiz engine."""

    code = 'quiz_error'


class RoomNotFound(QuizError):
    code = 'room_not_found'

    def __init__(self, room_code):
        super().__init__(f'Session {room_code} not found. Please check the code.')
        self.room_code = room_code


class NotRoomOwner(QuizError):
    code = 'not_room_owner'

    def __init__(self, room_code):
        super().__init__(f'You are not the host of session {room_code}')
        self.room_code = room_code


class InvalidTransition(QuizError):
    code = 'invalid_transition'


class InvalidName(QuizError):
    code = 'invalid_name'


class QuestionFormatError(QuizError):
    code = 'question_format'


class MalformedAnswer(QuizError):
    """Submission shape does not fit the question kind. Graded as zero credit."""

    code = 'malformed_answer'


class IgnoredEvent(QuizError):
    """Events the room drops without telling anyone.

    Duplicate network deliveries and stale clients land here; the boundary
    logs them at debug level and emits nothing.
    """

    code = 'ignored'


class ParticipantNotFound(IgnoredEvent):
    code = 'participant_not_found'

    def __init__(self, room_code, name=None):
        super().__init__(f'participant {name!r} not found in {room_code}')
        self.room_code = room_code
        self.name = name


class DuplicateSubmission(IgnoredEvent):
    code = 'duplicate_submission'

    def __init__(self, room_code, name):
        super().__init__(f'{name!r} already answered the current question in {room_code}')
        self.room_code = room_code
        self.name = name


class NoActiveQuestion(IgnoredEvent):
    code = 'no_active_question'

    def __init__(self, room_code):
        super().__init__(f'no question is open in {room_code}')
        self.room_code = room_code
