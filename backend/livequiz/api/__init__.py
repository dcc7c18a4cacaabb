from functools import wraps

from flask import jsonify
from flask_login import current_user


def instructor_required(view):
    """Reject anyone who is not a logged-in instructor."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_instructor:
            return jsonify({'error': 'Unauthorized'}), 403
        return view(*args, **kwargs)
    return wrapper
