"""
Domain errors. The API layer maps these to HTTP responses.
"""


class FitStreakError(Exception):
    status_code = 500


class MissingUserContext(FitStreakError):
    """Raised when a streak computation is requested without a user."""
    status_code = 401


class UserNotFound(FitStreakError):
    status_code = 404

    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class WriteConflict(FitStreakError):
    """The user record changed underneath us too many times in a row."""
    status_code = 409

    def __init__(self, user_id: str, attempts: int):
        super().__init__(f"Concurrent update conflict for user {user_id} after {attempts} attempts")
        self.user_id = user_id
        self.attempts = attempts


class SuggestionUnavailable(FitStreakError):
    status_code = 502
