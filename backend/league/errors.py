"""Error taxonomy shared by the league services and the HTTP layer."""


class LeagueError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class ValidationError(LeagueError):
    """Rejected input: out-of-range values or malformed payloads."""
    status_code = 400


class NotFoundError(LeagueError):
    """The referenced league night, card, putt-off or player does not exist."""
    status_code = 404


class EmptyInputError(LeagueError):
    """An operation that needs at least one player received none."""
    status_code = 400
