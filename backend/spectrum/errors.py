"""Exceptions surfaced to the requesting connection as ``room:error``.

Unauthorized or out-of-phase actions are not errors: the state machine
ignores them and reports ``False``.
"""


class SpectrumError(Exception):
    """Base exception for errors that are reported back to a client."""

    message = 'Something went wrong.'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {'message': self.message}


class RoomNotFound(SpectrumError):
    """Raised when a room code does not match any live room."""

    message = 'Room not found.'

    def __init__(self, code=None):
        self.code = code
        super().__init__()


class InsufficientPlayers(SpectrumError):
    """Raised when a game is started with fewer players than required."""

    def __init__(self, required: int = 2):
        self.required = required
        super().__init__(f'Need at least {required} players.')
