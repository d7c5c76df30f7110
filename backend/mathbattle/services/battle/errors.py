"""Battle engine exceptions.

Every error carries the HTTP status the API layer should answer with and a
short message that is safe to show to players.
"""


class BattleError(Exception):
    status_code = 500
    default_message = 'Internal error.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(BattleError):
    status_code = 400
    default_message = 'Invalid request.'


class Unauthorized(BattleError):
    status_code = 401
    default_message = 'Missing or invalid player token.'


class Forbidden(BattleError):
    status_code = 403
    default_message = 'Only the host can do that.'


class NotFound(BattleError):
    status_code = 404
    default_message = 'Not found.'


class Conflict(BattleError):
    status_code = 409
    default_message = 'Action not allowed right now.'


class TooLarge(BattleError):
    status_code = 413
    default_message = 'Request body too large.'


class Internal(BattleError):
    pass


# ============ Room ============

class InvalidRoomId(InvalidInput):
    default_message = 'Room id must be 4-12 characters of A-Z, 0-9 or "-".'


class RoomNotFound(NotFound):
    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f'Room {room_id} not found.')


class RoomFull(Conflict):
    default_message = 'This room is full.'


class InvalidConfig(Conflict):
    default_message = 'Settings cannot be changed while a game is running.'


# ============ Game / round ============

class NoPlayers(Conflict):
    default_message = 'There are no players in this room.'


class AlreadyActive(Conflict):
    default_message = 'The game is already running.'


class StartFailed(Conflict):
    default_message = 'Could not start the first round.'


class NotActive(Conflict):
    default_message = 'No round is accepting answers right now.'


class RoundResolved(Conflict):
    default_message = 'All places for this round are already taken.'


# ============ Player ============

class PlayerNotFound(Unauthorized):
    default_message = 'Player token is not a member of this room.'
