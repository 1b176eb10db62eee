import random
import string
import threading
from typing import Callable, Dict, List, Optional

from spectrum.errors import RoomNotFound
from spectrum.models import Room, Player, DEFAULT_PLAYER_NAME

CODE_ALPHABET = string.ascii_uppercase + string.digits


def random_code(length=5):
    return ''.join(random.choices(CODE_ALPHABET, k=length))


def _player_name(name) -> str:
    name = str(name).strip() if name is not None else ''
    return name or DEFAULT_PLAYER_NAME


class RoomRegistry:
    """In-memory mapping of room code to ``Room`` for this process.

    Created once at import time and bound to an app with ``init_app``,
    the same way the Flask extensions are.
    """

    def __init__(self, code_factory: Optional[Callable[[int], str]] = None):
        self._rooms: Dict[str, Room] = {}
        # Held for the whole of every socket handler so changes to a room never interleave
        self.lock = threading.RLock()
        self._code_factory = code_factory or random_code
        self.code_length = 5
        self.default_total_rounds = 5

    def init_app(self, app) -> None:
        self.code_length = int(app.config.get('ROOM_CODE_LENGTH', 5))
        self.default_total_rounds = int(app.config.get('DEFAULT_TOTAL_ROUNDS', 5))
        self._rooms.clear()
        app.extensions['rooms'] = self

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, code):
        return self.normalize(code) in self._rooms

    @staticmethod
    def normalize(code) -> str:
        return str(code or '').strip().upper()

    def _fresh_code(self) -> str:
        while True:
            code = self.normalize(self._code_factory(self.code_length))
            if code and code not in self._rooms:
                return code

    def get(self, code) -> Optional[Room]:
        return self._rooms.get(self.normalize(code))

    def require(self, code) -> Room:
        room = self.get(code)
        if room is None:
            raise RoomNotFound(code)
        return room

    def create(self, player_id: str, name=None) -> Room:
        """Open a lobby with the creator as its only player, host and clue-giver."""
        with self.lock:
            code = self._fresh_code()
            room = Room(
                code=code,
                host_id=player_id,
                players=[Player(id=player_id, name=_player_name(name))],
                player_scores={player_id: 0},
                cluegiver_id=player_id,
                total_rounds=self.default_total_rounds,
            )
            self._rooms[code] = room
            return room

    def join(self, code, player_id: str, name=None) -> Room:
        with self.lock:
            room = self.require(code)
            if not room.has_player(player_id):
                room.players.append(Player(id=player_id, name=_player_name(name)))
            room.player_scores.setdefault(player_id, 0)
            return room

    def disconnect(self, player_id: str) -> List[Room]:
        """Remove a connection from every room it is in.

        Host and clue-giver fall back to the first remaining player. Rooms
        left empty are deleted; the surviving rooms that changed are
        returned so the caller can broadcast them.
        """
        changed = []
        with self.lock:
            for code, room in list(self._rooms.items()):
                if not room.has_player(player_id):
                    continue
                room.players = [p for p in room.players if p.id != player_id]
                room.player_scores.pop(player_id, None)
                room.guesses.pop(player_id, None)
                room.locked.discard(player_id)

                first_id = room.players[0].id if room.players else None
                if room.host_id == player_id:
                    room.host_id = first_id
                if room.cluegiver_id == player_id:
                    room.cluegiver_id = first_id
                    # The new clue-giver no longer counts as a guesser
                    room.guesses.pop(first_id, None)
                    room.locked.discard(first_id)

                if not room.players:
                    del self._rooms[code]
                else:
                    changed.append(room)
        return changed

    def delete(self, code) -> None:
        with self.lock:
            self._rooms.pop(self.normalize(code), None)

    def codes(self) -> List[str]:
        with self.lock:
            return list(self._rooms)
