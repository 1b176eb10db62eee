"""Room phase transitions.

Each public transition takes the room and the id of the connection that
asked for it, mutates the room in place and returns ``True``, or returns
``False`` without touching anything when the actor or phase is wrong.
Broadcasting the new state is left to the caller.
"""
import math
import random

from spectrum.errors import InsufficientPlayers
from spectrum.models import Room, LOBBY, CLUE, GUESS, REVEAL, GAMEOVER
from .prompts import parse_prompt_lines, pick_spectrum
from .scoring import score_round, apply_reveal, round_half_up

MAX_CLUE_LENGTH = 140
DEFAULT_GUESS = 50
MIN_ROUNDS = 1
MAX_ROUNDS = 50
MIN_PLAYERS = 2


def _to_number(value):
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def clamp_guess(value) -> int:
    number = _to_number(value)
    if number is None:
        return DEFAULT_GUESS
    return max(0, min(100, round_half_up(number)))


def clamp_rounds(value, fallback: int, max_rounds: int = MAX_ROUNDS) -> int:
    number = _to_number(value)
    if number is None:
        return fallback
    return max(MIN_ROUNDS, min(max_rounds, int(math.floor(number))))


def rotate_cluegiver(room: Room) -> None:
    ids = room.player_ids
    if not ids:
        room.cluegiver_id = None
        return
    try:
        next_idx = (ids.index(room.cluegiver_id) + 1) % len(ids)
    except ValueError:
        next_idx = 0
    room.cluegiver_id = ids[next_idx]


def _clear_round(room: Room) -> None:
    room.clue = ''
    room.guesses = {}
    room.locked = set()
    room.final_guess = None
    room.last_reveal = None


def start_round(room: Room, rng=random) -> None:
    room.phase = CLUE
    rotate_cluegiver(room)
    room.spectrum = pick_spectrum(room.prompt_pool, rng)
    room.target = rng.randint(0, 100)
    _clear_round(room)


def reveal_round(room: Room) -> dict:
    room.phase = REVEAL
    reveal = score_round(room.target, room.cluegiver_id, room.player_ids, room.guesses, room.locked)
    return apply_reveal(room, reveal)


def end_game(room: Room) -> None:
    room.phase = GAMEOVER
    room.spectrum = None
    room.target = None
    _clear_round(room)


def _begin_game(room: Room, min_players: int, rng) -> None:
    if len(room.players) < min_players:
        raise InsufficientPlayers(min_players)
    room.score = 0
    for pid in room.player_ids:
        room.player_scores[pid] = 0
    room.current_round = 1
    # Rotation from the last player lands on players[0]
    room.cluegiver_id = room.players[-1].id
    start_round(room, rng)


def set_prompts(room: Room, actor_id, text) -> bool:
    if actor_id != room.host_id or room.phase != LOBBY:
        return False
    room.prompt_pool = parse_prompt_lines(text)
    return True


def set_total_rounds(room: Room, actor_id, value, max_rounds: int = MAX_ROUNDS) -> bool:
    if actor_id != room.host_id or room.phase != LOBBY:
        return False
    room.total_rounds = clamp_rounds(value, room.total_rounds, max_rounds)
    return True


def start_game(room: Room, actor_id, total_rounds=None, min_players: int = MIN_PLAYERS,
               max_rounds: int = MAX_ROUNDS, rng=random) -> bool:
    """Leave the lobby and deal round 1.

    Raises ``InsufficientPlayers`` when the host starts with too few
    players; the room stays in the lobby.
    """
    if actor_id != room.host_id or room.phase != LOBBY:
        return False
    _begin_game(room, min_players, rng)
    if total_rounds is not None:
        room.total_rounds = clamp_rounds(total_rounds, room.total_rounds, max_rounds)
    return True


def replay_game(room: Room, actor_id, min_players: int = MIN_PLAYERS, rng=random) -> bool:
    if actor_id != room.host_id or room.phase != GAMEOVER:
        return False
    _begin_game(room, min_players, rng)
    return True


def submit_clue(room: Room, actor_id, text) -> bool:
    if room.phase != CLUE or actor_id != room.cluegiver_id:
        return False
    room.clue = str(text or '')[:MAX_CLUE_LENGTH]
    room.phase = GUESS
    return True


def _is_guesser(room: Room, actor_id) -> bool:
    return actor_id != room.cluegiver_id and room.has_player(actor_id)


def submit_guess(room: Room, actor_id, value) -> bool:
    if room.phase != GUESS or not _is_guesser(room, actor_id):
        return False
    room.guesses[actor_id] = clamp_guess(value)
    return True


def all_locked(room: Room) -> bool:
    return all(pid in room.locked for pid in room.guesser_ids)


def lock_guess(room: Room, actor_id) -> bool:
    """Lock the actor's guess, revealing once every guesser has locked."""
    if room.phase != GUESS or not _is_guesser(room, actor_id):
        return False
    room.locked.add(actor_id)
    if all_locked(room):
        reveal_round(room)
    return True


def reveal_now(room: Room, actor_id) -> bool:
    if actor_id != room.host_id or room.phase != GUESS:
        return False
    reveal_round(room)
    return True


def next_round(room: Room, actor_id, rng=random) -> bool:
    if actor_id != room.host_id or room.phase != REVEAL:
        return False
    if room.current_round >= room.total_rounds:
        end_game(room)
    else:
        room.current_round += 1
        start_round(room, rng)
    return True
