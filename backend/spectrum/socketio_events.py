from functools import wraps

from flask import current_app, request
from flask_socketio import emit, join_room
from spectrum import socketio, rooms
from spectrum.errors import SpectrumError
from spectrum.models import Room, REVEAL, GAMEOVER
from spectrum.services.games import rounds

_namespace = '/ws'


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def _room_for(data):
    """Look up the room an event addresses; unknown codes are ignored."""
    return rooms.get(_payload(data).get('code'))


def broadcast_room(room: Room) -> None:
    """Send each player their own view of the room."""
    for player in room.players:
        socketio.emit('room:state', room.to_dict(for_player_id=player.id), to=player.id, namespace=_namespace)


def _emit_error(exc: SpectrumError) -> None:
    emit('room:error', exc.to_dict())


def serialized(handler):
    """Run a handler under the registry lock, including its broadcast."""
    @wraps(handler)
    def _locked(*args, **kwargs):
        with rooms.lock:
            return handler(*args, **kwargs)
    return _locked


def _apply(room: Room, event: str, changed: bool) -> None:
    if not changed:
        current_app.logger.debug(f"[ignored] event={event} code={room.code} sid={_get_sid()} phase={room.phase}")
        return
    if room.phase == REVEAL and room.last_reveal and event in ('round:lock', 'round:revealNow'):
        current_app.logger.info(
            f"[reveal] code={room.code} round={room.current_round} target={room.target} "
            f"team_points={room.last_reveal['teamPoints']} total={room.score}"
        )
    elif room.phase == GAMEOVER:
        current_app.logger.info(f"[game-over] code={room.code} total={room.score}")
    broadcast_room(room)


@serialized
def handle_disconnect(reason=None):
    sid = _get_sid()
    before = set(rooms.codes())
    for room in rooms.disconnect(sid):
        broadcast_room(room)
    for code in before - set(rooms.codes()):
        current_app.logger.info(f"[room-deleted] code={code} last_sid={sid}")


@serialized
def handle_create_room(data=None):
    sid = _get_sid()
    room = rooms.create(sid, _payload(data).get('name'))
    join_room(room.code)
    current_app.logger.info(f"[room-create] code={room.code} host={sid}")
    emit('room:joined', {'code': room.code})
    broadcast_room(room)


@serialized
def handle_join_room(data=None):
    data = _payload(data)
    sid = _get_sid()
    try:
        room = rooms.join(data.get('code'), sid, data.get('name'))
    except SpectrumError as exc:
        current_app.logger.info(f"[room-join-rejected] code={data.get('code')} sid={sid}")
        _emit_error(exc)
        return
    join_room(room.code)
    current_app.logger.info(f"[room-join] code={room.code} sid={sid} players={len(room.players)}")
    emit('room:joined', {'code': room.code})
    broadcast_room(room)


@serialized
def handle_set_prompts(data=None):
    room = _room_for(data)
    if not room:
        return
    changed = rounds.set_prompts(room, _get_sid(), _payload(data).get('text'))
    _apply(room, 'prompts:set', changed)


@serialized
def handle_set_rounds(data=None):
    room = _room_for(data)
    if not room:
        return
    max_rounds = int(current_app.config.get('MAX_TOTAL_ROUNDS', rounds.MAX_ROUNDS))
    changed = rounds.set_total_rounds(room, _get_sid(), _payload(data).get('totalRounds'), max_rounds)
    _apply(room, 'config:setRounds', changed)


@serialized
def handle_start_game(data=None):
    room = _room_for(data)
    if not room:
        return
    cfg = current_app.config
    try:
        changed = rounds.start_game(
            room,
            _get_sid(),
            total_rounds=_payload(data).get('totalRounds'),
            min_players=int(cfg.get('MIN_PLAYERS', rounds.MIN_PLAYERS)),
            max_rounds=int(cfg.get('MAX_TOTAL_ROUNDS', rounds.MAX_ROUNDS)),
        )
    except SpectrumError as exc:
        _emit_error(exc)
        return
    if changed:
        current_app.logger.info(
            f"[game-start] code={room.code} players={len(room.players)} rounds={room.total_rounds} "
            f"cluegiver={room.cluegiver_id}"
        )
    _apply(room, 'game:start', changed)


@serialized
def handle_submit_clue(data=None):
    room = _room_for(data)
    if not room:
        return
    _apply(room, 'round:clue', rounds.submit_clue(room, _get_sid(), _payload(data).get('text')))


@serialized
def handle_submit_guess(data=None):
    room = _room_for(data)
    if not room:
        return
    _apply(room, 'round:guess', rounds.submit_guess(room, _get_sid(), _payload(data).get('value')))


@serialized
def handle_lock_guess(data=None):
    room = _room_for(data)
    if not room:
        return
    _apply(room, 'round:lock', rounds.lock_guess(room, _get_sid()))


@serialized
def handle_reveal_now(data=None):
    room = _room_for(data)
    if not room:
        return
    _apply(room, 'round:revealNow', rounds.reveal_now(room, _get_sid()))


@serialized
def handle_next_round(data=None):
    room = _room_for(data)
    if not room:
        return
    changed = rounds.next_round(room, _get_sid())
    if changed and room.phase != GAMEOVER:
        current_app.logger.info(
            f"[next-round] code={room.code} round={room.current_round} cluegiver={room.cluegiver_id}"
        )
    _apply(room, 'round:next', changed)


@serialized
def handle_replay(data=None):
    room = _room_for(data)
    if not room:
        return
    try:
        changed = rounds.replay_game(
            room,
            _get_sid(),
            min_players=int(current_app.config.get('MIN_PLAYERS', rounds.MIN_PLAYERS)),
        )
    except SpectrumError as exc:
        _emit_error(exc)
        return
    if changed:
        current_app.logger.info(f"[game-replay] code={room.code} players={len(room.players)}")
    _apply(room, 'game:replay', changed)


EVENTS = {
    'disconnect': handle_disconnect,
    'room:create': handle_create_room,
    'room:join': handle_join_room,
    'prompts:set': handle_set_prompts,
    'config:setRounds': handle_set_rounds,
    'game:start': handle_start_game,
    'round:clue': handle_submit_clue,
    'round:guess': handle_submit_guess,
    'round:lock': handle_lock_guess,
    'round:revealNow': handle_reveal_now,
    'round:next': handle_next_round,
    'game:replay': handle_replay,
}


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the given namespace."""
    global _namespace
    _namespace = namespace
    for event, handler in EVENTS.items():
        socketio.on_event(event, handler, namespace=namespace)
