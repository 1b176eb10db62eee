import threading

from spectrum import rooms


def _events(test_client, name):
    return [pkt['args'][0] for pkt in test_client.get_received('/ws') if pkt['name'] == name]


def _last_state(test_client):
    states = _events(test_client, 'room:state')
    assert states, 'expected a room:state broadcast'
    return states[-1]


def _create_room(sio_factory, name='Alice'):
    host = sio_factory()
    host.emit('room:create', {'name': name}, namespace='/ws')
    received = host.get_received('/ws')
    code = next(pkt['args'][0]['code'] for pkt in received if pkt['name'] == 'room:joined')
    return host, code


def _join(sio_factory, code, name):
    guest = sio_factory()
    guest.emit('room:join', {'code': code, 'name': name}, namespace='/ws')
    assert _events(guest, 'room:joined') == [{'code': code}]
    return guest


def test_create_room_replies_joined_and_state(sio_factory):
    host = sio_factory()
    host.emit('room:create', {'name': 'Alice'}, namespace='/ws')
    received = host.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'room:joined' in names
    state = [pkt['args'][0] for pkt in received if pkt['name'] == 'room:state'][-1]
    assert state['phase'] == 'LOBBY'
    assert state['players'][0]['name'] == 'Alice'
    assert state['promptPoolCount'] == 0
    assert state['leaderboard'] is None
    assert 'secretTarget' not in state


def test_join_unknown_room_errors(sio_factory):
    guest = sio_factory()
    guest.emit('room:join', {'code': 'ZZZZZ', 'name': 'Bob'}, namespace='/ws')
    assert _events(guest, 'room:error') == [{'message': 'Room not found.'}]


def test_start_with_one_player_errors(sio_factory):
    host, code = _create_room(sio_factory)
    host.emit('game:start', {'code': code}, namespace='/ws')
    received = host.get_received('/ws')
    errors = [pkt['args'][0] for pkt in received if pkt['name'] == 'room:error']
    assert errors == [{'message': 'Need at least 2 players.'}]
    assert not any(pkt['name'] == 'room:state' for pkt in received)
    assert rooms.get(code).phase == 'LOBBY'


def test_non_host_actions_are_silent(sio_factory):
    host, code = _create_room(sio_factory)
    guest = _join(sio_factory, code, 'Bob')
    host.get_received('/ws')
    guest.get_received('/ws')
    guest.emit('game:start', {'code': code}, namespace='/ws')
    guest.emit('prompts:set', {'code': code, 'text': 'a|b'}, namespace='/ws')
    assert guest.get_received('/ws') == []
    assert host.get_received('/ws') == []
    assert rooms.get(code).phase == 'LOBBY'


def test_full_round_flow(sio_factory):
    host, code = _create_room(sio_factory)
    bob = _join(sio_factory, code, 'Bob')
    cara = _join(sio_factory, code, 'Cara')

    host.emit('prompts:set', {'code': code, 'text': 'Cold | Hot\nBad,Good\nfoo'}, namespace='/ws')
    assert _last_state(host)['promptPoolCount'] == 2
    host.emit('game:start', {'code': code, 'totalRounds': 1}, namespace='/ws')

    room = rooms.get(code)
    host_state = _last_state(host)
    bob_state = _last_state(bob)
    assert host_state['phase'] == 'CLUE'
    assert host_state['cluegiverId'] == room.players[0].id
    assert host_state['secretTarget'] == room.target
    assert 'secretTarget' not in bob_state
    assert host_state['spectrum'] in ({'left': 'Cold', 'right': 'Hot'}, {'left': 'Bad', 'right': 'Good'})

    host.emit('round:clue', {'code': code, 'text': 'Soup'}, namespace='/ws')
    host_state = _last_state(host)
    assert host_state['phase'] == 'GUESS'
    assert host_state['clue'] == 'Soup'
    assert 'secretTarget' not in host_state

    room.target = 50
    bob.emit('round:guess', {'code': code, 'value': 45}, namespace='/ws')
    cara.emit('round:guess', {'code': code, 'value': 60}, namespace='/ws')
    bob.emit('round:lock', {'code': code}, namespace='/ws')
    assert _last_state(cara)['phase'] == 'GUESS'
    cara.emit('round:lock', {'code': code}, namespace='/ws')

    state = _last_state(bob)
    assert state['phase'] == 'REVEAL'
    reveal = state['lastReveal']
    assert reveal['target'] == 50
    assert reveal['finalGuess'] == 53
    assert reveal['dist'] == 3
    assert reveal['delta'] == 3
    assert reveal['total'] == 8
    assert reveal['cluePts'] == 4
    assert len(reveal['perPlayer']) == 2
    assert room.players[0].id not in reveal['perPlayer']
    assert state['score'] == 8

    host.emit('round:next', {'code': code}, namespace='/ws')
    final = _last_state(cara)
    assert final['phase'] == 'GAMEOVER'
    assert [row['score'] for row in final['leaderboard']] == [4, 4, 4]
    assert [row['name'] for row in final['leaderboard']] == ['Alice', 'Bob', 'Cara']

    host.emit('game:replay', {'code': code}, namespace='/ws')
    replay = _last_state(bob)
    assert replay['phase'] == 'CLUE'
    assert replay['currentRound'] == 1
    assert replay['score'] == 0


def test_force_reveal_by_host(sio_factory):
    host, code = _create_room(sio_factory)
    bob = _join(sio_factory, code, 'Bob')
    host.emit('game:start', {'code': code}, namespace='/ws')
    host.emit('round:clue', {'code': code, 'text': 'hint'}, namespace='/ws')
    bob.emit('round:guess', {'code': code, 'value': 'not a number'}, namespace='/ws')
    bob.emit('round:revealNow', {'code': code}, namespace='/ws')
    state = _last_state(bob)
    assert state['phase'] == 'GUESS'
    assert state['guesses'] == [{'id': rooms.get(code).players[1].id, 'value': 50}]
    host.emit('round:revealNow', {'code': code}, namespace='/ws')
    state = _last_state(bob)
    assert state['phase'] == 'REVEAL'
    assert state['lastReveal']['finalGuess'] == 50


def test_set_rounds(sio_factory):
    host, code = _create_room(sio_factory)
    host.emit('config:setRounds', {'code': code, 'totalRounds': 80}, namespace='/ws')
    assert _last_state(host)['totalRounds'] == 50
    host.emit('config:setRounds', {'code': code, 'totalRounds': 'lots'}, namespace='/ws')
    assert _last_state(host)['totalRounds'] == 50


def test_host_disconnect_reassigns_host(sio_factory):
    host, code = _create_room(sio_factory)
    bob = _join(sio_factory, code, 'Bob')
    cara = _join(sio_factory, code, 'Cara')
    bob_id = rooms.get(code).players[1].id

    host.disconnect(namespace='/ws')
    state = _last_state(cara)
    assert state['hostId'] == bob_id
    assert [p['name'] for p in state['players']] == ['Bob', 'Cara']
    assert code in rooms

    bob.disconnect(namespace='/ws')
    cara.disconnect(namespace='/ws')
    assert code not in rooms


def test_serialized_handlers_wait_for_the_registry_lock():
    from spectrum.socketio_events import serialized

    done = []
    worker = threading.Thread(target=serialized(lambda: done.append(True)))
    with rooms.lock:
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
        assert done == []
    worker.join(timeout=2)
    assert done == [True]


def test_simultaneous_locks_reveal_once(sio_factory):
    for _ in range(10):
        host, code = _create_room(sio_factory)
        bob = _join(sio_factory, code, 'Bob')
        cara = _join(sio_factory, code, 'Cara')
        host.emit('game:start', {'code': code}, namespace='/ws')
        host.emit('round:clue', {'code': code, 'text': 'hint'}, namespace='/ws')
        room = rooms.get(code)
        room.target = 50
        bob.emit('round:guess', {'code': code, 'value': 50}, namespace='/ws')
        cara.emit('round:guess', {'code': code, 'value': 50}, namespace='/ws')

        barrier = threading.Barrier(2)

        def _lock(test_client):
            barrier.wait()
            test_client.emit('round:lock', {'code': code}, namespace='/ws')

        workers = [threading.Thread(target=_lock, args=(c,)) for c in (bob, cara)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=5)

        assert room.phase == 'REVEAL'
        assert room.score == 8
        assert room.player_scores == {p.id: 4 for p in room.players}
        reveals = [s for s in _events(host, 'room:state') if s['phase'] == 'REVEAL']
        assert len(reveals) == 1


def test_connect_sends_nothing_until_a_room_event(flask_app):
    from spectrum import socketio

    test_client = socketio.test_client(flask_app, namespace='/ws')
    try:
        assert test_client.is_connected('/ws')
        assert test_client.get_received('/ws') == []
    finally:
        test_client.disconnect(namespace='/ws')
