def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def _create_room(test_client):
    res = test_client.post('/api/rooms', json={'custom_words': ['apple']})
    assert res.status_code == 201
    return res.get_json()


def test_socket_connect(sio_client):
    assert sio_client.is_connected('/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'connected' for pkt in received)


def test_subscribe_to_unknown_room(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('subscribe', {'room_code': 'NOPE00'}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and errors[0]['error'] == 'room_not_found'


def test_subscribe_rejects_unknown_channel_kinds(sio_client, alice):
    room = _create_room(alice)
    sio_client.get_received('/ws')
    sio_client.emit('subscribe', {'room_code': room['room_code'], 'channels': ['video']}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and errors[0]['error'] == 'invalid_channels'


def test_subscribe_receives_hints(sio_client, alice, bob):
    room = _create_room(alice)
    code, room_id = room['room_code'], room['id']
    sio_client.get_received('/ws')

    sio_client.emit('subscribe', {'room_code': code}, namespace='/ws')
    subscribed = _events(sio_client, 'subscribed')
    assert subscribed[0]['channels'] == [f'room:{room_id}', f'drawing:{room_id}', f'chat:{room_id}']

    bob.post(f'/api/rooms/{code}/join')
    joined = _events(sio_client, 'player_joined')
    assert joined and joined[0]['room_code'] == code

    alice.post(f'/api/rooms/{code}/start')
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'game_started' in names
    assert 'canvas_cleared' in names

    bob.post(f'/api/rooms/{code}/messages', json={'text': 'apple'})
    received = sio_client.get_received('/ws')
    by_name = {pkt['name']: pkt['args'][0] for pkt in received}
    assert by_name['message_created']['room_id'] == room_id
    assert by_name['correct_guess']['round_number'] == 1
    assert by_name['round_end']['winners'] == [by_name['correct_guess']['player_id']]
    # Hints never carry the word.
    assert 'apple' not in repr(received).lower()


def test_subscribe_to_a_single_channel(sio_client, alice, bob):
    room = _create_room(alice)
    code = room['room_code']
    sio_client.get_received('/ws')

    sio_client.emit('subscribe', {'room_code': code, 'channels': ['chat']}, namespace='/ws')
    sio_client.get_received('/ws')

    bob.post(f'/api/rooms/{code}/join')
    assert _events(sio_client, 'player_joined') == []
    bob.post(f'/api/rooms/{code}/messages', json={'text': 'hello'})
    assert len(_events(sio_client, 'message_created')) == 1


def test_unsubscribe_stops_hints(sio_client, alice, bob):
    code = _create_room(alice)['room_code']
    sio_client.emit('subscribe', {'room_code': code}, namespace='/ws')
    sio_client.emit('unsubscribe', {'room_code': code}, namespace='/ws')
    assert _events(sio_client, 'unsubscribed')

    bob.post(f'/api/rooms/{code}/join')
    assert _events(sio_client, 'player_joined') == []


def test_ping_pong(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert _events(sio_client, 'pong') == [{'n': 1}]
