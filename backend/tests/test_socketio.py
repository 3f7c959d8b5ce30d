from conftest import VALID_FORM


def _names(events):
    return [e['name'] for e in events]


def _last(events, name):
    matching = [e for e in events if e['name'] == name]
    return matching[-1]['args'][0] if matching else None


def test_socket_connect_receives_current_scene(sio_client, app_machine):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    received = sio_client.get_received('/ws')
    assert 'connected' in _names(received)
    assert _last(received, 'scene_update')['scene'] == 'start'


def test_socket_tap_moves_to_entry(sio_client, app_machine):
    sio_client.get_received('/ws')
    sio_client.emit('tap', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert _last(received, 'scene_update')['scene'] == 'entry'


def test_socket_form_submit_reports_validation_error(sio_client, app_machine):
    sio_client.emit('tap', {}, namespace='/ws')
    sio_client.get_received('/ws')
    sio_client.emit('form_submit', dict(VALID_FORM, consent_given=False), namespace='/ws')
    received = sio_client.get_received('/ws')
    assert 'terms' in _last(received, 'error')['message']
    assert app_machine.scene.value == 'entry'


def test_socket_game_emits_feedback_per_tap(sio_client, app_machine):
    sio_client.emit('tap', {}, namespace='/ws')
    sio_client.emit('form_update', {'name': 'Ada', 'phone': '555'}, namespace='/ws')
    sio_client.emit('form_submit', {'email': 'ada@example.com', 'consent_given': True}, namespace='/ws')
    assert _last(sio_client.get_received('/ws'), 'scene_update')['scene'] == 'countdown'

    app_machine.timers.advance(3000)
    sio_client.get_received('/ws')
    for _ in range(3):
        sio_client.emit('tap', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    feedback = [e['args'][0] for e in received if e['name'] == 'feedback']
    assert [f['knead_count'] for f in feedback] == [1, 2, 3]
    assert all(f['pulse_ms'] == 150 for f in feedback)


def test_socket_form_update_outside_entry_is_an_error(sio_client, app_machine):
    sio_client.get_received('/ws')
    sio_client.emit('form_update', {'name': 'Ada'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert 'error' in _names(received)


def test_socket_ping(sio_client):
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert _last(received, 'pong') == {'n': 1}


def test_socket_form_submit_rejects_non_object(sio_client, app_machine):
    sio_client.emit('tap', {}, namespace='/ws')
    sio_client.get_received('/ws')
    sio_client.emit('form_submit', ['name'], namespace='/ws')
    received = sio_client.get_received('/ws')
    assert 'object' in _last(received, 'error')['message']
    assert app_machine.scene.value == 'entry'
