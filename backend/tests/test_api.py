from kneading import create_app, get_machine
from conftest import VALID_FORM, RecordingGateway, TestConfig


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_state_starts_on_start(client, app_machine):
    res = client.get('/api/game/state')
    assert res.status_code == 200
    state = res.get_json()
    assert state['scene'] == 'start'
    assert state['leaderboard'] == []
    assert state['settings']['game_duration_sec'] == 10


def test_tap_opens_entry(client, app_machine):
    res = client.post('/api/game/tap')
    assert res.status_code == 200
    data = res.get_json()
    assert data['accepted'] is True
    assert data['scene'] == 'entry'
    assert data['form'] == {'name': '', 'phone': '', 'email': '', 'consent_given': False}


def test_entry_rejected_when_phone_missing(client, app_machine):
    client.post('/api/game/tap')
    res = client.post('/api/game/entry', json=dict(VALID_FORM, phone=''))
    assert res.status_code == 400
    data = res.get_json()
    assert 'phone' in data['error']
    assert data['state']['scene'] == 'entry'
    assert data['state']['form']['name'] == VALID_FORM['name']


def test_entry_closed_outside_entry_scene(client, app_machine):
    res = client.post('/api/game/entry', json=VALID_FORM)
    assert res.status_code == 409
    res = client.patch('/api/game/entry', json={'name': 'Ada'})
    assert res.status_code == 409


def test_partial_entry_update(client, app_machine):
    client.post('/api/game/tap')
    res = client.patch('/api/game/entry', json={'name': 'Ada', 'consent_given': True})
    assert res.status_code == 200
    form = res.get_json()['form']
    assert form['name'] == 'Ada'
    assert form['consent_given'] is True


def test_full_game_over_http(client, flask_app, app_machine):
    timers = app_machine.timers
    client.post('/api/game/tap')
    res = client.post('/api/game/entry', json=VALID_FORM)
    assert res.status_code == 200
    assert res.get_json()['scene'] == 'countdown'
    assert res.get_json()['ticks_remaining'] == 3

    timers.advance(3000)
    state = client.get('/api/game/state').get_json()
    assert state['scene'] == 'play'
    assert state['session']['seconds_remaining'] == 10

    for _ in range(12):
        assert client.post('/api/game/tap').get_json()['accepted'] is True
    timers.advance(10000)

    state = client.get('/api/game/state').get_json()
    assert state['scene'] == 'result'
    assert state['score'] == 12
    assert state['submission'] == 'submitted'
    assert state['leaderboard'][0]['score'] == 12
    assert state['leaderboard'][0]['nickname'] == state['nickname']

    top = client.get('/api/leaderboard').get_json()
    assert [e['score'] for e in top] == [12]


def test_leaderboard_insert_and_order(client, app_machine):
    for name, score in [('A', 5), ('B', 9), ('C', 5)]:
        res = client.post('/api/leaderboard', json={
            'name': name, 'phone': '1', 'email': f'{name}@x.io', 'score': score, 'nickname': name,
        })
        assert res.status_code == 201
    top = client.get('/api/leaderboard').get_json()
    # Ties keep arrival order
    assert [e['nickname'] for e in top] == ['B', 'A', 'C']
    assert client.get('/api/leaderboard?limit=1').get_json() == [{'nickname': 'B', 'score': 9}]


def test_leaderboard_insert_generates_nickname(client, app_machine):
    res = client.post('/api/leaderboard', json={
        'name': 'Ada', 'phone': '1', 'email': 'a@x.io', 'score': 3,
    })
    assert res.status_code == 201
    assert '#' in res.get_json()['nickname']


def test_leaderboard_insert_validation(client, app_machine):
    res = client.post('/api/leaderboard', json={'name': 'Ada', 'phone': '1', 'score': 3})
    assert res.status_code == 400
    res = client.post('/api/leaderboard', json={'name': 'Ada', 'phone': '1', 'email': 'a@x.io', 'score': -1})
    assert res.status_code == 400
    res = client.post('/api/leaderboard', json={'name': 'Ada', 'phone': '1', 'email': 'a@x.io', 'score': 'ten'})
    assert res.status_code == 400


def test_leaderboard_limit_bounds(client, app_machine):
    assert client.get('/api/leaderboard?limit=0').status_code == 400
    assert client.get('/api/leaderboard?limit=51').status_code == 400


def test_leaderboard_store_down(client, flask_app, app_machine):
    gateway = RecordingGateway()
    gateway.fail_fetch = True
    get_machine(flask_app).gateway = gateway
    res = client.get('/api/leaderboard')
    assert res.status_code == 503
    assert 'error' in res.get_json()


def test_health_reports_scene(client, app_machine):
    res = client.get('/health')
    assert res.get_json() == {'ok': True, 'scene': 'start'}


def test_cli_leaderboard_commands(flask_app, client, app_machine):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['leaderboard-top'])
    assert 'No scores yet.' in result.output
    client.post('/api/leaderboard', json={
        'name': 'Ada', 'phone': '1', 'email': 'a@x.io', 'score': 8, 'nickname': 'Ada',
    })
    result = runner.invoke(args=['leaderboard-top'])
    assert '1. Ada  8' in result.output
    result = runner.invoke(args=['leaderboard-reset'])
    assert 'Leaderboard has been reset!' in result.output
    result = runner.invoke(args=['leaderboard-top'])
    assert 'No scores yet.' in result.output


class LiveTimersConfig(TestConfig):
    TIMER_BACKEND = 'socketio'


def test_app_machine_alternates_without_manual_start(flask_app):
    timers = get_machine(flask_app).timers
    timers.advance(7000)
    assert client_scene(flask_app) == 'leaderboard'
    timers.advance(7000)
    assert client_scene(flask_app) == 'start'


def client_scene(flask_app):
    return flask_app.test_client().get('/api/game/state').get_json()['scene']


def test_live_machine_starts_with_first_request():
    live_app = create_app(LiveTimersConfig)
    machine = get_machine(live_app)
    assert machine.timers.active_purposes() == set()
    live_app.test_client().get('/')
    assert machine.timers.active_purposes() == {'auto_switch'}
    # A second request does not re-enter Start
    assert machine.ensure_started() is False
    machine.timers.cancel_all()


def test_entry_rejects_non_object_body(client, app_machine):
    client.post('/api/game/tap')
    assert client.post('/api/game/entry', json=['name']).status_code == 400
    assert client.patch('/api/game/entry', json='name').status_code == 400
    assert app_machine.scene.value == 'entry'


def test_leaderboard_insert_rejects_non_object_body(client, app_machine):
    res = client.post('/api/leaderboard', json=['Ada', 3])
    assert res.status_code == 400
    assert 'error' in res.get_json()
