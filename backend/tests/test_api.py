from conftest import SOLUTIONS, WRONG


def _join(client, name, room_id=None, token=None):
    body = {'name': name}
    if room_id:
        body['roomId'] = room_id
    if token:
        body['token'] = token
    res = client.post('/api/battle/join', json=body)
    assert res.status_code == 200
    return res.get_json()


def _current_answers(battle, room_id):
    room = battle.registry.get_room(room_id)
    return SOLUTIONS[room.round.problem.id]


def test_health(client):
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json() == {'status': 'healthy', 'rooms': 0}


def test_list_problems_and_groups(client):
    res = client.get('/api/problems')
    assert res.status_code == 200
    data = res.get_json()
    assert [p['id'] for p in data['problems']] == ['p1', 'p2', 'p3', 'p4']
    assert all('check' not in p for p in data['problems'])
    assert data['problems'][0]['hints']
    groups = {g['id']: g for g in data['groups']}
    assert groups['all-set']['problemIds'] == ['p1', 'p2', 'p3', 'p4']
    assert groups['warmup']['defaultOpen'] is True


def test_problem_detail(client):
    assert client.get('/api/problems/p3').get_json()['difficulty'] == 'Hard'
    res = client.get('/api/problems/nope')
    assert res.status_code == 404
    assert res.get_json()['ok'] is False


def test_check_endpoint(client):
    res = client.post('/api/check', json={'problemId': 'p2', 'answers': {'a': '7', 'b': '3'}})
    assert res.status_code == 200
    assert res.get_json()['ok'] is True

    res = client.post('/api/check', json={'problemId': 'p1', 'answers': {'ans': '233169'}})
    assert res.get_json()['ok'] is False

    res = client.post('/api/check', json={'problemId': 'p3', 'answers': {'a': 'x'}})
    assert res.status_code == 200
    assert res.get_json()['ok'] is False


def test_check_endpoint_errors(client):
    res = client.post('/api/check', data='{not json', content_type='application/json')
    assert res.status_code == 400
    assert res.get_json() == {'ok': False, 'message': 'Invalid JSON payload.'}

    res = client.post('/api/check', json={'answers': {}})
    assert res.status_code == 400

    res = client.post('/api/check', json={'problemId': 'p99', 'answers': {}})
    assert res.status_code == 404


def test_join_creates_room_and_returns_token(client):
    data = _join(client, 'Alice')
    assert len(data['roomId']) == 6
    assert len(data['playerToken']) == 32
    assert data['rejoined'] is False
    game = data['game']
    assert game['state'] == 'waiting'
    assert game['me']['name'] == 'Alice'
    assert game['me']['isHost'] is True
    assert game['canEditSettings'] is True
    assert game['config'] is None
    assert game['defaultConfig']['placementPoints'] == [5, 3, 1]
    assert all('token' not in p for p in game['players'])


def test_rooms_join_alias_and_rejoin(client):
    first = _join(client, 'Alice', room_id='team-1')
    assert first['roomId'] == 'TEAM-1'
    res = client.post('/api/battle/rooms/join', json={
        'roomId': 'TEAM-1', 'token': first['playerToken'],
    })
    data = res.get_json()
    assert res.status_code == 200
    assert data['rejoined'] is True
    assert data['playerToken'] == first['playerToken']
    assert data['game']['me']['name'] == 'Alice'


def test_join_validation(client):
    res = client.post('/api/battle/join', json={'roomId': 'no', 'name': 'A'})
    assert res.status_code == 400
    assert res.get_json()['ok'] is False

    res = client.post('/api/battle/join', json={'name': 42})
    assert res.status_code == 400

    res = client.post('/api/battle/join', json=['Alice'])
    assert res.status_code == 400

    res = client.post('/api/battle/join', data='{"name":', content_type='application/json')
    assert res.status_code == 400
    assert res.get_json()['message'] == 'Invalid JSON payload.'


def test_room_full_is_conflict(client):
    room_id = _join(client, 'A')['roomId']
    for name in ('B', 'C', 'D'):
        _join(client, name, room_id=room_id)
    res = client.post('/api/battle/join', json={'roomId': room_id, 'name': 'E'})
    assert res.status_code == 409
    assert res.get_json()['ok'] is False


def test_body_too_large(client):
    res = client.post('/api/battle/join', json={'name': 'x' * 5000})
    assert res.status_code == 413
    assert res.get_json() == {'ok': False, 'message': 'Request body too large.'}


def test_unknown_api_route_is_json(client):
    res = client.get('/api/battle/nowhere')
    assert res.status_code == 404
    assert res.get_json()['ok'] is False


def test_quick_join(client):
    res = client.post('/api/battle/rooms/quick')
    assert res.status_code == 404
    room_id = _join(client, 'Alice')['roomId']
    res = client.post('/api/battle/rooms/quick')
    assert res.get_json() == {'roomId': room_id, 'playerCount': 1}


def test_config_endpoint(client):
    host = _join(client, 'Host')
    guest = _join(client, 'Guest', room_id=host['roomId'])
    url = f"/api/battle/rooms/{host['roomId']}/config"

    res = client.post(url, json={'config': {'rounds': 3}})
    assert res.status_code == 401
    assert res.get_json()['message'] == 'Missing player token.'

    res = client.post(url, json={'token': guest['playerToken'], 'config': {'rounds': 3}})
    assert res.status_code == 403

    res = client.post(url, json={'token': host['playerToken'], 'config': 'rounds=3'})
    assert res.status_code == 400

    res = client.post(url, json={
        'token': host['playerToken'],
        'config': {'rounds': 3, 'roundTimeSeconds': 45, 'placementPoints': '8、4、2', 'penalty': 2},
    })
    assert res.status_code == 200
    data = res.get_json()
    assert data['config'] == {'rounds': 3, 'roundTimeSeconds': 45, 'placementPoints': [8, 4, 2], 'penalty': 2}
    assert data['game']['config'] == data['config']

    res = client.post('/api/battle/rooms/ZZZZ/config', json={'token': host['playerToken'], 'config': {}})
    assert res.status_code == 404


def test_start_and_answer_flow(client, battle):
    host = _join(client, 'Host')
    room_id = host['roomId']
    guest = _join(client, 'Guest', room_id=room_id)
    client.post(f'/api/battle/rooms/{room_id}/config', json={
        'token': host['playerToken'],
        'config': {'rounds': 1, 'roundTimeSeconds': 30, 'placementPoints': '10', 'penalty': 2},
    })

    res = client.post(f'/api/battle/rooms/{room_id}/start', json={'token': guest['playerToken']})
    assert res.status_code == 403

    res = client.post(f'/api/battle/rooms/{room_id}/start', json={'token': host['playerToken']})
    assert res.status_code == 200
    game = res.get_json()['game']
    assert game['state'] == 'active'
    assert game['settingsLocked'] is True
    assert game['round']['index'] == 1
    assert game['round']['remainingSeconds'] == 30
    assert 'check' not in game['round']['problem']

    res = client.post(f'/api/battle/rooms/{room_id}/start', json={'token': host['playerToken']})
    assert res.status_code == 409

    res = client.post(f'/api/battle/rooms/{room_id}/config', json={
        'token': host['playerToken'], 'config': {'rounds': 2},
    })
    assert res.status_code == 409

    res = client.post(f'/api/battle/rooms/{room_id}/answer', json={
        'token': host['playerToken'], 'answers': WRONG,
    })
    data = res.get_json()
    assert data['correct'] is False
    assert data['penaltyApplied'] is True
    assert data['score'] == -2
    assert data['game']['round']['myAttempts'][0]['correct'] is False

    res = client.post(f'/api/battle/rooms/{room_id}/answer', json={
        'token': guest['playerToken'], 'answers': _current_answers(battle, room_id),
    })
    data = res.get_json()
    assert res.status_code == 200
    assert data['correct'] is True
    assert data['placement'] == 1
    assert data['awarded'] == 10
    assert data['score'] == 10
    game = data['game']
    assert game['state'] == 'results'
    assert game['round']['finishReason'] == 'max_correct'
    assert [(r['rank'], r['name'], r['score']) for r in game['results']] == [(1, 'Guest', 10), (2, 'Host', -2)]

    res = client.post(f'/api/battle/rooms/{room_id}/answer', json={
        'token': guest['playerToken'], 'answers': _current_answers(battle, room_id),
    })
    assert res.status_code == 409


def test_answer_requires_known_token(client):
    host = _join(client, 'Host')
    room_id = host['roomId']
    client.post(f'/api/battle/rooms/{room_id}/start', json={'token': host['playerToken']})
    res = client.post(f'/api/battle/rooms/{room_id}/answer', json={'answers': WRONG})
    assert res.status_code == 401
    res = client.post(f'/api/battle/rooms/{room_id}/answer', json={'token': 'bogus', 'answers': WRONG})
    assert res.status_code == 401


def test_state_endpoint(client):
    host = _join(client, 'Host')
    room_id = host['roomId']

    res = client.get(f'/api/battle/rooms/{room_id.lower()}/state?token={host["playerToken"]}')
    assert res.status_code == 200
    data = res.get_json()
    assert data['roomId'] == room_id
    assert data['game']['me']['name'] == 'Host'

    res = client.get(f'/api/battle/rooms/{room_id}/state')
    assert res.get_json()['game']['me'] is None

    res = client.get(f'/api/battle/rooms/{room_id}/state?token=stale')
    assert res.status_code == 401

    res = client.get('/api/battle/rooms/NOPE1/state')
    assert res.status_code == 404
    assert res.get_json() == {'ok': False, 'message': 'Room NOPE1 not found.'}


def test_leave_hands_over_host(client):
    host = _join(client, 'Host')
    room_id = host['roomId']
    guest = _join(client, 'Guest', room_id=room_id)

    res = client.post(f'/api/battle/rooms/{room_id}/leave', json={'token': host['playerToken']})
    assert res.status_code == 200
    game = res.get_json()['game']
    assert [p['name'] for p in game['players']] == ['Guest']
    assert game['players'][0]['isHost'] is True
    assert game['me'] is None

    res = client.post(f'/api/battle/rooms/{room_id}/leave', json={'token': guest['playerToken']})
    assert res.get_json()['game']['hostId'] is None

    res = client.post(f'/api/battle/rooms/{room_id}/leave', json={})
    assert res.status_code == 401


def test_round_expiry_through_timers(client, battle, clock):
    host = _join(client, 'Host')
    room_id = host['roomId']
    client.post(f'/api/battle/rooms/{room_id}/config', json={
        'token': host['playerToken'], 'config': {'rounds': 2, 'roundTimeSeconds': 10},
    })
    client.post(f'/api/battle/rooms/{room_id}/start', json={'token': host['playerToken']})

    clock.advance(10_000)
    assert battle.timers.fire(room_id) is True
    game = client.get(f'/api/battle/rooms/{room_id}/state').get_json()['game']
    assert game['round']['status'] == 'finished'
    assert game['round']['finishReason'] == 'time'
    assert game['round']['nextStartAt'] == clock() + 3000
    assert game['history'][0]['winners'] == []

    clock.advance(3000)
    battle.timers.fire(room_id)
    game = client.get(f'/api/battle/rooms/{room_id}/state').get_json()['game']
    assert game['round']['index'] == 2
    assert game['round']['status'] == 'active'


def test_cli_lists_rooms(flask_app, client):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['battle-rooms'])
    assert 'No live rooms.' in result.output

    room_id = _join(client, 'Alice')['roomId']
    result = runner.invoke(args=['battle-rooms'])
    assert room_id in result.output
    assert 'host=Alice' in result.output
