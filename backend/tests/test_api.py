def _setup_night(admin_client, players=3, entry_fee=10, mode='SPLIT'):
    division = admin_client.post('/api/admin/divisions', json={
        'code': 'aaa', 'name': 'A Pool', 'entry_fee': entry_fee, 'sort_order': 1,
    }).get_json()['division']
    night = admin_client.post('/api/admin/league-nights', json={
        'date': '2025-06-04T18:30:00', 'tie_breaker_mode': mode,
    }).get_json()['league_night']
    created = []
    for name in ['Alice', 'Bob', 'Cara', 'Dan'][:players]:
        player = admin_client.post('/api/admin/players', json={
            'name': name, 'division_id': division['id'],
        }).get_json()['player']
        res = admin_client.post(f"/api/league-nights/{night['id']}/checkins", json={
            'player_id': player['id'], 'has_paid': True,
        })
        assert res.status_code == 201
        created.append(player)
    return division, night, created


def _shot(client, night, player, made, hole=0, rnd=0, position='SHORT'):
    return client.post('/api/scoring/score', json={
        'player_id': player['id'],
        'hole_id': night['holes'][hole]['id'],
        'round_id': night['rounds'][rnd]['id'],
        'position': position,
        'made': made,
    })


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_admin_routes_need_login(client):
    res = client.post('/api/admin/league-nights', json={'date': '2025-06-04'})
    assert res.status_code == 401
    assert res.get_json() == {'error': 'Login required'}
    res = client.post('/api/scoring/score', json={})
    assert res.status_code == 401


def test_admin_routes_need_admin(user_client):
    res = user_client.post('/api/admin/league-nights', json={'date': '2025-06-04'})
    assert res.status_code == 403


def test_login_rejects_bad_password(client, flask_app):
    res = client.post('/login', json={'username': 'nobody', 'password': 'x'})
    assert res.status_code == 401


def test_create_night_has_default_layout(admin_client):
    res = admin_client.post('/api/admin/league-nights', json={'date': '2025-06-04T18:30:00'})
    assert res.status_code == 201
    night = res.get_json()['league_night']
    assert [h['number'] for h in night['holes']] == [1, 2, 3, 4, 5, 6]
    assert [r['number'] for r in night['rounds']] == [1, 2, 3]
    assert night['tie_breaker_mode'] == 'SPLIT'

    listed = admin_client.get('/api/league-nights').get_json()['league_nights']
    assert [n['id'] for n in listed] == [night['id']]


def test_create_night_validation(admin_client):
    res = admin_client.post('/api/admin/league-nights', json={'date': 'not a date'})
    assert res.status_code == 400
    assert 'error' in res.get_json()
    res = admin_client.post('/api/admin/league-nights', json={
        'date': '2025-06-04', 'tie_breaker_mode': 'COIN_FLIP',
    })
    assert res.status_code == 400


def test_unknown_night_is_404(client):
    res = client.get('/api/league-nights/999/leaderboard')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'League night not found'}


def test_scoring_and_leaderboard(admin_client):
    division, night, (alice, bob, cara) = _setup_night(admin_client)
    res = _shot(admin_client, night, alice, 3)
    assert res.status_code == 201
    assert res.get_json()['score']['bonus'] is True
    _shot(admin_client, night, bob, 2)
    _shot(admin_client, night, alice, 1)

    board = admin_client.get(f"/api/league-nights/{night['id']}/leaderboard").get_json()
    assert [(r['player_name'], r['total_score']) for r in board['overall']] == [('Bob', 2), ('Alice', 1)]
    assert list(board['by_division']) == ['AAA']

    scores = admin_client.get(f"/api/league-nights/{night['id']}/scores").get_json()['scores']
    assert len(scores) == 2


def test_invalid_score_is_400(admin_client):
    division, night, (alice, bob, cara) = _setup_night(admin_client)
    res = _shot(admin_client, night, alice, 4)
    assert res.status_code == 400
    res = _shot(admin_client, night, alice, 1, position='MIDDLE')
    assert res.status_code == 400
    res = admin_client.post('/api/scoring/score', json=[1, 2])
    assert res.status_code == 400


def test_bulk_scores(admin_client):
    division, night, (alice, bob, cara) = _setup_night(admin_client)
    entries = [
        {'player_id': p['id'], 'hole_id': night['holes'][0]['id'], 'round_id': night['rounds'][0]['id'],
         'position': 'LONG', 'made': m}
        for p, m in ((alice, 1), (bob, 2), (cara, 3))
    ]
    res = admin_client.post('/api/scoring/bulk', json={'scores': entries})
    assert res.status_code == 200
    assert [s['made'] for s in res.get_json()['scores']] == [1, 2, 3]


def test_payouts_report(admin_client):
    division, night, (alice, bob, cara) = _setup_night(admin_client)
    _shot(admin_client, night, alice, 2)
    _shot(admin_client, night, bob, 2)
    _shot(admin_client, night, cara, 1)

    report = admin_client.get(f"/api/admin/league-nights/{night['id']}/payouts").get_json()
    (div,) = report['divisions']
    assert div['pool'] == 30
    assert [p['payout'] for p in div['payouts']] == [15, 15, 0]

    public = admin_client.get(f"/api/league-nights/{night['id']}/payouts").get_json()['payouts']
    assert set(public) == {str(alice['id']), str(bob['id'])}


def test_putt_off_flow(admin_client):
    division, night, (alice, bob, cara) = _setup_night(admin_client, mode='PUTT_OFF')
    _shot(admin_client, night, alice, 2)
    _shot(admin_client, night, bob, 2)

    ties = admin_client.get(f"/api/league-nights/{night['id']}/ties").get_json()['ties']
    assert [t['player_id'] for t in ties[0]['tied']] == [alice['id'], bob['id']]

    res = admin_client.post(f"/api/scoring/league-nights/{night['id']}/putt-off", json={
        'division_id': division['id'], 'player_ids': [alice['id'], bob['id']],
    })
    assert res.status_code == 201
    putt_off = res.get_json()['putt_off']

    res = admin_client.post(f"/api/scoring/putt-offs/{putt_off['id']}/round", json={
        'scores': [{'player_id': alice['id'], 'made': 2}, {'player_id': bob['id'], 'made': 2}],
    })
    body = res.get_json()
    assert body['result']['still_tied'] is True
    assert body['putt_off']['round'] == 2

    res = admin_client.post(f"/api/scoring/putt-offs/{putt_off['id']}/round", json={
        'scores': [{'player_id': alice['id'], 'made': 3}, {'player_id': bob['id'], 'made': 1}],
    })
    body = res.get_json()
    assert body['result']['winner_id'] == alice['id']
    assert body['putt_off']['status'] == 'resolved'

    report = admin_client.get(f"/api/admin/league-nights/{night['id']}/payouts").get_json()
    assert [p['payout'] for p in report['divisions'][0]['payouts']] == [30, 0, 0]

    res = admin_client.post(f"/api/admin/putt-offs/{putt_off['id']}/abandon")
    assert res.status_code == 400


def test_generate_cards_endpoint(admin_client):
    division, night, players = _setup_night(admin_client, players=4)
    url = f"/api/league-nights/{night['id']}/cards/generate"
    assert admin_client.post(url, json={'min_players_per_card': 0}).status_code == 400
    assert admin_client.post(url, json={'shuffle': 'yes'}).status_code == 400

    res = admin_client.post(url, json={'min_players_per_card': 2, 'shuffle': False})
    assert res.status_code == 200
    cards = res.get_json()['cards']
    assert [len(c['players']) for c in cards] == [2, 2]
    assert [c['starting_hole'] for c in cards] == [1, 2]

    listed = admin_client.get(f"/api/league-nights/{night['id']}/cards").get_json()['cards']
    assert [c['id'] for c in listed] == [c['id'] for c in cards]

    card_id = cards[0]['id']
    keeper = cards[0]['players'][0]['id']
    res = admin_client.patch(f'/api/cards/{card_id}', json={'scorekeeper_id': keeper})
    assert res.get_json()['card']['scorekeeper_id'] == keeper
    res = admin_client.patch(f'/api/cards/{card_id}', json={'scorekeeper_id': None})
    assert res.get_json()['card']['scorekeeper_id'] is None

    assert admin_client.delete(f'/api/cards/{card_id}').status_code == 204


def test_generate_cards_without_players(admin_client):
    night = admin_client.post('/api/admin/league-nights', json={'date': '2025-06-04'}).get_json()['league_night']
    res = admin_client.post(f"/api/league-nights/{night['id']}/cards/generate", json={})
    assert res.status_code == 400


def test_check_in_paid_toggle_and_checkout(admin_client):
    division, night, (alice, bob, cara) = _setup_night(admin_client)
    url = f"/api/league-nights/{night['id']}/checkins"
    res = admin_client.patch(f"{url}/{alice['id']}", json={'has_paid': False})
    assert res.get_json()['check_in']['has_paid'] is False
    assert admin_client.delete(f"{url}/{bob['id']}").status_code == 204

    check_ins = admin_client.get(url).get_json()['check_ins']
    assert [ci['player']['name'] for ci in check_ins] == ['Alice', 'Cara']

    report = admin_client.get(f"/api/admin/league-nights/{night['id']}/payouts").get_json()
    assert report['divisions'][0]['paid_count'] == 1
    assert report['divisions'][0]['pool'] == 10


def test_delete_night_removes_scores(admin_client):
    division, night, (alice, bob, cara) = _setup_night(admin_client)
    _shot(admin_client, night, alice, 1)
    assert admin_client.delete(f"/api/admin/league-nights/{night['id']}").status_code == 204
    assert admin_client.get(f"/api/league-nights/{night['id']}").status_code == 404
