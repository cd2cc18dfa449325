from league.services.league.ranking import detect_ties, group_by_consecutive_score, top_tie


def rows(*scores):
    return [{'player_id': i + 1, 'total_score': s} for i, s in enumerate(scores)]


def test_groups_are_consecutive_runs():
    groups = group_by_consecutive_score(rows(9, 9, 8, 8, 8, 7, 6, 6, 5, 4))
    assert [[p['player_id'] for p in g] for g in groups] == [[1, 2], [3, 4, 5], [6], [7, 8], [9], [10]]


def test_group_order_is_kept_within_a_tie():
    groups = group_by_consecutive_score([
        {'player_id': 30, 'total_score': 5},
        {'player_id': 10, 'total_score': 5},
        {'player_id': 20, 'total_score': 5},
    ])
    assert [p['player_id'] for p in groups[0]] == [30, 10, 20]


def test_empty_and_single():
    assert group_by_consecutive_score([]) == []
    assert group_by_consecutive_score(rows(3)) == [[{'player_id': 1, 'total_score': 3}]]


def test_top_tie():
    assert [p['player_id'] for p in top_tie(rows(7, 7, 7, 2))] == [1, 2, 3]
    assert top_tie(rows(7, 6, 6)) == []
    assert top_tie([]) == []


def test_detect_ties_per_division(factory):
    aaa = factory.division('AAA')
    bbb = factory.division('BBB')
    night = factory.night()
    ann = factory.player('Ann', aaa)
    abe = factory.player('Abe', aaa)
    bea = factory.player('Bea', bbb)
    ben = factory.player('Ben', bbb)
    solo = factory.player('Solo', factory.division('DDD'))

    factory.shot(night, ann, 2)
    factory.shot(night, abe, 2)
    factory.shot(night, bea, 3)
    factory.shot(night, ben, 1)
    factory.shot(night, solo, 0)

    ties = detect_ties(night.id)
    assert len(ties) == 1
    assert ties[0]['division_code'] == 'AAA'
    assert [t['player_id'] for t in ties[0]['tied']] == [ann.id, abe.id]
