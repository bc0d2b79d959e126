from flashcards_api.client.selection import NEW, PENDING, SelectionState


def test_toggle_respects_combined_cap():
    selection = SelectionState(max_selection=3)
    assert selection.toggle(PENDING, 'p1', True)
    assert selection.toggle(NEW, 'n1', True)
    assert selection.toggle(NEW, 'n2', True)

    assert selection.toggle(NEW, 'n3', True) is False
    assert selection.ids(NEW) == {'n1', 'n2'}
    assert len(selection) == 3


def test_deselect_and_reselect_existing_is_always_allowed():
    selection = SelectionState(max_selection=1)
    selection.toggle(NEW, 'n1', True)
    assert selection.toggle(NEW, 'n1', True)
    assert selection.toggle(NEW, 'n1', False)
    assert len(selection) == 0


def test_sets_stay_disjoint():
    selection = SelectionState()
    selection.toggle(PENDING, 'x', True)
    selection.toggle(NEW, 'x', True)
    assert selection.ids(PENDING) == set()
    assert selection.ids(NEW) == {'x'}


def test_select_all_truncates_to_remaining_capacity():
    selection = SelectionState(max_selection=100)
    for i in range(40):
        selection.toggle(PENDING, f'p{i}', True)

    ok = selection.select_all(NEW, [f'n{i}' for i in range(80)])
    assert ok is False
    assert len(selection.ids(NEW)) == 60
    assert len(selection) == 100


def test_select_all_fits_and_deselect_all():
    selection = SelectionState()
    assert selection.select_all(NEW, ['a', 'b'])
    assert selection.select_all(NEW, [], selected=False)
    assert len(selection) == 0


def test_discard_removes_from_both_sets():
    selection = SelectionState()
    selection.toggle(PENDING, 'p', True)
    selection.toggle(NEW, 'n', True)
    selection.discard(['p', 'n', 'zzz'])
    assert selection.all_ids() == []


def test_moving_between_sets_is_allowed_at_the_cap():
    selection = SelectionState(max_selection=2)
    selection.toggle(PENDING, 'x', True)
    selection.toggle(NEW, 'n1', True)

    assert selection.toggle(NEW, 'x', True)
    assert selection.ids(NEW) == {'n1', 'x'}
    assert selection.ids(PENDING) == set()
    assert len(selection) == 2
