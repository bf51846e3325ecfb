from polonius.context import Context


def test_relations_are_sorted_and_distinct():
    ctx = Context(
        origin_live_on_entry=[(2, 1), (1, 3), (2, 1)],
        loan_invalidated_at=[(5, 4), (5, 4), (0, 9)],
        cfg_edge=[(3, 4), (0, 1), (3, 4)],
    )
    assert ctx.origin_live_on_entry == ((1, 3), (2, 1))
    assert ctx.loan_invalidated_at == ((0, 9), (5, 4))
    assert ctx.cfg_edge == ((0, 1), (3, 4))


def test_defaults_are_empty():
    ctx = Context()
    assert ctx.origin_live_on_entry == ()
    assert ctx.subset_base == []
    assert ctx.loan_issued_at == []
    assert ctx.potential_errors is None
    assert ctx.potential_subset_errors is None


def test_placeholder_origin_holds_bare_origins():
    ctx = Context(placeholder_origin=[7, 3, 7])
    assert ctx.placeholder_origin == (3, 7)
    assert 7 in ctx.placeholder_origin


def test_given_inputs_keep_their_order_and_duplicates():
    subset_base = [(2, 1, 0), (1, 2, 0), (2, 1, 0)]
    ctx = Context(subset_base=subset_base, loan_issued_at=[(1, 0, 5)])
    assert ctx.subset_base == subset_base
    assert ctx.loan_issued_at == [(1, 0, 5)]


def test_partial_results_are_normalised():
    ctx = Context(potential_errors=[1, 1, 2], potential_subset_errors=[(2, 1), (1, 2), (2, 1)])
    assert ctx.potential_errors == frozenset({1, 2})
    assert ctx.potential_subset_errors == ((1, 2), (2, 1))


def test_membership_in_relations():
    ctx = Context(loan_killed_at=[(0, 3)], known_placeholder_subset=[(1, 2)])
    assert (0, 3) in ctx.loan_killed_at
    assert (3, 0) not in ctx.loan_killed_at
    assert (1, 2) in ctx.known_placeholder_subset