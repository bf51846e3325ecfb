import pytest

from polonius.algorithm import Algorithm
from polonius.facts import AllFacts
from polonius.output import (
    Output,
    compute_known_contains,
    compute_known_placeholder_subset,
)

ALL_VARIANTS = [
    Algorithm.NAIVE,
    Algorithm.DATAFROG_OPT,
    Algorithm.LOCATION_INSENSITIVE,
    Algorithm.COMPARE,
    Algorithm.HYBRID,
]
PRECISE_VARIANTS = [
    Algorithm.NAIVE,
    Algorithm.DATAFROG_OPT,
    Algorithm.COMPARE,
    Algorithm.HYBRID,
]


def borrow_facts(used_at=2, killed=False):
    """Loan 0 into origin 0 at point 0, invalidated at point 1."""
    return AllFacts(
        cfg_edge=[(0, 1), (1, 2)],
        loan_issued_at=[(0, 0, 0)],
        loan_invalidated_at=[(1, 0)],
        var_used_at=[(0, used_at)],
        use_of_var_derefs_origin=[(0, 0)],
        loan_killed_at=[(0, 0)] if killed else [],
    )


def placeholder_facts(known=False):
    return AllFacts(
        cfg_edge=[(0, 1)],
        universal_region=[1, 2],
        placeholder=[(1, 10), (2, 20)],
        subset_base=[(1, 2, 0)],
        known_placeholder_subset=[(1, 2)] if known else [],
    )


@pytest.mark.parametrize("algorithm", ALL_VARIANTS)
def test_live_loan_invalidated_is_error(algorithm):
    result = Output.compute(borrow_facts(), algorithm, False)
    assert result.errors == {1: [0]}
    assert result.errors_at(1) == [0]


@pytest.mark.parametrize("algorithm", ALL_VARIANTS)
def test_dead_origin_gives_no_error(algorithm):
    result = Output.compute(borrow_facts(used_at=0), algorithm, False)
    assert result.errors == {}
    assert result.errors_at(1) == []


@pytest.mark.parametrize("algorithm", PRECISE_VARIANTS)
def test_killed_loan_is_not_an_error(algorithm):
    result = Output.compute(borrow_facts(killed=True), algorithm, False)
    assert result.errors == {}


def test_location_insensitive_overapproximates_killed_loan():
    result = Output.compute(borrow_facts(killed=True), Algorithm.LOCATION_INSENSITIVE, False)
    assert result.errors == {1: [0]}


def test_algorithm_given_by_name():
    by_name = Output.compute(borrow_facts(), "datafrogopt", False)
    by_member = Output.compute(borrow_facts(), Algorithm.DATAFROG_OPT, False)
    assert by_name.errors == by_member.errors


def test_unknown_algorithm_name():
    with pytest.raises(ValueError):
        Output.compute(borrow_facts(), "fastest", False)


@pytest.mark.parametrize("algorithm", [Algorithm.NAIVE, Algorithm.DATAFROG_OPT])
def test_undeclared_placeholder_subset_is_error(algorithm):
    result = Output.compute(placeholder_facts(), algorithm, False)
    assert (1, 2) in result.subset_errors[0]
    assert all(pairs == {(1, 2)} for pairs in result.subset_errors.values())


@pytest.mark.parametrize("algorithm", ALL_VARIANTS)
def test_known_placeholder_subset_is_not_error(algorithm):
    result = Output.compute(placeholder_facts(known=True), algorithm, False)
    assert result.subset_errors == {}


def test_location_insensitive_subset_error_has_no_location():
    result = Output.compute(placeholder_facts(), Algorithm.LOCATION_INSENSITIVE, False)
    assert result.subset_errors == {0: {(1, 2)}}


def test_compare_matches_naive():
    compared = Output.compute(borrow_facts(), Algorithm.COMPARE, False)
    naive = Output.compute(borrow_facts(), Algorithm.NAIVE, False)
    assert compared.errors == naive.errors
    assert compared.subset_errors == naive.subset_errors


def test_move_errors_recorded():
    facts = AllFacts(
        cfg_edge=[(0, 1), (1, 2)],
        path_is_var=[(0, 0)],
        path_assigned_at_base=[(0, 0)],
        path_moved_at_base=[(0, 1)],
        path_accessed_at_base=[(0, 2)],
    )
    result = Output.compute(facts, Algorithm.NAIVE, False)
    assert result.move_errors == {2: [0]}


def test_dump_getters_require_dump():
    result = Output.compute(borrow_facts(), Algorithm.NAIVE, False)
    with pytest.raises(RuntimeError):
        result.origins_live_at(0)
    with pytest.raises(RuntimeError):
        result.subsets_at(0)
    with pytest.raises(RuntimeError):
        result.origin_loans_at(0)


def test_dump_records_liveness_and_loans():
    result = Output.compute(borrow_facts(), Algorithm.NAIVE, True)
    for point in (0, 1, 2):
        assert result.origins_live_at(point) == [0]
        assert result.origin_loans_at(point) == {0: {0}}
    assert result.loans_in_scope_at(1) == [0]
    assert result.subsets_at(1) == {}


def test_dump_loans_in_scope_agree_between_variants():
    naive = Output.compute(borrow_facts(), Algorithm.NAIVE, True)
    opt = Output.compute(borrow_facts(), Algorithm.DATAFROG_OPT, True)
    for point in (0, 1, 2):
        assert sorted(naive.loans_in_scope_at(point)) == sorted(opt.loans_in_scope_at(point))


def test_universal_regions_live_everywhere():
    result = Output.compute(placeholder_facts(), Algorithm.NAIVE, True)
    for point in (0, 1):
        assert sorted(result.origins_live_at(point)) == [1, 2]
    assert result.subsets_at(0) == {1: {2}}


def test_dump_records_known_contains():
    result = Output.compute(placeholder_facts(known=True), Algorithm.NAIVE, True)
    assert result.known_contains == {1: {10}, 2: {10, 20}}


def test_compute_known_contains_is_transitive():
    assert compute_known_contains([(1, 2), (2, 3)], [(1, 10), (2, 20), (3, 30)]) == [
        (1, 10),
        (2, 10),
        (2, 20),
        (3, 10),
        (3, 20),
        (3, 30),
    ]


def test_compute_known_contains_without_subsets():
    assert compute_known_contains([], [(2, 20), (1, 10)]) == [(1, 10), (2, 20)]


def test_compute_known_placeholder_subset_closure():
    assert compute_known_placeholder_subset([(1, 2), (2, 3)]) == [(1, 2), (1, 3), (2, 3)]


def test_compute_known_placeholder_subset_is_closed():
    closed = compute_known_placeholder_subset([(1, 2), (2, 3), (3, 4)])
    assert compute_known_placeholder_subset(closed) == closed