from types import SimpleNamespace

import pytest

from polonius.initialization import (
    InitializationContext,
    InitializationResult,
    compute,
)

LINE = [(0, 1), (1, 2), (2, 3)]
DIAMOND = [(0, 1), (0, 2), (1, 3), (2, 3)]

CHILD_MOVED = dict(
    child_path=[(1, 0)],
    path_is_var=[(0, 0)],
    path_assigned_at_base=[(0, 0)],
    path_moved_at_base=[(0, 1)],
    path_accessed_at_base=[(1, 2)],
)
REINITIALIZED = dict(
    path_is_var=[(0, 0)],
    path_assigned_at_base=[(0, 0), (0, 2)],
    path_moved_at_base=[(0, 1)],
    path_accessed_at_base=[(0, 3)],
)
MOVED_ON_BRANCH = dict(
    path_is_var=[(0, 0)],
    path_assigned_at_base=[(0, 0)],
    path_moved_at_base=[(0, 1)],
    path_accessed_at_base=[(0, 3)],
)


def run(cfg=LINE, dump_enabled=False, **facts):
    output = SimpleNamespace(
        dump_enabled=dump_enabled,
        path_maybe_initialized_on_exit={},
        path_maybe_uninitialized_on_exit={},
        var_maybe_partly_initialized_on_exit={},
    )
    return compute(InitializationContext(**facts), cfg, output), output


@pytest.mark.parametrize(
    "facts, cfg, expected",
    [
        (CHILD_MOVED, LINE, [(1, 2)]),
        (REINITIALIZED, LINE, []),
        (
            dict(
                path_is_var=[(0, 0)],
                path_assigned_at_base=[(0, 0)],
                path_accessed_at_base=[(0, 1)],
                path_moved_at_base=[(0, 2)],
            ),
            LINE,
            [],
        ),
        (MOVED_ON_BRANCH, DIAMOND, [(0, 3)]),
    ],
    ids=["parent-moved", "reinitialized", "access-before-move", "branch"],
)
def test_move_errors(facts, cfg, expected):
    result, _ = run(cfg, **facts)
    assert isinstance(result, InitializationResult)
    assert result.move_error == expected


def test_child_move_keeps_variable_initialized_only_at_start():
    result, _ = run(**CHILD_MOVED)
    assert result.var_maybe_partly_initialized_on_exit == [(0, 0)]


def test_reinitialization_restores_variable():
    result, _ = run(**REINITIALIZED)
    assert (0, 3) in result.var_maybe_partly_initialized_on_exit
    assert (0, 1) not in result.var_maybe_partly_initialized_on_exit


def test_other_branch_keeps_variable_maybe_initialized_at_join():
    result, _ = run(DIAMOND, **MOVED_ON_BRANCH)
    assert (0, 3) in result.var_maybe_partly_initialized_on_exit


def test_results_are_sorted_and_distinct():
    result, _ = run(
        child_path=[(1, 0), (2, 1)],
        path_is_var=[(0, 0), (0, 0)],
        path_assigned_at_base=[(0, 0), (0, 0)],
    )
    var_init = result.var_maybe_partly_initialized_on_exit
    assert var_init == sorted(set(var_init))
    assert [point for _, point in var_init] == [0, 1, 2, 3]


def test_dump_records_intermediate_relations():
    result, output = run(dump_enabled=True, **CHILD_MOVED)
    assert output.path_maybe_initialized_on_exit[0] == [0, 1]
    assert 1 not in output.path_maybe_initialized_on_exit
    assert output.path_maybe_uninitialized_on_exit[2] == [0, 1]
    dumped = {
        (var, point)
        for point, variables in output.var_maybe_partly_initialized_on_exit.items()
        for var in variables
    }
    assert dumped == set(result.var_maybe_partly_initialized_on_exit)


def test_no_dump_when_disabled():
    _, output = run(path_is_var=[(0, 0)], path_assigned_at_base=[(0, 0)])
    assert output.path_maybe_initialized_on_exit == {}
    assert output.var_maybe_partly_initialized_on_exit == {}


def test_empty_context_gives_empty_result():
    result, _ = run()
    assert result == InitializationResult([], [])