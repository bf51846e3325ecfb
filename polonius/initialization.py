"""Initialization analysis: maybe-initialized variables and move errors."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import (
    Callable,
    Dict,
    Hashable,
    Iterable,
    List,
    NamedTuple,
    Set,
    Tuple,
    TypeVar,
)

logger = logging.getLogger(__name__)

Fact = TypeVar("Fact")
Pair = Tuple[Hashable, Hashable]


@dataclass
class InitializationContext:
    """The part of the input facts that initialization needs."""

    child_path: List[Pair] = field(default_factory=list)
    path_is_var: List[Pair] = field(default_factory=list)
    path_assigned_at_base: List[Pair] = field(default_factory=list)
    path_moved_at_base: List[Pair] = field(default_factory=list)
    path_accessed_at_base: List[Pair] = field(default_factory=list)


class InitializationResult(NamedTuple):
    """Sorted, distinct `(var, point)` and `(path, point)` pairs."""

    var_maybe_partly_initialized_on_exit: List[Pair]
    move_error: List[Pair]


@dataclass
class _TransitivePaths:
    path_moved_at: Set[Pair]
    path_assigned_at: Set[Pair]
    path_accessed_at: Set[Pair]
    path_begins_with_var: Set[Pair]


def _fixpoint(seeds: Iterable[Fact], step: Callable[[Fact], Iterable[Fact]]) -> Set[Fact]:
    """Close `seeds` under `step`."""
    found = set(seeds)
    pending = list(found)
    while pending:
        for derived in step(pending.pop()):
            if derived not in found:
                found.add(derived)
                pending.append(derived)
    return found


def _index(pairs: Iterable[Pair]) -> Dict[Hashable, List[Hashable]]:
    index: Dict[Hashable, List[Hashable]] = defaultdict(list)
    for key, value in set(pairs):
        index[key].append(value)
    return index


def _descendants(child_path: Iterable[Pair]) -> Dict[Hashable, Set[Hashable]]:
    """Map each path to all its strict descendants."""
    children = _index((parent, child) for child, parent in child_path)

    # ancestor_path(Grandparent, Child) :-
    #     ancestor_path(Parent, Child), child_path(Parent, Grandparent).
    return {
        parent: _fixpoint(direct, lambda path: children.get(path, ()))
        for parent, direct in children.items()
    }


def _compute_transitive_paths(ctx: InitializationContext) -> _TransitivePaths:
    """Extend moves, assignments, accesses and var rooting to all child paths."""
    descendants = _descendants(ctx.child_path)

    def spread(facts: Iterable[Pair]) -> Set[Pair]:
        spread_facts = set(facts)
        spread_facts.update(
            (child, value)
            for path, value in list(spread_facts)
            for child in descendants.get(path, ())
        )
        return spread_facts

    return _TransitivePaths(
        path_moved_at=spread(ctx.path_moved_at_base),
        path_assigned_at=spread(ctx.path_assigned_at_base),
        path_accessed_at=spread(ctx.path_accessed_at_base),
        path_begins_with_var=spread(ctx.path_is_var),
    )


def _dump(target: Dict, facts: Iterable[Pair]) -> None:
    for atom, location in sorted(facts):
        target.setdefault(location, []).append(atom)


def _compute_move_errors(paths: _TransitivePaths, cfg_edge, output):
    successors = _index(cfg_edge)

    # path_maybe_initialized_on_exit(path, point2) :-
    #     path_maybe_initialized_on_exit(path, point1), cfg_edge(point1, point2),
    #     !path_moved_at(path, point2).
    def init_step(fact):
        path, point1 = fact
        return (
            (path, point2)
            for point2 in successors.get(point1, ())
            if (path, point2) not in paths.path_moved_at
        )

    # path_maybe_uninitialized_on_exit(path, point2) :-
    #     path_maybe_uninitialized_on_exit(path, point1), cfg_edge(point1, point2),
    #     !path_assigned_at(path, point2).
    def uninit_step(fact):
        path, point1 = fact
        return (
            (path, point2)
            for point2 in successors.get(point1, ())
            if (path, point2) not in paths.path_assigned_at
        )

    maybe_initialized = _fixpoint(paths.path_assigned_at, init_step)
    maybe_uninitialized = _fixpoint(paths.path_moved_at, uninit_step)

    # var_maybe_partly_initialized_on_exit(var, point) :-
    #     path_maybe_initialized_on_exit(path, point), path_begins_with_var(path, var).
    path_vars = _index(paths.path_begins_with_var)
    var_maybe_partly_initialized = {
        (var, point)
        for path, point in maybe_initialized
        for var in path_vars.get(path, ())
    }

    # move_error(path, target) :-
    #     path_maybe_uninitialized_on_exit(path, source), cfg_edge(source, target),
    #     path_accessed_at(path, target).
    move_error = {
        (path, target)
        for path, source in maybe_uninitialized
        for target in successors.get(source, ())
        if (path, target) in paths.path_accessed_at
    }

    if output.dump_enabled:
        _dump(output.path_maybe_initialized_on_exit, maybe_initialized)
        _dump(output.path_maybe_uninitialized_on_exit, maybe_uninitialized)

    return sorted(var_maybe_partly_initialized), sorted(move_error)


def compute(ctx, cfg_edge, output):
    """Compute maybe-partly-initialized variables and move errors.

    The first result over-approximates variable initialization and is used
    by liveness to decide where a drop may happen. When `output.dump_enabled`
    is set, the intermediate relations are recorded in `output`.
    """
    started = time.perf_counter()

    transitive_paths = _compute_transitive_paths(ctx)
    logger.info(
        "initialization phase 1 completed: %.6fs", time.perf_counter() - started
    )

    var_maybe_partly_initialized, move_error = _compute_move_errors(
        transitive_paths, cfg_edge, output
    )
    logger.info(
        "initialization phase 2: %d move errors in %.6fs",
        len(move_error),
        time.perf_counter() - started,
    )

    if output.dump_enabled:
        _dump(output.var_maybe_partly_initialized_on_exit, var_maybe_partly_initialized)

    return InitializationResult(var_maybe_partly_initialized, move_error)