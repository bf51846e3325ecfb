"""Origin liveness: which origins are live on entry to each point."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, Iterable, List, Set, Tuple, TypeVar

logger = logging.getLogger(__name__)

Fact = TypeVar("Fact")
Pair = Tuple[Hashable, Hashable]


@dataclass
class LivenessContext:
    """The part of the input facts that liveness needs."""

    var_used_at: List[Pair] = field(default_factory=list)
    var_defined_at: List[Pair] = field(default_factory=list)
    var_dropped_at: List[Pair] = field(default_factory=list)
    use_of_var_derefs_origin: List[Pair] = field(default_factory=list)
    drop_of_var_derefs_origin: List[Pair] = field(default_factory=list)


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


def _index(pairs: Iterable[Pair]) -> Dict[Hashable, Set[Hashable]]:
    """Group the second element of each pair by its first."""
    index: Dict[Hashable, Set[Hashable]] = defaultdict(set)
    for key, value in pairs:
        index[key].add(value)
    return index


def _dump(target: Dict, facts: Set[Pair]) -> None:
    for var, location in sorted(facts):
        target.setdefault(location, []).append(var)


def compute_live_origins(ctx, cfg_edge, var_maybe_partly_initialized_on_exit, output):
    """Return the sorted, distinct `(origin, point)` pairs live on entry.

    When `output.dump_enabled` is set, variable liveness and drop-liveness
    are recorded in `output`.
    """
    started = time.perf_counter()

    var_defined_at = set(ctx.var_defined_at)
    successors = _index(cfg_edge)
    predecessors = _index((p2, p1) for p1, p2 in cfg_edge)
    use_derefs = _index(ctx.use_of_var_derefs_origin)
    drop_derefs = _index(ctx.drop_of_var_derefs_origin)
    init_on_exit = set(var_maybe_partly_initialized_on_exit)

    # var_maybe_partly_initialized_on_entry(var, point2) :-
    #     var_maybe_partly_initialized_on_exit(var, point1), cfg_edge(point1, point2).
    init_on_entry = {
        (var, point2) for var, point1 in init_on_exit for point2 in successors.get(point1, ())
    }

    # var_live_on_entry(var, point1) :-
    #     var_live_on_entry(var, point2), cfg_edge(point1, point2), !var_defined_at(var, point1).
    def live_step(fact):
        var, point2 = fact
        return (
            (var, point1)
            for point1 in predecessors.get(point2, ())
            if (var, point1) not in var_defined_at
        )

    var_live_on_entry = _fixpoint(ctx.var_used_at, live_step)

    # var_drop_live_on_entry(var, source) :-
    #     var_drop_live_on_entry(var, target), cfg_edge(source, target),
    #     !var_defined_at(var, source), var_maybe_partly_initialized_on_exit(var, source).
    def drop_live_step(fact):
        return (
            candidate
            for candidate in live_step(fact)
            if candidate in init_on_exit
        )

    drop_seeds = (fact for fact in ctx.var_dropped_at if fact in init_on_entry)
    var_drop_live_on_entry = _fixpoint(drop_seeds, drop_live_step)

    origin_live_on_entry = set()
    for facts, derefs in (
        (var_drop_live_on_entry, drop_derefs),
        (var_live_on_entry, use_derefs),
    ):
        origin_live_on_entry.update(
            (origin, point) for var, point in facts for origin in derefs.get(var, ())
        )
    result = sorted(origin_live_on_entry)

    logger.info(
        "compute_live_origins() completed: %d tuples, %.6fs",
        len(result),
        time.perf_counter() - started,
    )

    if output.dump_enabled:
        _dump(output.var_drop_live_on_entry, var_drop_live_on_entry)
        _dump(output.var_live_on_entry, var_live_on_entry)

    return result


def make_universal_regions_live(origin_live_on_entry, cfg_node, universal_regions):
    """Append every universal region as live at every CFG node, in place."""
    logger.debug("make_universal_regions_live()")
    nodes = sorted(set(cfg_node))
    origin_live_on_entry.extend(
        (origin, point) for origin in universal_regions for point in nodes
    )