"""The optimized, location-sensitive borrow analysis.

Subset relations are not closed at every point. The closure is only
computed for origins that die along a CFG edge, to carry their loans and
subsets over to the origins that are still live.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from typing import Callable, Dict, Hashable, Iterable, Set, Tuple, TypeVar

logger = logging.getLogger(__name__)

Fact = TypeVar("Fact")
Triple = Tuple[Hashable, Hashable, Hashable]
Quad = Tuple[Hashable, Hashable, Hashable, Hashable]


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


def _index(pairs: Iterable[Tuple[Hashable, Hashable]]) -> Dict[Hashable, Set[Hashable]]:
    index: Dict[Hashable, Set[Hashable]] = defaultdict(set)
    for key, value in pairs:
        index[key].add(value)
    return index


def _grow(target: set, new_facts: Iterable) -> bool:
    """Add `new_facts` to `target`; return True when it grew."""
    before = len(target)
    target.update(new_facts)
    return len(target) != before


def compute(ctx, result):
    """Return `(errors, subset_errors)`.

    `errors` holds sorted, distinct `(loan, point)` pairs and `subset_errors`
    sorted, distinct `(origin1, origin2, point)` triples. When
    `result.dump_enabled` is set, subsets, loans in origins and live loans
    are recorded in `result`.
    """
    started = time.perf_counter()

    successors = _index(ctx.cfg_edge)
    live = set(ctx.origin_live_on_entry)
    killed = set(ctx.loan_killed_at)
    invalidated = set(ctx.loan_invalidated_at)
    placeholder_origins = set(ctx.placeholder_origin)
    known_placeholder_subset = set(ctx.known_placeholder_subset)

    # subset(o1, o2, p) :- subset_base(o1, o2, p).  Symmetries are never kept.
    subset: Set[Triple] = {
        (origin1, origin2, point)
        for origin1, origin2, point in ctx.subset_base
        if origin1 != origin2
    }
    # origin_contains_loan_on_entry(o, l, p) :- loan_issued_at(o, l, p).
    contains: Set[Triple] = {tuple(fact) for fact in ctx.loan_issued_at}
    # dead_borrow_region_can_reach_root((o, p), l) :-
    #     loan_issued_at(o, l, p), !origin_live_on_entry(o, p).
    # dead_borrow_region_can_reach_dead((o, p), l) :- dead_borrow_region_can_reach_root(...).
    dead_reach_dead: Set[Triple] = {
        (origin, point, loan)
        for origin, loan, point in ctx.loan_issued_at
        if (origin, point) not in live
    }

    def supersets_of(facts: Set[Triple]) -> Dict[Hashable, Set[Hashable]]:
        return _index(((origin1, point), origin2) for origin1, origin2, point in facts)

    def dead_reach_dead_1(supersets) -> Set[Triple]:
        # dead_borrow_region_can_reach_dead_1((o2, p), l) :-
        #     dead_borrow_region_can_reach_dead((o1, p), l), subset(o1, o2, p).
        return {
            (origin2, point, loan)
            for origin1, point, loan in dead_reach_dead
            for origin2 in supersets.get((origin1, point), ())
        }

    changed = True
    while changed:
        supersets = supersets_of(subset)

        # live_to_dying_regions(o1, o2, p1, p2) :-
        #     subset(o1, o2, p1), cfg_edge(p1, p2),
        #     origin_live_on_entry(o1, p2), !origin_live_on_entry(o2, p2).
        live_to_dying: Set[Quad] = {
            (origin1, origin2, point1, point2)
            for origin1, origin2, point1 in subset
            for point2 in successors.get(point1, ())
            if (origin1, point2) in live and (origin2, point2) not in live
        }

        # dying_region_requires((o, p1, p2), l) :-
        #     origin_contains_loan_on_entry(o, l, p1), !loan_killed_at(l, p1),
        #     cfg_edge(p1, p2), !origin_live_on_entry(o, p2).
        dying_requires: Set[Quad] = {
            (origin, point1, point2, loan)
            for origin, loan, point1 in contains
            if (loan, point1) not in killed
            for point2 in successors.get(point1, ())
            if (origin, point2) not in live
        }

        # dying_can_reach_origins(o2, p1, p2) :- live_to_dying_regions(_, o2, p1, p2).
        # dying_can_reach_origins(o, p1, p2) :- dying_region_requires(o, p1, p2, _).
        dying_origins = {(o2, p1, p2) for _o1, o2, p1, p2 in live_to_dying}
        dying_origins.update((o, p1, p2) for o, p1, p2, _loan in dying_requires)

        # dying_can_reach(o1, o2, p1, p2) :-
        #     dying_can_reach_origins(o1, p1, p2), subset(o1, o2, p1).
        # dying_can_reach(o1, o3, p1, p2) :-
        #     dying_can_reach(o1, o2, p1, p2), !origin_live_on_entry(o2, p2),
        #     subset(o2, o3, p1).
        def reach_step(fact: Quad):
            origin1, origin2, point1, point2 = fact
            if (origin2, point2) in live:
                return ()
            return (
                (origin1, origin3, point1, point2)
                for origin3 in supersets.get((origin2, point1), ())
            )

        dying_can_reach = _fixpoint(
            (
                (origin1, origin2, point1, point2)
                for origin1, point1, point2 in dying_origins
                for origin2 in supersets.get((origin1, point1), ())
            ),
            reach_step,
        )

        # dying_can_reach_live(o1, o2, p1, p2) :-
        #     dying_can_reach(o1, o2, p1, p2), origin_live_on_entry(o2, p2).
        reach_live = _index(
            ((origin1, point1, point2), origin2)
            for origin1, origin2, point1, point2 in dying_can_reach
            if (origin2, point2) in live
        )

        # subset(o1, o2, p2) :-
        #     subset(o1, o2, p1), cfg_edge(p1, p2),
        #     origin_live_on_entry(o1, p2), origin_live_on_entry(o2, p2).
        new_subset = {
            (origin1, origin2, point2)
            for origin1, origin2, point1 in subset
            for point2 in successors.get(point1, ())
            if (origin1, point2) in live and (origin2, point2) in live
        }
        # subset(o1, o3, p2) :-
        #     live_to_dying_regions(o1, o2, p1, p2),
        #     dying_can_reach_live(o2, o3, p1, p2).
        new_subset.update(
            (origin1, origin3, point2)
            for origin1, origin2, point1, point2 in live_to_dying
            for origin3 in reach_live.get((origin2, point1, point2), ())
        )
        new_subset = {fact for fact in new_subset if fact[0] != fact[1]}

        # origin_contains_loan_on_entry(o2, l, p2) :-
        #     dying_region_requires(o1, l, p1, p2),
        #     dying_can_reach_live(o1, o2, p1, p2).
        new_contains = {
            (origin2, loan, point2)
            for origin1, point1, point2, loan in dying_requires
            for origin2 in reach_live.get((origin1, point1, point2), ())
        }
        # origin_contains_loan_on_entry(o, l, p2) :-
        #     origin_contains_loan_on_entry(o, l, p1), !loan_killed_at(l, p1),
        #     cfg_edge(p1, p2), origin_live_on_entry(o, p2).
        new_contains.update(
            (origin, loan, point2)
            for origin, loan, point1 in contains
            if (loan, point1) not in killed
            for point2 in successors.get(point1, ())
            if (origin, point2) in live
        )

        # dead_borrow_region_can_reach_dead((o2, p), l) :-
        #     dead_borrow_region_can_reach_dead_1((o2, p), l), !origin_live_on_entry(o2, p).
        new_dead = {
            (origin2, point, loan)
            for origin2, point, loan in dead_reach_dead_1(supersets)
            if (origin2, point) not in live
        }

        grew_subset = _grow(subset, new_subset)
        grew_contains = _grow(contains, new_contains)
        grew_dead = _grow(dead_reach_dead, new_dead)
        changed = grew_subset or grew_contains or grew_dead

    supersets = supersets_of(subset)

    # loan_live_at(l, p) :-
    #     origin_contains_loan_on_entry(o, l, p), origin_live_on_entry(o, p).
    loan_live_at = {
        (loan, point) for origin, loan, point in contains if (origin, point) in live
    }
    # loan_live_at(l, p) :-
    #     dead_borrow_region_can_reach_dead_1((o2, p), l), origin_live_on_entry(o2, p).
    loan_live_at.update(
        (loan, point)
        for origin2, point, loan in dead_reach_dead_1(supersets)
        if (origin2, point) in live
    )

    # errors(l, p) :- loan_invalidated_at(l, p), loan_live_at(l, p).
    errors = sorted(loan_live_at & invalidated)

    # subset_placeholder(o1, o2, p) :- subset(o1, o2, p), placeholder_origin(o1).
    # subset_placeholder(o1, o3, p) :- subset_placeholder(o1, o2, p), subset(o2, o3, p).
    def placeholder_step(fact: Triple):
        origin1, origin2, point = fact
        return (
            (origin1, origin3, point)
            for origin3 in supersets.get((origin2, point), ())
            if origin3 != origin1
        )

    subset_placeholder = _fixpoint(
        (fact for fact in subset if fact[0] in placeholder_origins), placeholder_step
    )

    # subset_error(o1, o2, p) :-
    #     subset_placeholder(o1, o2, p), placeholder_origin(o2),
    #     !known_placeholder_subset(o1, o2).
    subset_errors = sorted(
        (origin1, origin2, point)
        for origin1, origin2, point in subset_placeholder
        if origin2 in placeholder_origins
        and (origin1, origin2) not in known_placeholder_subset
        and origin1 != origin2
    )

    if result.dump_enabled:
        for origin1, origin2, location in sorted(subset):
            result.subset.setdefault(location, {}).setdefault(origin1, set()).add(origin2)
        for origin, loan, location in sorted(contains):
            result.origin_contains_loan_at.setdefault(location, {}).setdefault(
                origin, set()
            ).add(loan)
        for loan, location in sorted(loan_live_at):
            result.loan_live_at.setdefault(location, []).append(loan)

    logger.info(
        "analysis done: %d `errors` tuples, %d `subset_errors` tuples, %.6fs",
        len(errors),
        len(subset_errors),
        time.perf_counter() - started,
    )

    return errors, subset_errors