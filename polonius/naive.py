"""The naive, location-sensitive borrow analysis."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from typing import Dict, Hashable, List, Set, Tuple

from .liveness import _fixpoint, _index

logger = logging.getLogger(__name__)

Triple = Tuple[Hashable, Hashable, Hashable]


def _compute_subset(ctx, successors, live) -> Set[Triple]:
    """The subset relation, closed at each point and carried along the CFG.

    Symmetric facts `origin <= origin` are never kept.
    """
    found: Set[Triple] = set()
    by_first: Dict[Tuple[Hashable, Hashable], Set[Hashable]] = defaultdict(set)
    by_second: Dict[Tuple[Hashable, Hashable], Set[Hashable]] = defaultdict(set)
    pending: List[Triple] = []

    def add(fact: Triple) -> None:
        origin1, origin2, point = fact
        if origin1 == origin2 or fact in found:
            return
        found.add(fact)
        by_first[(origin1, point)].add(origin2)
        by_second[(origin2, point)].add(origin1)
        pending.append(fact)

    # Rule 1: subset(o1, o2, p) :- subset_base(o1, o2, p).
    for fact in ctx.subset_base:
        add(tuple(fact))

    while pending:
        origin1, origin2, point = pending.pop()

        # Rule 2: subset(o1, o3, p) :- subset(o1, o2, p), subset(o2, o3, p).
        for origin3 in list(by_first.get((origin2, point), ())):
            add((origin1, origin3, point))
        for origin0 in list(by_second.get((origin1, point), ())):
            add((origin0, origin2, point))

        # Rule 3: subset(o1, o2, p2) :-
        #     subset(o1, o2, p1), cfg_edge(p1, p2),
        #     origin_live_on_entry(o1, p2), origin_live_on_entry(o2, p2).
        for point2 in successors.get(point, ()):
            if (origin1, point2) in live and (origin2, point2) in live:
                add((origin1, origin2, point2))

    return found


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

    subset = _compute_subset(ctx, successors, live)
    supersets = _index(((origin1, point), origin2) for origin1, origin2, point in subset)

    # Rule 4: origin_contains_loan_on_entry(o, l, p) :- loan_issued_at(o, l, p).
    def contains_step(fact):
        origin, loan, point = fact
        # Rule 5: origin_contains_loan_on_entry(o2, l, p) :-
        #     origin_contains_loan_on_entry(o1, l, p), subset(o1, o2, p).
        for origin2 in supersets.get((origin, point), ()):
            yield (origin2, loan, point)
        # Rule 6: origin_contains_loan_on_entry(o, l, p2) :-
        #     origin_contains_loan_on_entry(o, l, p1), !loan_killed_at(l, p1),
        #     cfg_edge(p1, p2), origin_live_on_entry(o, p2).
        if (loan, point) not in killed:
            for point2 in successors.get(point, ()):
                if (origin, point2) in live:
                    yield (origin, loan, point2)

    origin_contains_loan = _fixpoint(
        (tuple(fact) for fact in ctx.loan_issued_at), contains_step
    )

    # Rule 7: loan_live_at(l, p) :-
    #     origin_contains_loan_on_entry(o, l, p), origin_live_on_entry(o, p).
    loan_live_at = {
        (loan, point)
        for origin, loan, point in origin_contains_loan
        if (origin, point) in live
    }

    # Rule 8: errors(l, p) :- loan_invalidated_at(l, p), loan_live_at(l, p).
    errors = sorted(loan_live_at & invalidated)

    # Rule 9: subset_error(o1, o2, p) :-
    #     subset(o1, o2, p), placeholder_origin(o1), placeholder_origin(o2),
    #     !known_placeholder_subset(o1, o2).
    subset_errors = sorted(
        (origin1, origin2, point)
        for origin1, origin2, point in subset
        if origin1 in placeholder_origins
        and origin2 in placeholder_origins
        and (origin1, origin2) not in known_placeholder_subset
        and origin1 != origin2
    )

    if result.dump_enabled:
        for target, facts in (
            (result.subset, subset),
            (result.origin_contains_loan_at, origin_contains_loan),
        ):
            for key, value, location in sorted(facts):
                target.setdefault(location, {}).setdefault(key, set()).add(value)
        for loan, location in sorted(loan_live_at):
            result.loan_live_at.setdefault(location, []).append(loan)

    logger.info(
        "analysis done: %d `errors` tuples, %d `subset_errors` tuples, %.6fs",
        len(errors),
        len(subset_errors),
        time.perf_counter() - started,
    )

    return errors, subset_errors