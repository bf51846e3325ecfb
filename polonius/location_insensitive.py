"""Location-insensitive borrow analysis: fast, with false positives only."""

from __future__ import annotations

import logging
import time

from .liveness import _fixpoint, _index

logger = logging.getLogger(__name__)


def compute(ctx, result):
    """Return `(potential_errors, potential_subset_errors)`.

    `potential_errors` holds sorted, distinct `(loan, point)` pairs and
    `potential_subset_errors` sorted, distinct `(origin1, origin2)` pairs.
    Subsets are taken to hold at every point, so the result over-approximates
    the errors of the location-sensitive variants.
    """
    started = time.perf_counter()

    # subset(origin1, origin2) :- subset_base(origin1, origin2, _).
    subset = {(origin1, origin2) for origin1, origin2, _point in ctx.subset_base}
    supersets = _index(subset)

    live_points = _index(ctx.origin_live_on_entry)
    invalidated_points = _index(ctx.loan_invalidated_at)
    placeholder_origins = set(ctx.placeholder_origin)
    placeholder_loan_origins = _index(ctx.placeholder_loan)
    known_contains = set(ctx.known_contains)

    # origin_contains_loan_on_entry(origin, loan) :- loan_issued_at(origin, loan, _).
    # origin_contains_loan_on_entry(origin, loan) :- placeholder_loan(origin, loan).
    seeds = [(origin, loan) for origin, loan, _point in ctx.loan_issued_at]
    seeds.extend((origin, loan) for loan, origin in ctx.placeholder_loan)

    # origin_contains_loan_on_entry(origin2, loan) :-
    #     origin_contains_loan_on_entry(origin1, loan), subset(origin1, origin2).
    def step(fact):
        origin1, loan = fact
        return ((origin2, loan) for origin2 in supersets.get(origin1, ()))

    origin_contains_loan = _fixpoint(seeds, step)

    # potential_errors(loan, point) :-
    #     origin_contains_loan_on_entry(origin, loan),
    #     origin_live_on_entry(origin, point),
    #     loan_invalidated_at(loan, point).
    potential_errors = {
        (loan, point)
        for origin, loan in origin_contains_loan
        for point in live_points.get(origin, set()) & invalidated_points.get(loan, set())
    }

    # potential_subset_errors(origin1, origin2) :-
    #     placeholder(origin1, loan1), placeholder(origin2, _),
    #     origin_contains_loan_on_entry(origin2, loan1),
    #     !known_contains(origin2, loan1), origin1 != origin2.
    potential_subset_errors = {
        (origin1, origin2)
        for origin2, loan1 in origin_contains_loan
        if origin2 in placeholder_origins and (origin2, loan1) not in known_contains
        for origin1 in placeholder_loan_origins.get(loan1, ())
        if origin1 != origin2
    }

    if result.dump_enabled:
        for target, facts in (
            (result.subset_anywhere, subset),
            (result.origin_contains_loan_anywhere, origin_contains_loan),
        ):
            for key, value in sorted(facts):
                target.setdefault(key, set()).add(value)

    errors = sorted(potential_errors)
    subset_errors = sorted(potential_subset_errors)

    logger.info(
        "analysis done: %d `potential_errors` tuples, %d `potential_subset_errors` tuples, %.6fs",
        len(errors),
        len(subset_errors),
        time.perf_counter() - started,
    )

    return errors, subset_errors