"""Borrow check results and the driver that computes them."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Set, Tuple, Union

from . import datafrog_opt, initialization, liveness, location_insensitive, naive
from .algorithm import Algorithm, compare_errors
from .context import Context
from .facts import AllFacts
from .initialization import InitializationContext
from .liveness import LivenessContext

logger = logging.getLogger(__name__)

Pair = Tuple[Hashable, Hashable]

# Location given to location-insensitive subset errors, where it has no meaning.
_NO_LOCATION = 0


def _closure(seeds: Iterable[Pair], successors: Dict[Hashable, Set[Hashable]]) -> List[Pair]:
    """Close `(key, value)` seeds under `(a, v) -> (b, v)` for each edge `a -> b`.

    Returns the sorted, distinct facts.
    """
    found = set(seeds)
    pending = list(found)
    while pending:
        key, value = pending.pop()
        for successor in successors.get(key, ()):
            derived = (successor, value)
            if derived not in found:
                found.add(derived)
                pending.append(derived)
    return sorted(found)


def _successors(pairs: Iterable[Pair]) -> Dict[Hashable, Set[Hashable]]:
    index: Dict[Hashable, Set[Hashable]] = defaultdict(set)
    for first, second in pairs:
        index[first].add(second)
    return index


def compute_known_contains(known_placeholder_subset, placeholder) -> List[Pair]:
    """The placeholder loans each placeholder origin is known to contain.

    known_contains(o1, l) :- placeholder(o1, l).
    known_contains(o2, l) :- known_contains(o1, l), known_placeholder_subset(o1, o2).
    """
    return _closure(placeholder, _successors(known_placeholder_subset))


def compute_known_placeholder_subset(known_placeholder_subset_base) -> List[Pair]:
    """The transitive closure of the known placeholder subsets."""
    base = list(known_placeholder_subset_base)
    supersets = _successors(base)
    found = set(base)
    pending = list(found)
    while pending:
        origin1, origin2 = pending.pop()
        for origin3 in supersets.get(origin2, ()):
            derived = (origin1, origin3)
            if derived not in found:
                found.add(derived)
                pending.append(derived)
    return sorted(found)


def _errors_by_point(errors: Iterable[Pair]) -> Dict[Hashable, List[Hashable]]:
    by_point: Dict[Hashable, List[Hashable]] = {}
    for loan, point in errors:
        by_point.setdefault(point, []).append(loan)
    return by_point


@dataclass
class Output:
    """Errors found by the analysis, and intermediate relations when dumping."""

    dump_enabled: bool = False

    errors: Dict[Hashable, List[Hashable]] = field(default_factory=dict)
    subset_errors: Dict[Hashable, Set[Pair]] = field(default_factory=dict)
    move_errors: Dict[Hashable, List[Hashable]] = field(default_factory=dict)

    # Debugging data, filled only when `dump_enabled` is set.
    loan_live_at: Dict[Hashable, List[Hashable]] = field(default_factory=dict)
    origin_contains_loan_at: Dict[Hashable, Dict[Hashable, Set[Hashable]]] = field(
        default_factory=dict
    )
    origin_contains_loan_anywhere: Dict[Hashable, Set[Hashable]] = field(default_factory=dict)
    origin_live_on_entry: Dict[Hashable, List[Hashable]] = field(default_factory=dict)
    loan_invalidated_at: Dict[Hashable, List[Hashable]] = field(default_factory=dict)
    subset: Dict[Hashable, Dict[Hashable, Set[Hashable]]] = field(default_factory=dict)
    subset_anywhere: Dict[Hashable, Set[Hashable]] = field(default_factory=dict)
    var_live_on_entry: Dict[Hashable, List[Hashable]] = field(default_factory=dict)
    var_drop_live_on_entry: Dict[Hashable, List[Hashable]] = field(default_factory=dict)
    path_maybe_initialized_on_exit: Dict[Hashable, List[Hashable]] = field(default_factory=dict)
    path_maybe_uninitialized_on_exit: Dict[Hashable, List[Hashable]] = field(
        default_factory=dict
    )
    known_contains: Dict[Hashable, Set[Hashable]] = field(default_factory=dict)
    var_maybe_partly_initialized_on_exit: Dict[Hashable, List[Hashable]] = field(
        default_factory=dict
    )

    @classmethod
    def compute(
        cls,
        all_facts: AllFacts,
        algorithm: Union[Algorithm, str] = Algorithm.NAIVE,
        dump_enabled: bool = False,
    ) -> "Output":
        """Run initialization, liveness and then the chosen borrow check variant.

        Raises RuntimeError when the `Compare` variant finds that the naive
        and optimized analyses disagree.
        """
        if isinstance(algorithm, str):
            algorithm = Algorithm.parse(algorithm)
        result = cls(dump_enabled=dump_enabled)

        cfg_edge = sorted(set(all_facts.cfg_edge))

        # 1) Initialization
        initialization_ctx = InitializationContext(
            child_path=list(all_facts.child_path),
            path_is_var=list(all_facts.path_is_var),
            path_assigned_at_base=list(all_facts.path_assigned_at_base),
            path_moved_at_base=list(all_facts.path_moved_at_base),
            path_accessed_at_base=list(all_facts.path_accessed_at_base),
        )
        var_maybe_partly_initialized_on_exit, move_errors = initialization.compute(
            initialization_ctx, cfg_edge, result
        )
        for path, location in move_errors:
            result.move_errors.setdefault(location, []).append(path)

        # 2) Liveness
        liveness_ctx = LivenessContext(
            var_used_at=list(all_facts.var_used_at),
            var_defined_at=list(all_facts.var_defined_at),
            var_dropped_at=list(all_facts.var_dropped_at),
            use_of_var_derefs_origin=list(all_facts.use_of_var_derefs_origin),
            drop_of_var_derefs_origin=list(all_facts.drop_of_var_derefs_origin),
        )
        origin_live_on_entry = liveness.compute_live_origins(
            liveness_ctx, cfg_edge, var_maybe_partly_initialized_on_exit, result
        )
        cfg_node = {point for edge in cfg_edge for point in edge}
        liveness.make_universal_regions_live(
            origin_live_on_entry, cfg_node, all_facts.universal_region
        )

        # 3) Borrow checking
        known_placeholder_subset_base = sorted(set(all_facts.known_placeholder_subset))
        ctx = Context(
            origin_live_on_entry=origin_live_on_entry,
            loan_invalidated_at=[(loan, point) for point, loan in all_facts.loan_invalidated_at],
            subset_base=all_facts.subset_base,
            loan_issued_at=all_facts.loan_issued_at,
            loan_killed_at=all_facts.loan_killed_at,
            known_contains=compute_known_contains(
                known_placeholder_subset_base, all_facts.placeholder
            ),
            placeholder_origin=all_facts.universal_region,
            placeholder_loan=[(loan, origin) for origin, loan in all_facts.placeholder],
            known_placeholder_subset=compute_known_placeholder_subset(
                known_placeholder_subset_base
            ),
            cfg_edge=cfg_edge,
        )

        if algorithm is Algorithm.LOCATION_INSENSITIVE:
            potential_errors, potential_subset_errors = location_insensitive.compute(
                ctx, result
            )
            errors = potential_errors
            subset_errors = [
                (origin1, origin2, _NO_LOCATION) for origin1, origin2 in potential_subset_errors
            ]
        elif algorithm is Algorithm.NAIVE:
            errors, subset_errors = naive.compute(ctx, result)
        elif algorithm is Algorithm.DATAFROG_OPT:
            errors, subset_errors = datafrog_opt.compute(ctx, result)
        elif algorithm is Algorithm.HYBRID:
            potential_errors, potential_subset_errors = location_insensitive.compute(
                ctx, result
            )
            if not potential_errors and not potential_subset_errors:
                errors, subset_errors = potential_errors, []
            else:
                ctx.potential_errors = frozenset(loan for loan, _point in potential_errors)
                ctx.potential_subset_errors = tuple(potential_subset_errors)
                errors, subset_errors = datafrog_opt.compute(ctx, result)
        else:
            naive_errors, naive_subset_errors = naive.compute(ctx, result)
            opt_errors, _ = datafrog_opt.compute(ctx, result)
            if compare_errors(_errors_by_point(naive_errors), _errors_by_point(opt_errors)):
                raise RuntimeError(
                    "The errors reported by the naive algorithm differ from "
                    "the errors reported by the optimized algorithm. "
                    "See the error log for details."
                )
            logger.debug("Naive and optimized algorithms reported the same errors.")
            errors, subset_errors = naive_errors, naive_subset_errors

        for loan, location in errors:
            result.errors.setdefault(location, []).append(loan)

        for origin1, origin2, location in subset_errors:
            result.subset_errors.setdefault(location, set()).add((origin1, origin2))

        if dump_enabled:
            for origin, location in ctx.origin_live_on_entry:
                result.origin_live_on_entry.setdefault(location, []).append(origin)
            for origin, loan in ctx.known_contains:
                result.known_contains.setdefault(origin, set()).add(loan)

        return result

    def _require_dump(self) -> None:
        if not self.dump_enabled:
            raise RuntimeError("debugging data was not recorded: dump is not enabled")

    def errors_at(self, location) -> List[Hashable]:
        """Loans with an illegal access at `location`."""
        return list(self.errors.get(location, ()))

    def loans_in_scope_at(self, location) -> List[Hashable]:
        """Loans live at `location` (recorded only when dumping)."""
        return list(self.loan_live_at.get(location, ()))

    def origin_loans_at(self, location) -> Dict[Hashable, Set[Hashable]]:
        """For each origin, the loans it contains on entry to `location`."""
        self._require_dump()
        return self.origin_contains_loan_at.get(location, {})

    def origins_live_at(self, location) -> List[Hashable]:
        """Origins live on entry to `location`."""
        self._require_dump()
        return list(self.origin_live_on_entry.get(location, ()))

    def subsets_at(self, location) -> Dict[Hashable, Set[Hashable]]:
        """For each origin, the origins it is a subset of at `location`."""
        self._require_dump()
        return self.subset.get(location, {})