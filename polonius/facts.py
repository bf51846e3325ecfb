"""Input facts for the borrow analysis.

Atoms (origins, loans, points, variables and paths) are any hashable,
totally ordered values, in practice small integers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, List, Tuple

Origin = Hashable
Loan = Hashable
Point = Hashable
Variable = Hashable
Path = Hashable


@dataclass
class AllFacts:
    """The facts that form the basis of the borrow analysis.

    Each field is a list of tuples, one tuple per fact.
    """

    # (origin, loan, point): `loan` was issued at `point`, creating a reference with `origin`.
    loan_issued_at: List[Tuple[Origin, Loan, Point]] = field(default_factory=list)
    # origin: a free region within the function body.
    universal_region: List[Origin] = field(default_factory=list)
    # (point1, point2): an edge in the control flow graph.
    cfg_edge: List[Tuple[Point, Point]] = field(default_factory=list)
    # (loan, point): some prefix of the borrowed path is assigned at `point`.
    loan_killed_at: List[Tuple[Loan, Point]] = field(default_factory=list)
    # (origin1, origin2, point): origin1 <= origin2 is required at `point`.
    subset_base: List[Tuple[Origin, Origin, Point]] = field(default_factory=list)
    # (point, loan): `loan` is invalidated by an action at `point`.
    loan_invalidated_at: List[Tuple[Point, Loan]] = field(default_factory=list)
    # (var, point): `var` is used for anything but a drop at `point`.
    var_used_at: List[Tuple[Variable, Point]] = field(default_factory=list)
    # (var, point): `var` is overwritten at `point`.
    var_defined_at: List[Tuple[Variable, Point]] = field(default_factory=list)
    # (var, point): `var` is used in a drop at `point`.
    var_dropped_at: List[Tuple[Variable, Point]] = field(default_factory=list)
    # (var, origin): references with `origin` may be dereferenced when `var` is used.
    use_of_var_derefs_origin: List[Tuple[Variable, Origin]] = field(default_factory=list)
    # (var, origin): the type of `var` includes `origin` and uses it when dropped.
    drop_of_var_derefs_origin: List[Tuple[Variable, Origin]] = field(default_factory=list)
    # (child, parent): `child` is a direct child path of `parent`.
    child_path: List[Tuple[Path, Path]] = field(default_factory=list)
    # (path, var): the root `path` starts in variable `var`.
    path_is_var: List[Tuple[Path, Variable]] = field(default_factory=list)
    # (path, point): `path` was initialized at `point`.
    path_assigned_at_base: List[Tuple[Path, Point]] = field(default_factory=list)
    # (path, point): `path` was moved at `point`.
    path_moved_at_base: List[Tuple[Path, Point]] = field(default_factory=list)
    # (path, point): `path` was accessed at `point`.
    path_accessed_at_base: List[Tuple[Path, Point]] = field(default_factory=list)
    # (origin1, origin2): declared or implied `'origin1: 'origin2` relations.
    known_placeholder_subset: List[Tuple[Origin, Origin]] = field(default_factory=list)
    # (origin, loan): a placeholder origin and its placeholder loan.
    placeholder: List[Tuple[Origin, Loan]] = field(default_factory=list)