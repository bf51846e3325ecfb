# polonius

A borrow-checking analysis engine. You describe a function body as a set of
*facts*: control-flow edges, loans, origins, variable uses and definitions,
move paths and placeholder origins. The engine then computes three things:

- which loans are invalidated while they are still live,
- which subset relations between placeholder origins were never declared,
- which paths are accessed after they may have been moved.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Usage

Facts are plain tuples of atoms. An atom can be any hashable value that can
be ordered; integers work well.

```python
from polonius.facts import AllFacts
from polonius.algorithm import Algorithm
from polonius.output import Output

facts = AllFacts()
facts.cfg_edge.extend([(0, 1), (1, 2)])
facts.loan_issued_at.append((0, 0, 0))         # origin 0 holds loan 0 from point 0
facts.var_used_at.append((0, 2))               # variable 0 is used at point 2
facts.use_of_var_derefs_origin.append((0, 0))  # using variable 0 touches origin 0
facts.loan_invalidated_at.append((1, 0))       # loan 0 is invalidated at point 1

output = Output.compute(facts, Algorithm.NAIVE, dump_enabled=True)
print(output.errors_at(1))  # [0]
```

`polonius.facts.AllFacts` is a dataclass with one list per kind of fact.
Every list starts out empty. The comment on each field gives the order of the
tuple's elements.

### Algorithms

`polonius.algorithm.Algorithm` lists the available analyses.
`Algorithm.variants()` returns their names, and `Algorithm.parse(text)`
accepts a name in any case. It raises `ValueError` for an unknown name.
`Output.compute` also accepts the name as a string.

- `Naive`: simple rules, slower to run.
- `DatafrogOpt`: an optimized form of the same rules.
- `LocationInsensitive`: fast but imprecise. It may report false positives
  but never misses an error. Its subset errors are all reported at
  location `0`, because the location has no meaning in this analysis.
- `Compare`: runs `Naive` and `DatafrogOpt`, and raises `RuntimeError` if
  they report different loan errors. Each difference is logged.
  Otherwise it returns the `Naive` results.
- `Hybrid`: runs `LocationInsensitive` first. It goes on to `DatafrogOpt`
  only when that first pass finds potential errors.

`polonius.algorithm.compare_errors(naive, opt)` compares two maps of the
form `{point: [loan, ...]}`. It returns `True` when they differ.

### Results

`Output` holds `errors`, `subset_errors` and `move_errors`, each keyed by
point. `errors_at(point)` returns the loans with an illegal access at that
point.

With `dump_enabled=True`, the output also records intermediate relations for
inspection. These include live origins and variables, subsets, the loans
contained in origins, live loans, and the initialization state of paths and
variables. They can be read through the following methods:

- `origins_live_at(point)`
- `subsets_at(point)`
- `origin_loans_at(point)`
- `loans_in_scope_at(point)`

The first three raise `RuntimeError` when dumping was not enabled.

### Lower-level pieces

Each step of the analysis can also be called on its own:

- `polonius.initialization.compute` finds the variables that may be partly
  initialized, and the move errors.
- `polonius.liveness.compute_live_origins` and
  `polonius.liveness.make_universal_regions_live` find the live origins.
- `polonius.naive.compute`, `polonius.datafrog_opt.compute` and
  `polonius.location_insensitive.compute` run the borrow check over a
  `polonius.context.Context`.
- `polonius.output.compute_known_contains` and
  `polonius.output.compute_known_placeholder_subset` close the declared
  placeholder subsets transitively.

## What it does not do

This is a library only. It has no command-line program, it does not read
fact files from disk, and it does not produce facts from source code. The
caller builds the `AllFacts` value and reads the `Output`.