"""
Ad-hoc correctness checker for the document rules engine.

* Replays every row in *tests/corpus.csv* through ``evaluate``.
* Prints accuracy, a 2×2 Allow/Deny confusion matrix, and any mismatches.

Read-only: no side-effects besides console output. Run from the repo root.
"""

from __future__ import annotations

from collections import Counter
from typing import Tuple

from docrules.evaluator import evaluate_request
from docrules.registry import build_registry
from tests.corpus import rows, to_request

registry = build_registry()

# Counters
matches = 0
conf: Counter[Tuple[str, str]] = Counter()
rows_seen: list[str] = []

for row in rows():
    got = str(evaluate_request(registry, to_request(row)))
    exp = row["expected_decision"]
    conf[(exp.split("(")[0], got.split("(")[0])] += 1
    if got != exp:
        rows_seen.append(f"line {row['line']:3d}: expected {exp:<28} – got {got}")
    else:
        matches += 1

total = matches + len(rows_seen)
acc = matches / total * 100 if total else 0
print(f"{matches} / {total} cases matched  ({acc:.1f}% accuracy)")

tp = conf[("Allow", "Allow")]
fn = conf[("Allow", "Deny")]
fp = conf[("Deny", "Allow")]
tn = conf[("Deny", "Deny")]
print("\nConfusion matrix (expected ↘ vs got →)")
print("            Allow    Deny")
print(f"Allow    |  {tp:5d}   {fn:5d}")
print(f"Deny     |  {fp:5d}   {tn:5d}\n")

if rows_seen:
    print("Mismatches:")
    print("\n".join(rows_seen))
