"""
aggregation/aggregator.py

Current-value aggregation of fuel level and generator load per group.

Grouping policy (first match wins)
----------------------------------
1. ``scope.district`` set   -> one group labelled with that district.
2. ``scope.region_id`` set  -> one group per row district ("Unknown" fallback).
3. otherwise (national)     -> one group per resolved region ("Unknown" fallback).

Formulas
--------
simple   = mean(values)                                   rounded to 1 dp
weighted = sum(value * capacity) / sum(capacity)          rounded to 1 dp
           over samples with capacity > 0; equals ``simple`` when the
           capacity sum is zero
display  = weighted if any positive capacity existed else simple

Output shape
------------
``[{"name": "Today", "<group>": fuel, "gen_<group>": load, ...}]`` or ``[]``
when nothing survives. The row is only emitted when it carries at least one
group key besides ``name``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from aggregation.catalog import Catalog
from aggregation.fields import FieldKind, extract_number
from aggregation.resolver import resolve_group_labels
from aggregation.scope import Scope
from aggregation.scope_filter import filter_rows
from synthetic.seeded import round_half_up

logger = logging.getLogger(__name__)

TODAY_LABEL = "Today"
LOAD_KEY_PREFIX = "gen_"


@dataclass(frozen=True)
class MetricSample:
    value: float
    capacity: float | None = None


@dataclass(frozen=True)
class GroupAverage:
    simple: float
    weighted: float
    used_weighted: bool
    capacity_sum: float

    @property
    def display(self) -> float:
        return self.weighted if self.used_weighted else self.simple


@dataclass
class _GroupBucket:
    fuel: list[MetricSample]
    load: list[MetricSample]


def compute_averages(samples: Sequence[MetricSample]) -> GroupAverage:
    """
    Simple and capacity-weighted mean of *samples*.

    An empty sequence yields zeros with ``used_weighted=False``.
    """

    if not samples:
        return GroupAverage(simple=0.0, weighted=0.0, used_weighted=False, capacity_sum=0.0)

    simple = round_half_up(sum(s.value for s in samples) / len(samples), 1)

    weighted_pairs = [(s.value, s.capacity) for s in samples if s.capacity is not None and s.capacity > 0]
    capacity_sum = sum(capacity for _, capacity in weighted_pairs)
    if capacity_sum <= 0:
        return GroupAverage(simple=simple, weighted=simple, used_weighted=False, capacity_sum=0.0)

    weighted_sum = sum(value * capacity for value, capacity in weighted_pairs)
    weighted = round_half_up(weighted_sum / capacity_sum, 1)
    return GroupAverage(simple=simple, weighted=weighted, used_weighted=True, capacity_sum=capacity_sum)


def group_key(row: Any, scope: Scope, catalog: Catalog) -> str:
    if scope.district:
        return scope.district
    labels = resolve_group_labels(row, catalog)
    if scope.region_id:
        return labels.district
    return labels.region_name


def aggregate(rows: Iterable[Any], scope: Scope, catalog: Catalog) -> list[dict[str, Any]]:
    """
    Aggregate already-filtered *rows* into the single "Today" output row.
    """

    buckets: dict[str, _GroupBucket] = {}
    for row in rows:
        key = group_key(row, scope, catalog)
        bucket = buckets.setdefault(key, _GroupBucket(fuel=[], load=[]))

        capacity = extract_number(row, FieldKind.GENERATOR_CAPACITY)
        fuel = extract_number(row, FieldKind.FUEL_PCT)
        load = extract_number(row, FieldKind.GEN_LOAD_PCT)
        if fuel is not None:
            bucket.fuel.append(MetricSample(value=fuel, capacity=capacity))
        if load is not None:
            bucket.load.append(MetricSample(value=load, capacity=capacity))

    output: dict[str, Any] = {"name": TODAY_LABEL}
    for key, bucket in buckets.items():
        if bucket.fuel:
            output[key] = compute_averages(bucket.fuel).display
        if bucket.load:
            output[f"{LOAD_KEY_PREFIX}{key}"] = compute_averages(bucket.load).display

    logger.debug("aggregate scope=%s groups=%d", scope.to_dict(), len(buckets))
    if len(output) <= 1:
        return []
    return [output]


def aggregate_current(rows: Iterable[Any], scope: Scope, catalog: Catalog) -> list[dict[str, Any]]:
    """
    Filter raw *rows* to *scope* and aggregate them.
    """

    return aggregate(filter_rows(rows, scope, catalog), scope, catalog)
