"""
Counting helpers behind the stats panel.

Stats are always recomputed from the visible record set in one pass; nothing
here is updated incrementally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .normalizers.colors import classify_vacate_reason

UNKNOWN = "UNKNOWN"
OTHER = "OTHER"


@dataclass(frozen=True)
class CategoryField:
    name: str
    getter: Callable[[Any], Optional[str]]
    fallback: str


def _value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _attr(name: str) -> Callable[[Any], Optional[str]]:
    return lambda record: _value(record, name)


def _reason_class(record: Any) -> Optional[str]:
    reason = _value(record, "reason")
    return classify_vacate_reason(reason) if reason else None


CATEGORY_FIELDS: Tuple[CategoryField, ...] = (
    CategoryField("borough", _attr("borough"), UNKNOWN),
    CategoryField("permit_type", _attr("permit_type"), OTHER),
    CategoryField("job_type", _attr("job_type"), OTHER),
    CategoryField("reason", _attr("reason"), OTHER),
    CategoryField("reason_class", _reason_class, OTHER),
)


@dataclass
class Stats:
    total: int = 0
    active: int = 0
    by_category: Dict[str, Dict[str, int]] = field(default_factory=dict)

    @property
    def by_borough(self) -> Dict[str, int]:
        return self.by_category.get("borough", {})

    @property
    def by_permit_type(self) -> Dict[str, int]:
        return self.by_category.get("permit_type", {})

    @property
    def by_job_type(self) -> Dict[str, int]:
        return self.by_category.get("job_type", {})

    @property
    def by_reason(self) -> Dict[str, int]:
        return self.by_category.get("reason", {})

    def count(self, category: str, key: str) -> int:
        return self.by_category.get(category, {}).get(key, 0)

    def as_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "active": self.active, "by_category": self.by_category}


def aggregate(records: Iterable[Any], fields: Sequence[CategoryField] = CATEGORY_FIELDS) -> Stats:
    """
    Count records by category in a single pass.

    Missing or blank category values land in the field's fallback bucket
    (UNKNOWN for borough, OTHER elsewhere), so every record counts toward
    `total` exactly once.
    """
    stats = Stats(by_category={f.name: {} for f in fields})
    for record in records:
        stats.total += 1
        if (_value(record, "status") or "").upper() == "ISSUED":
            stats.active += 1
        for f in fields:
            key = f.getter(record) or f.fallback
            bucket = stats.by_category[f.name]
            bucket[key] = bucket.get(key, 0) + 1
    return stats


def top_categories(counts: Dict[str, int], n: Optional[int] = None) -> List[Tuple[str, int]]:
    """
    Return (key, count) pairs by descending count.

    Ties keep first-seen order: `sorted` is stable and dicts preserve
    insertion order, so the key counted first stays ahead.
    """
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked if n is None else ranked[:n]
