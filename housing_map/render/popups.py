"""Popup HTML for map markers."""

from __future__ import annotations

from html import escape
from typing import Iterable, Tuple

from ..records import VACATE, PointRecord


def _rows(pairs: Iterable[Tuple[str, object]]) -> str:
    return "".join(f"<b>{escape(label)}:</b> {escape(str(value or ''))}<br>" for label, value in pairs)


def vacate_popup(record: PointRecord) -> str:
    props = record.properties
    return _rows([
        ("Address", record.address),
        ("Borough", props.get("boro_short_name") or record.borough),
        ("Reason", props.get("primary_vacate_reason") or record.reason),
        ("Vacated Units", props.get("number_of_vacated_units")),
        ("Date", record.date),
    ])


def permit_popup(record: PointRecord) -> str:
    return _rows([
        ("Address", record.address),
        ("Borough", record.borough),
        ("Permit Type", record.permit_type),
        ("Job Type", record.job_type),
        ("Status", record.status),
        ("Issued", record.date),
    ])


def popup_for(record: PointRecord) -> str:
    if record.dataset == VACATE:
        return vacate_popup(record)
    return permit_popup(record)
