#!/usr/bin/env python3
"""Ecosystem view: organizations grouped under internal poles and external categories."""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .referenced import EntityRecord, build_referenced_tree
from .tree import BuildResult, HierarchyInputError, LeafItem


@dataclass(frozen=True)
class EcosystemSummary:
    internal_count: int
    external_count: int
    unassigned_count: int

    @property
    def total_count(self) -> int:
        return self.internal_count + self.external_count + self.unassigned_count


@dataclass
class EcosystemBuild:
    internal: BuildResult
    external: BuildResult
    summary: EcosystemSummary


def _weight(organization: Mapping[str, Any], weight_field: str, position: int) -> float:
    raw = organization.get(weight_field)
    if raw is None or raw == "":
        return 0.0
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise HierarchyInputError(
            f"organization at position {position} has a non-numeric {weight_field}: {raw!r}"
        ) from e


def summarize_ecosystem(internal: BuildResult, external: BuildResult) -> EcosystemSummary:
    """Totals over both trees. An organization unassigned on both sides counts once."""
    unassigned_ids = {item.id for item in internal.unassigned} & {item.id for item in external.unassigned}
    return EcosystemSummary(
        internal_count=internal.item_count,
        external_count=external.item_count,
        unassigned_count=len(unassigned_ids),
    )


def build_ecosystem(
    poles: Sequence[EntityRecord],
    categories: Sequence[EntityRecord],
    organizations: Sequence[Mapping[str, Any]],
    weight_field: str = "employee_count",
) -> EcosystemBuild:
    """Build the pole and category trees and attach organizations to both.

    Each organization is a mapping with ``id`` and optional ``pole_id`` /
    ``category_id``; ``weight_field`` feeds the aggregate weight.
    """
    pole_items: list[LeafItem] = []
    category_items: list[LeafItem] = []
    for position, organization in enumerate(organizations):
        if not organization.get("id"):
            raise HierarchyInputError(f"organization at position {position} has no id")
        weight = _weight(organization, weight_field, position)
        pole_items.append(LeafItem(
            id=str(organization["id"]),
            foreign_key=organization.get("pole_id") or None,
            payload=dict(organization),
            weight=weight,
        ))
        category_items.append(LeafItem(
            id=str(organization["id"]),
            foreign_key=organization.get("category_id") or None,
            payload=dict(organization),
            weight=weight,
        ))

    internal = build_referenced_tree(list(poles), pole_items)
    external = build_referenced_tree(list(categories), category_items)
    return EcosystemBuild(
        internal=internal,
        external=external,
        summary=summarize_ecosystem(internal, external),
    )
