#!/usr/bin/env python3
"""Referenced linkage: build a forest from entities carrying a parent id.

Used for business poles and stakeholder categories fetched as flat lists,
with organizations attached as leaf items through a foreign key. References
that leave the supplied batch are reported, never followed: an item pointing
outside the caller's scope must not show up in the tree.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from .tree import (
    BuildMode,
    BuildResult,
    BuildWarning,
    HierarchyInputError,
    LeafItem,
    TreeNode,
    WarningCode,
    iter_nodes,
    propagate_counts,
)

logger = logging.getLogger(__name__)

# Walk states for cycle detection
_UNSEEN, _ON_PATH, _DONE = 0, 1, 2


@dataclass
class EntityRecord:
    """Flat entity as fetched from the portal API."""
    id: str
    title: str
    parent_id: Optional[str] = None
    code: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)


def _warn(result: BuildResult, code: WarningCode, message: str, ref: str) -> None:
    logger.warning(message, extra={"build_mode": result.mode.value})
    result.warnings.append(BuildWarning(code=code, message=message, ref=ref))


def _resolve_parents(entities: list[EntityRecord], result: BuildResult) -> dict[str, Optional[str]]:
    """Effective parent of every node: dangling parents and cycle entry points become None."""
    parents: dict[str, Optional[str]] = {}
    for entity in entities:
        parent_id = entity.parent_id or None
        if parent_id is not None and parent_id not in result.nodes:
            _warn(
                result,
                WarningCode.DANGLING_PARENT,
                f"Parent {parent_id} not found for {entity.title!r} ({entity.id}), promoted to root",
                entity.id,
            )
            parent_id = None
        parents[entity.id] = parent_id

    state = dict.fromkeys(parents, _UNSEEN)
    for start in parents:
        path = []
        current = start
        while current is not None and state[current] == _UNSEEN:
            state[current] = _ON_PATH
            path.append(current)
            current = parents[current]

        if current is not None and state[current] == _ON_PATH:
            # The walk came back onto its own path: current closes the cycle
            _warn(
                result,
                WarningCode.PARENT_CYCLE,
                f"Parent chain of {result.nodes[current].title!r} ({current}) loops back on itself, "
                f"promoted to root",
                current,
            )
            parents[current] = None

        for node_id in path:
            state[node_id] = _DONE

    return parents


def build_referenced_tree(
    entities: Sequence[EntityRecord],
    items: Sequence[LeafItem] = (),
) -> BuildResult:
    """Build a forest from entities with parent ids and attach leaf items.

    Args:
        entities: Flat entity list; order defines root and sibling order
        items: Leaf items whose foreign_key names an entity id

    Returns:
        BuildResult with propagated counts; unknown references are dropped
        or promoted and reported in ``warnings``
    """
    if not isinstance(entities, (list, tuple)):
        raise HierarchyInputError(f"entities must be a list, got {type(entities).__name__}")
    if not isinstance(items, (list, tuple)):
        raise HierarchyInputError(f"items must be a list, got {type(items).__name__}")

    result = BuildResult(mode=BuildMode.REFERENCED)

    # 1. One node per distinct entity id
    kept: list[EntityRecord] = []
    for position, entity in enumerate(entities):
        if not isinstance(entity, EntityRecord) or not entity.id:
            raise HierarchyInputError(f"entity at position {position} has no id")
        if entity.id in result.nodes:
            _warn(
                result,
                WarningCode.DUPLICATE_ENTITY,
                f"Entity id {entity.id} appears more than once, keeping the first occurrence",
                entity.id,
            )
            continue
        result.nodes[entity.id] = TreeNode(
            id=entity.id,
            level=0,
            title=entity.title,
            code=entity.code,
            attributes=dict(entity.attributes),
        )
        kept.append(entity)

    # 2. Leaf items
    for item in items:
        if not item.foreign_key:
            result.unassigned.append(item)
            continue
        node = result.nodes.get(item.foreign_key)
        if node is None:
            _warn(
                result,
                WarningCode.DANGLING_ITEM_REFERENCE,
                f"Item {item.id} references unknown entity {item.foreign_key} and was dropped",
                item.id,
            )
            continue
        node.items.append(item)

    # 3-4. Parent links
    parents = _resolve_parents(kept, result)
    for entity in kept:
        node = result.nodes[entity.id]
        parent_id = parents[entity.id]
        if parent_id is None:
            result.roots.append(node)
        else:
            node.parent_id = parent_id
            result.nodes[parent_id].children.append(node)

    # Depth is only known once every link is in place
    for root in result.roots:
        root.level = 0
    for node in iter_nodes(result.roots):
        for child in node.children:
            child.level = node.level + 1

    propagate_counts(result.roots)
    logger.info(
        f"Referenced build: {len(kept)} entities, {len(items)} items, "
        f"{len(result.roots)} roots, {len(result.unassigned)} unassigned, "
        f"{len(result.warnings)} warnings",
        extra={"build_mode": result.mode.value},
    )
    return result
