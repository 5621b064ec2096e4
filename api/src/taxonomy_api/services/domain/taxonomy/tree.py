#!/usr/bin/env python3
"""Tree types shared by both linkage modes, plus upward count propagation.

Nodes are created by the builders and registered in a node-by-id map (the
arena of one build). Each node owns its ``children`` list; the link back to
the parent is the ``parent_id`` string, never an object reference.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional


class HierarchyInputError(ValueError):
    """Raised when the caller violates the input contract (not for data-quality issues)."""


class BuildMode(str, Enum):
    """Linkage mode used to build a tree."""
    LABELED = "labeled"          # Ordered level-label columns per record
    REFERENCED = "referenced"    # Explicit parent id per entity


class WarningCode(str, Enum):
    """Non-fatal conditions reported by a build."""
    EMPTY_LABEL_CHAIN = "empty_label_chain"
    DANGLING_PARENT = "dangling_parent"
    DANGLING_ITEM_REFERENCE = "dangling_item_reference"
    DUPLICATE_ENTITY = "duplicate_entity"
    PARENT_CYCLE = "parent_cycle"
    DUPLICATE_HEADER = "duplicate_header"


@dataclass(frozen=True)
class BuildWarning:
    """Caller-visible warning. ``str()`` gives the message."""
    code: WarningCode
    message: str
    ref: Optional[str] = None    # Row number, entity id or item id concerned

    def __str__(self) -> str:
        return self.message


@dataclass
class LeafItem:
    """Terminal payload attached to exactly one node."""
    id: str
    foreign_key: Optional[str] = None
    payload: dict[str, Any] = field(default_factory=dict)
    weight: float = 0.0


@dataclass
class TreeNode:
    """Node of a built taxonomy."""
    id: str                                 # Path key (labeled) or source id (referenced)
    level: int                              # Depth, 0 for roots
    title: str                              # Display label, not normalized
    code: str = ""                          # Slug (labeled) or entity code (referenced)
    parent_id: Optional[str] = None
    children: list['TreeNode'] = field(default_factory=list)
    items: list[LeafItem] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)
    item_count: int = 0                     # Set by propagate_counts only
    aggregate_weight: float = 0.0           # Set by propagate_counts only


@dataclass
class BuildResult:
    """Output of one build."""
    mode: BuildMode
    roots: list[TreeNode] = field(default_factory=list)
    warnings: list[BuildWarning] = field(default_factory=list)
    nodes: dict[str, TreeNode] = field(default_factory=dict)
    unassigned: list[LeafItem] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(root.item_count for root in self.roots)

    def warning_messages(self) -> list[str]:
        return [str(w) for w in self.warnings]


def iter_nodes(roots: list[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node depth-first, parents before children, in sibling order."""
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def propagate_counts(roots: list[TreeNode]) -> None:
    """Compute item_count and aggregate_weight bottom-up in a single pass.

    Post-order with an explicit stack: every node is visited twice (enter,
    exit) and its totals are computed on exit from its children's already
    final totals.
    """
    stack: list[tuple[TreeNode, bool]] = [(root, False) for root in reversed(roots)]
    while stack:
        node, children_done = stack.pop()
        if not children_done:
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.children))
            continue

        node.item_count = len(node.items) + sum(child.item_count for child in node.children)
        node.aggregate_weight = (
            sum(item.weight for item in node.items)
            + sum(child.aggregate_weight for child in node.children)
        )


def find_count_violations(roots: list[TreeNode]) -> list[str]:
    """Return ids of nodes whose item_count breaks the aggregation invariant."""
    return [
        node.id
        for node in iter_nodes(roots)
        if node.item_count != len(node.items) + sum(child.item_count for child in node.children)
    ]


def _item_to_dict(item: LeafItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "foreign_key": item.foreign_key,
        "payload": dict(item.payload),
        "weight": item.weight,
    }


def _node_fields(node: TreeNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "level": node.level,
        "title": node.title,
        "code": node.code,
        "parent_id": node.parent_id,
        "item_count": node.item_count,
        "aggregate_weight": node.aggregate_weight,
        "attributes": dict(node.attributes),
        "items": [_item_to_dict(item) for item in node.items],
    }


def tree_to_dict(node: TreeNode) -> dict[str, Any]:
    """Serialize a node and its subtree to nested dictionaries.

    Built bottom-up from the reversed pre-order so depth is not bounded by
    the recursion limit.
    """
    built: dict[int, dict[str, Any]] = {}
    for current in reversed(list(iter_nodes([node]))):
        data = _node_fields(current)
        data["children"] = [built.pop(id(child)) for child in current.children]
        built[id(current)] = data
    return built[id(node)]


def flatten_tree_to_list(roots: list[TreeNode]) -> list[dict]:
    """Flatten tree structure to a flat list for API response.

    Args:
        roots: Root nodes of a built tree

    Returns:
        List of dictionaries, parents before children, children as ids
    """
    rows = []
    for node in iter_nodes(roots):
        row = _node_fields(node)
        row["children"] = [child.id for child in node.children]
        rows.append(row)
    return rows
