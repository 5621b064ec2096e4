#!/usr/bin/env python3
"""Presentation state kept beside a built tree.

Expand/collapse flags are stored by node id so that a built tree is never
mutated by the UI. Search filtering works on copies for the same reason.
"""

from dataclasses import dataclass, field

from .tree import BuildResult, TreeNode, iter_nodes, propagate_counts


@dataclass
class ViewState:
    """Expanded node ids of one rendered tree."""
    expanded: set[str] = field(default_factory=set)

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self.expanded

    def expand(self, node_id: str) -> None:
        self.expanded.add(node_id)

    def collapse(self, node_id: str) -> None:
        self.expanded.discard(node_id)

    def toggle(self, node_id: str) -> bool:
        """Flip a node and return its new state."""
        if node_id in self.expanded:
            self.expanded.remove(node_id)
            return False
        self.expanded.add(node_id)
        return True

    def expand_all(self, result: BuildResult) -> None:
        """Open every node that has children."""
        self.expanded.update(node.id for node in iter_nodes(result.roots) if node.children)

    def collapse_all(self) -> None:
        self.expanded.clear()


def initial_view_state(result: BuildResult, expand_roots: bool = True) -> ViewState:
    """View state shown right after a build: roots open, everything else closed."""
    if not expand_roots:
        return ViewState()
    return ViewState(expanded={root.id for root in result.roots})


@dataclass
class FilterResult:
    roots: list[TreeNode]
    expanded_ids: set[str] = field(default_factory=set)


def _matches(node: TreeNode, needle: str) -> bool:
    description = node.attributes.get("description") or ""
    return any(
        needle in str(text).casefold()
        for text in (node.title, node.code, description)
        if text
    )


def _copy_node(node: TreeNode, children: list[TreeNode]) -> TreeNode:
    return TreeNode(
        id=node.id,
        level=node.level,
        title=node.title,
        code=node.code,
        parent_id=node.parent_id,
        children=children,
        items=list(node.items),
        attributes=dict(node.attributes),
    )


def filter_tree(roots: list[TreeNode], term: str) -> FilterResult:
    """Keep nodes matching ``term`` and the ancestors leading to them.

    Matching is a case-insensitive substring test on title, code and the
    ``description`` attribute. Kept nodes with kept children are returned
    in ``expanded_ids`` so the matches are visible. Counts of the copy are
    recomputed for the pruned shape.
    """
    needle = (term or "").strip().casefold()
    if not needle:
        return FilterResult(roots=roots)

    expanded: set[str] = set()
    kept_by_id: dict[str, TreeNode] = {}

    # Children are decided before their parent: walk the pre-order list backwards
    for node in reversed(list(iter_nodes(roots))):
        kept_children = [kept_by_id[child.id] for child in node.children if child.id in kept_by_id]
        if kept_children or _matches(node, needle):
            kept_by_id[node.id] = _copy_node(node, kept_children)
            if kept_children:
                expanded.add(node.id)

    filtered = [kept_by_id[root.id] for root in roots if root.id in kept_by_id]
    propagate_counts(filtered)
    return FilterResult(roots=filtered, expanded_ids=expanded)
