#!/usr/bin/env python3
"""Labeled linkage: fold rows with ordered level columns into a tree.

Each row names its position with level0..levelN labels (framework domain,
sub-domains) and carries one leaf item (a requirement). Rows sharing a label
chain converge on the same nodes through path keys built from the whole
ancestor chain.
"""

import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from .column_mapper import HeaderMatchResult
from .normalize import label_segment, same_label, slugify
from .tree import (
    BuildMode,
    BuildResult,
    BuildWarning,
    HierarchyInputError,
    LeafItem,
    TreeNode,
    WarningCode,
    propagate_counts,
)

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]
LeafExtractor = Callable[[Record, int], LeafItem]

REQUIREMENT_FIELDS: tuple[str, ...] = ("code", "title", "description", "tags", "risk_level", "obligation")


def _cell(record: Record, field_name: Optional[str]) -> str:
    if not field_name:
        return ""
    value = record.get(field_name)
    if value is None:
        return ""
    return str(value).strip()


class RequirementExtractor:
    """Default leaf extractor reading the mapped requirement columns.

    Unmapped fields yield "". The item id is the requirement code when
    present, otherwise ``row-<n>``.
    """

    def __init__(self, match: HeaderMatchResult):
        self.match = match

    def __call__(self, record: Record, row_number: int) -> LeafItem:
        payload: dict[str, Any] = {
            name: _cell(record, self.match.get(name)) for name in REQUIREMENT_FIELDS
        }
        payload["row"] = row_number
        item_id = payload["code"] or f"row-{row_number}"
        return LeafItem(id=item_id, payload=payload)


def extract_label_chain(record: Record, level_fields: Sequence[Optional[str]]) -> list[str]:
    """Read level labels in order, stopping at the first empty slot, then collapse repeats.

    A parent title repeated in the next level column is a visual convention
    of the source sheet, not an extra level, so consecutive labels equal
    ignoring case are kept once.
    """
    labels: list[str] = []
    for field_name in level_fields:
        label = _cell(record, field_name)
        if not label:
            break
        labels.append(label)

    collapsed: list[str] = []
    for label in labels:
        if collapsed and same_label(collapsed[-1], label):
            continue
        collapsed.append(label)
    return collapsed


def path_key(parent_key: str, level: int, label: str) -> str:
    """Node id for ``label`` at ``level`` under the node keyed ``parent_key``."""
    return f"{parent_key}/L{level}:{label_segment(label)}"


def build_labeled_tree(
    records: Sequence[Record],
    level_fields: Sequence[Optional[str]],
    leaf_extractor: LeafExtractor,
) -> BuildResult:
    """Build a forest from rows carrying ordered level labels.

    Args:
        records: Rows as header -> cell mappings, in sheet order
        level_fields: Record keys for level0..levelN, None for a missing column
        leaf_extractor: Builds the leaf item of a row from (record, 1-based row number)

    Returns:
        BuildResult with roots in first-encounter order and propagated counts
    """
    if not isinstance(records, (list, tuple)):
        raise HierarchyInputError(f"records must be a list, got {type(records).__name__}")
    if not isinstance(level_fields, (list, tuple)):
        raise HierarchyInputError(f"level_fields must be a list, got {type(level_fields).__name__}")

    result = BuildResult(mode=BuildMode.LABELED)

    for index, record in enumerate(records):
        row_number = index + 1
        if not isinstance(record, Mapping):
            raise HierarchyInputError(f"record {row_number} must be a mapping, got {type(record).__name__}")

        labels = extract_label_chain(record, level_fields)
        if not labels:
            warning = BuildWarning(
                code=WarningCode.EMPTY_LABEL_CHAIN,
                message=f"Row {row_number} has no hierarchy label and was skipped",
                ref=str(row_number),
            )
            logger.warning(warning.message, extra={"build_mode": result.mode.value})
            result.warnings.append(warning)
            continue

        parent_key = ""
        siblings = result.roots
        node: Optional[TreeNode] = None
        for level, label in enumerate(labels):
            key = path_key(parent_key, level, label)
            node = result.nodes.get(key)
            if node is None:
                node = TreeNode(
                    id=key,
                    level=level,
                    title=label,
                    code=slugify(label),
                    parent_id=parent_key or None,
                )
                siblings.append(node)
                result.nodes[key] = node
            parent_key = key
            siblings = node.children

        item = leaf_extractor(record, row_number)
        item.foreign_key = node.id
        node.items.append(item)

    propagate_counts(result.roots)
    logger.info(
        f"Labeled build: {len(records)} rows, {len(result.nodes)} nodes, "
        f"{len(result.roots)} roots, {len(result.warnings)} warnings",
        extra={"build_mode": result.mode.value},
    )
    return result
