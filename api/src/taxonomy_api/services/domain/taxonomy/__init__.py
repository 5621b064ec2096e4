"""
Taxonomy construction

Turns flat input into normalized trees:
- Column mapping (fuzzy header detection for spreadsheet imports)
- Labeled builds (ordered level columns per row, e.g. framework domains)
- Referenced builds (parent-id entity lists, e.g. poles and categories)
- Upward count propagation, view state and search filtering
"""

from .column_mapper import FIELD_SYNONYMS, map_columns, merge_column_overrides
from .ecosystem import build_ecosystem, summarize_ecosystem
from .labeled import RequirementExtractor, build_labeled_tree
from .referenced import EntityRecord, build_referenced_tree
from .spreadsheet import build_from_sheet, derive_framework_identity, tabulate_sheet
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
from .view_state import ViewState, filter_tree, initial_view_state

__all__ = [
    # Column mapping
    "FIELD_SYNONYMS",
    "map_columns",
    "merge_column_overrides",
    # Builders
    "build_labeled_tree",
    "build_referenced_tree",
    "build_from_sheet",
    "build_ecosystem",
    "summarize_ecosystem",
    "RequirementExtractor",
    "EntityRecord",
    "tabulate_sheet",
    "derive_framework_identity",
    # Tree types
    "BuildMode",
    "BuildResult",
    "BuildWarning",
    "HierarchyInputError",
    "LeafItem",
    "TreeNode",
    "WarningCode",
    "propagate_counts",
    # Presentation state
    "ViewState",
    "filter_tree",
    "initial_view_state",
]
