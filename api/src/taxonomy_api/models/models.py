#!/usr/bin/env python3

from typing import Any

from pydantic import BaseModel, Field

# Pydantic Models


class ColumnDetectionRequest(BaseModel):
    headers: list[str]


class ColumnDetectionResponse(BaseModel):
    column_mapping: dict[str, str] = {}  # semantic field -> header
    unmapped_fields: list[str] = []      # Semantic fields with no matching header


class LabeledTreeRequest(BaseModel):
    """Spreadsheet already parsed by the portal: one header row plus data rows."""

    headers: list[str]
    rows: list[list[str]]
    column_overrides: dict[str, str | None] = {}  # User corrections to the detected mapping
    filename: str | None = None                   # Used to propose a framework code/name


class EntityModel(BaseModel):
    """Pole, category or any entity referencing its parent by id."""

    id: str
    title: str
    parent_id: str | None = None
    code: str = ""
    attributes: dict[str, Any] = {}


class LeafItemModel(BaseModel):
    id: str
    foreign_key: str | None = None   # Entity id the item belongs to, None when unassigned
    payload: dict[str, Any] = {}
    weight: float = 0.0


class ReferencedTreeRequest(BaseModel):
    entities: list[EntityModel]
    items: list[LeafItemModel] = []


class OrganizationModel(BaseModel):
    """Ecosystem organization with its internal/external placement."""

    id: str
    name: str
    pole_id: str | None = None
    category_id: str | None = None
    employee_count: int | None = None
    stakeholder_type: str | None = None  # 'internal' or 'external'


class EcosystemRequest(BaseModel):
    poles: list[EntityModel] = []
    categories: list[EntityModel] = []
    organizations: list[OrganizationModel] = []


class BuildWarningModel(BaseModel):
    code: str  # WarningCode value, e.g. 'dangling_parent'
    message: str
    ref: str | None = None


class TreeNodeModel(BaseModel):
    """One node of a flattened tree; children are listed by id."""

    id: str
    level: int
    title: str
    code: str = ""
    parent_id: str | None = None
    item_count: int = 0
    aggregate_weight: float = 0.0
    attributes: dict[str, Any] = {}
    items: list[LeafItemModel] = []
    children: list[str] = []


class TreeStats(BaseModel):
    node_count: int = 0
    root_count: int = 0
    item_count: int = 0
    unassigned_count: int = 0
    warning_count: int = 0


class FrameworkIdentityModel(BaseModel):
    code: str
    name: str


class TreeResponse(BaseModel):
    mode: str  # 'labeled' or 'referenced'
    roots: list[str] = []                          # Root node ids in display order
    nodes: list[TreeNodeModel] = []                # Every node, parents before children
    warnings: list[BuildWarningModel] = []
    unassigned: list[LeafItemModel] = []
    stats: TreeStats = Field(default_factory=TreeStats)
    expanded: list[str] = []                       # Node ids open in the initial view
    column_mapping: dict[str, str] | None = None   # Labeled builds only
    framework: FrameworkIdentityModel | None = None


class EcosystemSummaryModel(BaseModel):
    internal_count: int
    external_count: int
    unassigned_count: int
    total_count: int


class EcosystemResponse(BaseModel):
    internal: TreeResponse
    external: TreeResponse
    summary: EcosystemSummaryModel
