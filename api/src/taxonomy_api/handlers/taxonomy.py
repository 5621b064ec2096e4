#!/usr/bin/env python3

import logging
import uuid

from fastapi import HTTPException

from ..core.config import taxonomy_config
from ..models.models import (
    BuildWarningModel,
    ColumnDetectionRequest,
    ColumnDetectionResponse,
    EcosystemRequest,
    EcosystemResponse,
    EcosystemSummaryModel,
    FrameworkIdentityModel,
    LabeledTreeRequest,
    LeafItemModel,
    ReferencedTreeRequest,
    TreeNodeModel,
    TreeResponse,
    TreeStats,
)
from ..services.domain.taxonomy import (
    FIELD_SYNONYMS,
    BuildResult,
    EntityRecord,
    HierarchyInputError,
    LeafItem,
    build_ecosystem,
    build_from_sheet,
    build_referenced_tree,
    derive_framework_identity,
    initial_view_state,
    map_columns,
)
from ..services.domain.taxonomy.tree import flatten_tree_to_list

logger = logging.getLogger(__name__)


def _check_limit(kind: str, size: int) -> None:
    limit = taxonomy_config.get_limit(kind)
    if size > limit:
        raise HTTPException(
            status_code=413,
            detail=f"{size} records exceed the {kind} build limit of {limit}"
        )


def _to_entity(model) -> EntityRecord:
    return EntityRecord(
        id=model.id,
        title=model.title,
        parent_id=model.parent_id,
        code=model.code,
        attributes=dict(model.attributes),
    )


def _item_model(item: LeafItem) -> LeafItemModel:
    return LeafItemModel(
        id=item.id,
        foreign_key=item.foreign_key,
        payload=dict(item.payload),
        weight=item.weight,
    )


def build_tree_response(result: BuildResult) -> TreeResponse:
    """Serialize a build result, with the default view state, for the portal"""
    view = initial_view_state(result, expand_roots=taxonomy_config.EXPAND_ROOTS_BY_DEFAULT)
    return TreeResponse(
        mode=result.mode.value,
        roots=[root.id for root in result.roots],
        nodes=[TreeNodeModel.model_validate(row) for row in flatten_tree_to_list(result.roots)],
        warnings=[
            BuildWarningModel(code=w.code.value, message=w.message, ref=w.ref)
            for w in result.warnings
        ],
        unassigned=[_item_model(item) for item in result.unassigned],
        stats=TreeStats(
            node_count=len(result.nodes),
            root_count=len(result.roots),
            item_count=result.item_count,
            unassigned_count=len(result.unassigned),
            warning_count=len(result.warnings),
        ),
        expanded=sorted(view.expanded),
    )


def handle_detect_columns(request: ColumnDetectionRequest) -> ColumnDetectionResponse:
    """Detect which header holds each semantic field"""
    try:
        mapping = map_columns(request.headers)
    except HierarchyInputError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return ColumnDetectionResponse(
        column_mapping=dict(mapping),
        unmapped_fields=[name for name in FIELD_SYNONYMS if name not in mapping],
    )


def handle_labeled_tree(request: LabeledTreeRequest) -> TreeResponse:
    """Build the framework preview tree from a parsed spreadsheet"""
    import_id = uuid.uuid4().hex[:12]
    _check_limit("labeled", len(request.rows))

    try:
        sheet_build = build_from_sheet(request.headers, request.rows, request.column_overrides)
        response = build_tree_response(sheet_build.result)
        response.column_mapping = dict(sheet_build.column_mapping)
        if request.filename:
            identity = derive_framework_identity(request.filename)
            response.framework = FrameworkIdentityModel(code=identity.code, name=identity.name)

        logger.info(
            f"Labeled tree built: {response.stats.node_count} nodes, "
            f"{response.stats.item_count} requirements, {response.stats.warning_count} warnings",
            extra={"build_mode": "labeled", "import_id": import_id}
        )
        return response

    except HierarchyInputError as e:
        logger.warning(f"Rejected labeled build input: {e}", extra={"import_id": import_id})
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Labeled tree build failed: {e}", extra={"import_id": import_id})
        if isinstance(e, HTTPException):
            raise
        raise HTTPException(status_code=500, detail=f"Tree build failed: {str(e)}") from e


def handle_referenced_tree(request: ReferencedTreeRequest) -> TreeResponse:
    """Build a pole/category tree from a flat entity list"""
    _check_limit("referenced", len(request.entities) + len(request.items))

    try:
        result = build_referenced_tree(
            [_to_entity(entity) for entity in request.entities],
            [
                LeafItem(id=item.id, foreign_key=item.foreign_key, payload=dict(item.payload), weight=item.weight)
                for item in request.items
            ],
        )
        return build_tree_response(result)

    except HierarchyInputError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Referenced tree build failed: {e}")
        if isinstance(e, HTTPException):
            raise
        raise HTTPException(status_code=500, detail=f"Tree build failed: {str(e)}") from e


def handle_ecosystem(request: EcosystemRequest) -> EcosystemResponse:
    """Build internal (pole) and external (category) trees with organization totals"""
    _check_limit(
        "referenced",
        len(request.poles) + len(request.categories) + len(request.organizations)
    )

    try:
        ecosystem = build_ecosystem(
            [_to_entity(pole) for pole in request.poles],
            [_to_entity(category) for category in request.categories],
            [organization.model_dump() for organization in request.organizations],
        )

        summary = ecosystem.summary
        return EcosystemResponse(
            internal=build_tree_response(ecosystem.internal),
            external=build_tree_response(ecosystem.external),
            summary=EcosystemSummaryModel(
                internal_count=summary.internal_count,
                external_count=summary.external_count,
                unassigned_count=summary.unassigned_count,
                total_count=summary.total_count,
            ),
        )

    except HierarchyInputError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Ecosystem build failed: {e}")
        if isinstance(e, HTTPException):
            raise
        raise HTTPException(status_code=500, detail=f"Ecosystem build failed: {str(e)}") from e
