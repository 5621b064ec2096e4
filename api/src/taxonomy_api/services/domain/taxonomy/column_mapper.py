#!/usr/bin/env python3
"""Column mapper: detect which spreadsheet header carries which semantic field.

Framework spreadsheets come from many publishers and use French or English
headers with inconsistent accents, casing and punctuation ("Domaine Rang 1",
"domaine_rang1", "Sous-domaine 1"). Matching is done on normalized text and
is advisory: one header may satisfy several fields.
"""

import logging
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from .normalize import normalize_header
from .tree import HierarchyInputError

logger = logging.getLogger(__name__)

LEVEL_FIELDS: tuple[str, ...] = ("level0", "level1", "level2", "level3", "level4")

# Declaration order matters: fields are resolved in this order.
FIELD_SYNONYMS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "level0": ("domaine", "domain", "niveau 0", "niveau0", "racine", "root"),
    "level1": ("domaine_rang1", "domainerang1", "sous-domaine 1", "sousdomaine1",
               "niveau 1", "niveau1", "rang1", "subdomain1"),
    "level2": ("domaine_rang2", "domainerang2", "sous-domaine 2", "sousdomaine2",
               "niveau 2", "niveau2", "rang2", "subdomain2"),
    "level3": ("domaine_rang3", "domainerang3", "sous-domaine 3", "sousdomaine3",
               "niveau 3", "niveau3", "rang3", "subdomain3"),
    "level4": ("domaine_rang4", "domainerang4", "sous-domaine 4", "sousdomaine4",
               "niveau 4", "niveau4", "rang4", "subdomain4"),
    "code": ("code_officiel", "codeofficiel", "code officiel", "code", "code exigence",
             "official code", "requirement code", "ref"),
    "title": ("titre", "title", "nom", "name", "libelle", "libellé", "intitulé",
              "titre exigence", "requirement title"),
    "description": ("description", "desc", "texte", "text", "contenu", "content",
                    "exigence", "requirement"),
    "tags": ("tags", "tag", "mots-clés", "keywords", "domaine audit", "audit",
             "classification", "category"),
    "risk_level": ("niveau_risque", "niveaurisque", "niveau risque", "risk level",
                   "criticité", "criticality", "risque", "risk"),
    "obligation": ("obligation_conformite", "obligation", "conformité", "compliance",
                   "mandatory", "obligatoire", "type"),
    "parent_id": ("parent_id", "parent id", "id parent", "parent", "parent_pole_id",
                  "parent_category_id"),
})

HeaderMatchResult = Mapping[str, str]


def _matches(normalized_header: str, normalized_synonym: str) -> bool:
    return (
        normalized_header == normalized_synonym
        or normalized_synonym in normalized_header
        or normalized_header in normalized_synonym
    )


def map_columns(
    headers: Sequence[str],
    synonym_table: Mapping[str, Sequence[str]] = FIELD_SYNONYMS,
) -> HeaderMatchResult:
    """Map each semantic field to the first header matching one of its synonyms.

    Args:
        headers: Header strings in sheet order
        synonym_table: Semantic field -> synonyms, iterated in declaration order

    Returns:
        Read-only mapping of semantic field -> header; unmatched fields are absent
    """
    if not isinstance(headers, (list, tuple)):
        raise HierarchyInputError(f"headers must be a list of strings, got {type(headers).__name__}")

    normalized_headers = []
    for position, header in enumerate(headers):
        if not isinstance(header, str):
            raise HierarchyInputError(f"header at position {position} is not a string: {header!r}")
        normalized_headers.append(normalize_header(header))

    mapping: dict[str, str] = {}
    for semantic_field, synonyms in synonym_table.items():
        normalized_synonyms = [s for s in (normalize_header(syn) for syn in synonyms) if s]
        for header, normalized in zip(headers, normalized_headers):
            # An empty normalized header is a substring of every synonym
            if not normalized:
                continue
            if any(_matches(normalized, syn) for syn in normalized_synonyms):
                mapping[semantic_field] = header
                break

    logger.debug(f"Detected column mapping for {len(headers)} headers: {mapping}")
    return MappingProxyType(mapping)


def merge_column_overrides(
    detected: HeaderMatchResult,
    overrides: Optional[Mapping[str, Optional[str]]],
    headers: Sequence[str],
) -> HeaderMatchResult:
    """Apply user corrections on top of a detected mapping.

    An override value of "" or None unmaps the field. Overrides must name a
    known semantic field and an existing header.
    """
    if not overrides:
        return detected

    merged = dict(detected)
    known_headers = set(headers)
    for semantic_field, header in overrides.items():
        if semantic_field not in FIELD_SYNONYMS:
            raise HierarchyInputError(f"Unknown semantic field in column override: {semantic_field!r}")
        if not header:
            merged.pop(semantic_field, None)
            continue
        if header not in known_headers:
            raise HierarchyInputError(
                f"Column override {semantic_field!r} -> {header!r} does not name an existing header"
            )
        merged[semantic_field] = header

    return MappingProxyType(merged)


def level_fields(match: HeaderMatchResult) -> list[Optional[str]]:
    """Headers holding level0..level4, None where a level column was not found."""
    return [match.get(name) for name in LEVEL_FIELDS]
