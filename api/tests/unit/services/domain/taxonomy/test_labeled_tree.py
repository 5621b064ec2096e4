#!/usr/bin/env python3

import pytest

from taxonomy_api.services.domain.taxonomy import (
    BuildMode,
    HierarchyInputError,
    RequirementExtractor,
    WarningCode,
    build_labeled_tree,
    map_columns,
)
from taxonomy_api.services.domain.taxonomy.column_mapper import level_fields
from taxonomy_api.services.domain.taxonomy.labeled import extract_label_chain, path_key
from taxonomy_api.services.domain.taxonomy.tree import find_count_violations, flatten_tree_to_list
from tests.fixtures.taxonomy_fixtures import LEVEL_FIELDS, id_extractor, requirement_rows


def _build(chains, fields=LEVEL_FIELDS):
    return build_labeled_tree(requirement_rows(chains), fields, id_extractor)


def _item_ids(node):
    return [item.id for item in node.items]


class TestLabelChain:
    """Test suite for label extraction from one record"""

    def test_stops_at_first_empty_slot(self):
        record = {"level0": "A", "level1": "", "level2": "C"}

        assert extract_label_chain(record, LEVEL_FIELDS) == ["A"]

    def test_whitespace_only_label_ends_chain(self):
        record = {"level0": "A", "level1": "   ", "level2": "C"}

        assert extract_label_chain(record, LEVEL_FIELDS) == ["A"]

    def test_unmapped_level_ends_chain(self):
        record = {"level0": "A", "level2": "C"}

        assert extract_label_chain(record, ["level0", None, "level2"]) == ["A"]

    def test_labels_are_trimmed(self):
        record = {"level0": "  Gouvernance ", "level1": "Politique  "}

        assert extract_label_chain(record, LEVEL_FIELDS) == ["Gouvernance", "Politique"]

    def test_consecutive_repeats_collapse_case_insensitively(self):
        record = {"level0": "Sales", "level1": "SALES", "level2": "EMEA"}

        assert extract_label_chain(record, LEVEL_FIELDS) == ["Sales", "EMEA"]

    def test_non_consecutive_repeats_are_kept(self):
        record = {"level0": "A", "level1": "B", "level2": "A"}

        assert extract_label_chain(record, LEVEL_FIELDS) == ["A", "B", "A"]


class TestBuildLabeledTree:
    """Test suite for labeled (level column) builds"""

    def test_items_attach_at_deepest_label(self):
        """Rows stopping at level 0 attach to the root, longer rows to the child"""
        result = _build([
            ("R1", ["Gouvernance", "", ""]),
            ("R2", ["Gouvernance", "Politique", ""]),
            ("R3", ["Gouvernance", "Politique", ""]),
        ])

        assert result.mode == BuildMode.LABELED
        assert len(result.roots) == 1
        root = result.roots[0]
        assert root.title == "Gouvernance"
        assert root.item_count == 3
        assert _item_ids(root) == ["R1"]
        assert len(root.children) == 1
        child = root.children[0]
        assert child.title == "Politique"
        assert child.item_count == 2
        assert _item_ids(child) == ["R2", "R3"]
        assert result.warnings == []

    def test_collapse_law(self):
        repeated = _build([("R1", ["Sales", "Sales", "EMEA"])])
        plain = _build([("R1", ["Sales", "EMEA"])])

        assert flatten_tree_to_list(repeated.roots) == flatten_tree_to_list(plain.roots)
        assert repeated.roots[0].children[0].level == 1

    def test_identical_chains_share_nodes(self):
        result = _build([("R1", ["A", "X"]), ("R2", ["A", "X"])])

        assert len(result.nodes) == 2
        assert _item_ids(result.roots[0].children[0]) == ["R1", "R2"]

    def test_same_label_under_different_roots_does_not_merge(self):
        result = _build([("R1", ["A", "X"]), ("R2", ["B", "X"])])

        first_x = result.roots[0].children[0]
        second_x = result.roots[1].children[0]
        assert first_x.id != second_x.id
        assert _item_ids(first_x) == ["R1"]
        assert _item_ids(second_x) == ["R2"]
        assert len(result.nodes) == 4

    def test_labels_differing_only_by_case_share_a_node(self):
        result = _build([("R1", ["Sécurité", "Réseau"]), ("R2", ["SÉCURITÉ", "réseau"])])

        assert len(result.roots) == 1
        assert result.roots[0].title == "Sécurité"
        assert [child.title for child in result.roots[0].children] == ["Réseau"]

    def test_root_order_is_first_encounter(self):
        result = _build([("R1", ["Zeta"]), ("R2", ["Alpha"]), ("R3", ["Zeta", "Child"])])

        assert [root.title for root in result.roots] == ["Zeta", "Alpha"]

    def test_node_ids_are_path_keys(self):
        result = _build([("R1", ["Sécurité", "Réseau", "Pare-feu"])])

        leaf = result.roots[0].children[0].children[0]
        assert leaf.id == "/L0:securite/L1:reseau/L2:pare-feu"
        assert leaf.parent_id == "/L0:securite/L1:reseau"
        assert leaf.level == 2
        assert leaf.code == "pare-feu"
        assert result.roots[0].parent_id is None

    def test_path_key(self):
        assert path_key("", 0, "Gouvernance") == "/L0:gouvernance"
        assert path_key("/L0:gouvernance", 1, "Politique") == "/L0:gouvernance/L1:politique"

    def test_empty_chain_is_skipped_with_one_warning(self):
        result = _build([("R1", ["A"]), ("R2", ["", "B"]), ("R3", ["A"])])

        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.code == WarningCode.EMPTY_LABEL_CHAIN
        assert warning.ref == "2"
        assert "Row 2" in str(warning)
        assert result.roots[0].item_count == 2

    def test_leaf_item_foreign_key_is_node_id(self):
        result = _build([("R1", ["A", "B"])])

        node = result.roots[0].children[0]
        assert node.items[0].foreign_key == node.id

    def test_count_invariant_holds(self):
        result = _build([
            ("R1", ["A"]), ("R2", ["A", "B"]), ("R3", ["A", "B", "C"]),
            ("R4", ["D", "E"]), ("R5", ["A", "F"]), ("R6", ["D"]),
        ])

        assert find_count_violations(result.roots) == []
        assert result.item_count == 6

    def test_idempotent(self):
        chains = [("R1", ["A", "B"]), ("R2", ["C"]), ("R3", ["A", "B", "D"])]

        first = _build(chains)
        second = _build(chains)

        assert flatten_tree_to_list(first.roots) == flatten_tree_to_list(second.roots)

    def test_no_duplicate_titles_under_one_parent(self):
        result = _build([("R1", ["A", "B"]), ("R2", ["A", "b"]), ("R3", ["A", "A", "B"])])

        titles = [child.title.casefold() for child in result.roots[0].children]
        assert titles == ["b"]

    def test_rejects_non_list_records(self):
        with pytest.raises(HierarchyInputError):
            build_labeled_tree("not rows", LEVEL_FIELDS, id_extractor)

    def test_rejects_non_mapping_record(self):
        with pytest.raises(HierarchyInputError, match="record 1"):
            build_labeled_tree([["A", "B"]], LEVEL_FIELDS, id_extractor)


class TestRequirementExtractor:
    """Test suite for the default requirement leaf extractor"""

    @pytest.fixture
    def mapping(self):
        return map_columns(["Niveau 0", "Code officiel", "Titre", "Description"])

    def test_reads_mapped_fields(self, mapping):
        record = {"Niveau 0": "Gouvernance", "Code officiel": "GOV-1", "Titre": " Politique ", "Description": "Texte"}

        item = RequirementExtractor(mapping)(record, 4)

        assert item.id == "GOV-1"
        assert item.payload["title"] == "Politique"
        assert item.payload["description"] == "Texte"
        assert item.payload["row"] == 4

    def test_unmapped_fields_are_empty_strings(self, mapping):
        item = RequirementExtractor(mapping)({"Niveau 0": "Gouvernance"}, 1)

        assert item.payload["tags"] == ""
        assert item.payload["risk_level"] == ""
        assert item.payload["obligation"] == ""

    def test_row_number_is_used_without_code(self, mapping):
        item = RequirementExtractor(mapping)({"Niveau 0": "Gouvernance", "Code officiel": ""}, 7)

        assert item.id == "row-7"

    def test_spreadsheet_scenario_with_mapped_columns(self):
        headers = ["Niveau 0", "Niveau 1", "Niveau 2", "Code"]
        rows = [
            ["Gouvernance", "", "", "R1"],
            ["Gouvernance", "Politique", "", "R2"],
            ["Gouvernance", "Politique", "", "R3"],
        ]
        mapping = map_columns(headers)
        records = [dict(zip(headers, row)) for row in rows]

        result = build_labeled_tree(records, level_fields(mapping), RequirementExtractor(mapping))

        root = result.roots[0]
        assert (root.title, root.item_count, _item_ids(root)) == ("Gouvernance", 3, ["R1"])
        child = root.children[0]
        assert (child.title, child.item_count, _item_ids(child)) == ("Politique", 2, ["R2", "R3"])
