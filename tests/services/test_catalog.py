"""Tests for catalog merging and persistence."""

import json
from pathlib import Path

import pytest

from index_discovery.core.exceptions import CatalogError
from index_discovery.schemas.indexes import Catalog, IndexDefinition, IndexFieldSpec
from index_discovery.services.catalog import (
    index_key,
    load_catalog,
    load_report,
    merge_indexes,
    save_catalog,
    update_catalog,
)


def _definition(group: str, *fields: tuple[str, str], density: str | None = "SPARSE_ALL"):
    return IndexDefinition.model_validate(
        {
            "collectionGroup": group,
            "queryScope": "COLLECTION",
            "fields": [{"fieldPath": path, "order": order} for path, order in fields],
            "density": density,
        }
    )


MEMBER_BY_DATE = _definition(
    "orders", ("memberId", "ASCENDING"), ("createdAt", "DESCENDING"), ("__name__", "DESCENDING")
)
STATUS_BY_DATE = _definition(
    "orders", ("status", "ASCENDING"), ("createdAt", "DESCENDING"), ("__name__", "DESCENDING")
)


def test_merge_into_empty_catalog() -> None:
    result = merge_indexes([], [MEMBER_BY_DATE, STATUS_BY_DATE])

    assert result.unique_new == [MEMBER_BY_DATE, STATUS_BY_DATE]
    assert result.skipped_count == 0


def test_merge_skips_known_and_batch_duplicates() -> None:
    result = merge_indexes([MEMBER_BY_DATE], [MEMBER_BY_DATE, STATUS_BY_DATE, STATUS_BY_DATE])

    assert result.unique_new == [STATUS_BY_DATE]
    assert result.skipped_count == 2


def test_merge_is_idempotent() -> None:
    catalog, first = update_catalog(Catalog(), [MEMBER_BY_DATE, STATUS_BY_DATE])
    again, second = update_catalog(catalog, [MEMBER_BY_DATE, STATUS_BY_DATE])

    assert len(first.unique_new) == 2
    assert second.unique_new == []
    assert second.skipped_count == 2
    assert again.indexes == catalog.indexes


def test_field_order_is_significant() -> None:
    swapped = _definition(
        "orders", ("createdAt", "DESCENDING"), ("memberId", "ASCENDING"), ("__name__", "DESCENDING")
    )

    assert index_key(swapped) != index_key(MEMBER_BY_DATE)
    assert merge_indexes([MEMBER_BY_DATE], [swapped]).unique_new == [swapped]


def test_direction_and_density_are_significant() -> None:
    ascending = _definition(
        "orders", ("memberId", "ASCENDING"), ("createdAt", "ASCENDING"), ("__name__", "ASCENDING")
    )
    no_density = _definition(
        "orders",
        ("memberId", "ASCENDING"),
        ("createdAt", "DESCENDING"),
        ("__name__", "DESCENDING"),
        density=None,
    )

    assert len(merge_indexes([MEMBER_BY_DATE], [ascending, no_density]).unique_new) == 2


def test_array_config_entries_are_compared() -> None:
    tags = IndexDefinition.model_validate(
        {
            "collectionGroup": "products",
            "fields": [
                {"fieldPath": "tags", "arrayConfig": "CONTAINS"},
                {"fieldPath": "price", "order": "ASCENDING"},
            ],
        }
    )

    assert merge_indexes([tags], [tags]).skipped_count == 1
    assert tags.to_json_dict()["fields"][0] == {"fieldPath": "tags", "arrayConfig": "CONTAINS"}


def test_update_catalog_does_not_mutate_input() -> None:
    catalog = Catalog(indexes=[MEMBER_BY_DATE])

    updated, merge = update_catalog(catalog, [STATUS_BY_DATE])

    assert catalog.indexes == [MEMBER_BY_DATE]
    assert updated.indexes == [MEMBER_BY_DATE, STATUS_BY_DATE]
    assert merge.unique_new == [STATUS_BY_DATE]


def test_load_missing_catalog_is_empty(tmp_path: Path) -> None:
    catalog = load_catalog(tmp_path / "firestore.indexes.json")

    assert catalog.indexes == []
    assert catalog.field_overrides == []


def test_save_and_load_preserve_unknown_content(tmp_path: Path) -> None:
    path = tmp_path / "firestore.indexes.json"
    path.write_text(
        json.dumps(
            {
                "indexes": [MEMBER_BY_DATE.to_json_dict()],
                "fieldOverrides": [{"collectionGroup": "orders", "fieldPath": "notes"}],
                "comment": "managed by hand",
            }
        )
    )

    catalog, _ = update_catalog(load_catalog(path), [STATUS_BY_DATE])
    save_catalog(catalog, path)
    written = json.loads(path.read_text())

    assert written["comment"] == "managed by hand"
    assert written["fieldOverrides"] == [{"collectionGroup": "orders", "fieldPath": "notes"}]
    assert written["indexes"] == [MEMBER_BY_DATE.to_json_dict(), STATUS_BY_DATE.to_json_dict()]
    assert path.read_text().endswith("}\n")
    assert [p.name for p in tmp_path.iterdir()] == ["firestore.indexes.json"]


def test_load_invalid_json_raises(tmp_path: Path) -> None:
    path = tmp_path / "firestore.indexes.json"
    path.write_text("{not json")

    with pytest.raises(CatalogError, match="not valid JSON"):
        load_catalog(path)


def test_load_wrong_shape_raises(tmp_path: Path) -> None:
    path = tmp_path / "firestore.indexes.json"
    path.write_text(json.dumps({"indexes": [{"queryScope": "COLLECTION"}]}))

    with pytest.raises(CatalogError, match="unexpected shape"):
        load_catalog(path)


def test_load_missing_report_raises(tmp_path: Path) -> None:
    with pytest.raises(CatalogError, match="not found"):
        load_report(tmp_path / "missing-indexes.json")


def test_save_and_load_preserve_unknown_field_keys(tmp_path: Path) -> None:
    """Keys inside an existing field entry survive a merge and rewrite."""
    existing = {
        "collectionGroup": "orders",
        "queryScope": "COLLECTION",
        "fields": [
            {"fieldPath": "memberId", "order": "ASCENDING", "note": "keep"},
            {"fieldPath": "__name__", "order": "ASCENDING"},
        ],
    }
    path = tmp_path / "firestore.indexes.json"
    path.write_text(json.dumps({"indexes": [existing]}))

    catalog, merge = update_catalog(load_catalog(path), [STATUS_BY_DATE])
    save_catalog(catalog, path)

    assert merge.unique_new == [STATUS_BY_DATE]
    assert json.loads(path.read_text())["indexes"][0] == existing


def test_vector_fields_load_and_round_trip(tmp_path: Path) -> None:
    vector_index = {
        "collectionGroup": "products",
        "queryScope": "COLLECTION",
        "fields": [
            {"fieldPath": "category", "order": "ASCENDING"},
            {"fieldPath": "embedding", "vectorConfig": {"dimension": 768, "flat": {}}},
        ],
    }
    path = tmp_path / "firestore.indexes.json"
    path.write_text(json.dumps({"indexes": [vector_index]}))

    catalog = load_catalog(path)
    updated, merge = update_catalog(catalog, [IndexDefinition.model_validate(vector_index)])
    save_catalog(updated, path)

    assert merge.skipped_count == 1
    assert json.loads(path.read_text())["indexes"] == [vector_index]


def test_field_needs_exactly_one_mode() -> None:
    with pytest.raises(ValueError, match="exactly one"):
        IndexFieldSpec.model_validate({"fieldPath": "tags"})

    with pytest.raises(ValueError, match="exactly one"):
        IndexFieldSpec.model_validate(
            {"fieldPath": "tags", "order": "ASCENDING", "arrayConfig": "CONTAINS"}
        )


def test_unknown_field_keys_are_part_of_identity() -> None:
    annotated = IndexDefinition.model_validate(
        {
            **MEMBER_BY_DATE.to_json_dict(),
            "fields": [
                {"fieldPath": "memberId", "order": "ASCENDING", "note": "keep"},
                {"fieldPath": "createdAt", "order": "DESCENDING"},
                {"fieldPath": "__name__", "order": "DESCENDING"},
            ],
        }
    )

    assert index_key(annotated) != index_key(MEMBER_BY_DATE)
