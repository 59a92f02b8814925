"""Index catalog persistence and duplicate-free merging."""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from index_discovery.core.exceptions import CatalogError
from index_discovery.core.logging import get_logger
from index_discovery.schemas.indexes import Catalog, IndexDefinition
from index_discovery.schemas.report import DiscoveryReport

logger = get_logger(__name__)

IndexKey = tuple[str, str, tuple[str, ...], str | None]


@dataclass
class MergeResult:
    """Outcome of merging candidate definitions into a catalog."""

    unique_new: list[IndexDefinition] = field(default_factory=list)
    skipped_count: int = 0


def index_key(definition: IndexDefinition) -> IndexKey:
    """Structural identity of an index; field order is significant.

    Every serialized key of a field takes part, including ones this project
    does not model, so entries differing only there are kept apart.
    """
    return (
        definition.collection_group,
        definition.query_scope,
        tuple(json.dumps(f.to_json_dict(), sort_keys=True) for f in definition.fields),
        definition.density,
    )


def merge_indexes(
    existing: list[IndexDefinition],
    candidates: list[IndexDefinition],
) -> MergeResult:
    """Select the candidates not yet present in ``existing``.

    Candidates duplicated within the batch collapse to their first occurrence.
    Nothing in ``existing`` is altered or removed.

    Args:
        existing: Definitions already in the catalog.
        candidates: Newly discovered definitions, in discovery order.

    Returns:
        MergeResult: Unique new definitions and how many candidates were skipped.
    """
    keys = {index_key(definition) for definition in existing}
    result = MergeResult()

    for candidate in candidates:
        key = index_key(candidate)
        if key in keys:
            result.skipped_count += 1
            continue
        keys.add(key)
        result.unique_new.append(candidate)

    logger.debug(
        f"Merged {len(candidates)} candidate(s): {len(result.unique_new)} new, "
        f"{result.skipped_count} already known"
    )
    return result


def _read_json(path: Path, what: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CatalogError(f"{what} {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise CatalogError(f"Cannot read {what.lower()} {path}: {e}") from e


def load_catalog(path: str | Path) -> Catalog:
    """Read the index catalog; a missing file is an empty catalog.

    Raises:
        CatalogError: If the file is unreadable or not a catalog.
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Catalog {path} not found, starting from an empty catalog")
        return Catalog()

    data = _read_json(path, "Catalog")
    try:
        return Catalog.model_validate(data)
    except ValidationError as e:
        raise CatalogError(f"Catalog {path} has an unexpected shape: {e}") from e


def save_catalog(catalog: Catalog, path: str | Path) -> None:
    """Write the catalog atomically (temp file in the same directory, then rename)."""
    path = Path(path)
    content = json.dumps(catalog.to_json_dict(), indent=2, ensure_ascii=False) + "\n"

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info(f"Catalog written to {path} ({len(catalog.indexes)} indexes)")


def load_report(path: str | Path) -> DiscoveryReport:
    """Read a discovery report written by a previous run.

    Raises:
        CatalogError: If the file is missing, unreadable or not a report.
    """
    path = Path(path)
    if not path.exists():
        raise CatalogError(f"Report {path} not found; run discover-indexes first")

    data = _read_json(path, "Report")
    try:
        return DiscoveryReport.model_validate(data)
    except ValidationError as e:
        raise CatalogError(f"Report {path} has an unexpected shape: {e}") from e


def save_report(report: DiscoveryReport, path: str | Path) -> None:
    """Write a discovery report, replacing any previous one."""
    path = Path(path)
    path.write_text(
        json.dumps(report.to_json_dict(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    logger.info(f"Report written to {path}")


def extract_index_definitions(report: DiscoveryReport) -> list[IndexDefinition]:
    """Every synthesized definition listed in a report."""
    return report.index_definitions()


def update_catalog(
    catalog: Catalog, candidates: list[IndexDefinition]
) -> tuple[Catalog, MergeResult]:
    """Merge ``candidates`` into ``catalog`` without mutating it.

    Returns:
        tuple[Catalog, MergeResult]: The catalog with unique new entries
        appended, and the merge statistics.
    """
    merge = merge_indexes(catalog.indexes, candidates)
    if not merge.unique_new:
        return catalog, merge
    return catalog.with_indexes(merge.unique_new), merge
