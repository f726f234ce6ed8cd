"""Left join of a main dataset against a lookup dataset."""

from typing import Any

from calcflow.batch.models import BatchResult, ColumnMetadata, ColumnType, Dataset, JoinConfig
from calcflow.core.logging import get_logger

logger = get_logger(__name__)

COLLISION_SUFFIX = "_lookup"


def _validate(main: Dataset, lookup: Dataset, config: JoinConfig) -> str | None:
    if not main.rows:
        return "Main data is empty"
    if not lookup.rows:
        return "Lookup data is empty"
    if not config.left_key or not config.right_key:
        return "Join keys are required"
    if not config.target_columns:
        return "Target columns are required"
    return None


def _hashable(key: Any) -> Any:
    # Unhashable cells (lists, dicts) are keyed by their repr
    try:
        hash(key)
    except TypeError:
        return repr(key)
    return key


def execute_join(main: Dataset, lookup: Dataset, config: JoinConfig) -> BatchResult:
    """
    Copy ``config.target_columns`` from matching lookup rows onto each main row.

    The lookup side is hashed on ``right_key``; when several lookup rows share
    a key the last one wins. Every main row is kept, and unmatched rows get
    None for each target column. A target column that already exists in the
    main schema or on any main row is written to ``<column>_lookup`` instead,
    in rows and schema alike.
    """
    error = _validate(main, lookup, config)
    if error:
        logger.info("Join rejected", extra={"error": error})
        return BatchResult.fail(error)

    index: dict[Any, dict[str, Any]] = {}
    for row in lookup.rows:
        key = row.get(config.right_key)
        if key is not None:
            index[_hashable(key)] = row

    main_keys = set(main.column_ids()).union(*main.rows)
    targets = {
        column: f"{column}{COLLISION_SUFFIX}" if column in main_keys else column
        for column in config.target_columns
    }

    rows = []
    matched = 0
    for main_row in main.rows:
        match = index.get(_hashable(main_row.get(config.left_key)))
        if match is not None:
            matched += 1
        merged = dict(main_row)
        for column, target in targets.items():
            merged[target] = match.get(column) if match is not None else None
        rows.append(merged)

    columns = list(main.columns)
    for column, target in targets.items():
        if any(existing.id == target for existing in columns):
            continue
        source = lookup.get_column(column)
        if source is not None:
            columns.append(source.model_copy(update={"id": target, "name": target}))
        else:
            columns.append(ColumnMetadata(id=target, name=target, type=ColumnType.STRING))

    logger.debug(
        "Join executed",
        extra={"rows": len(rows), "matched": matched, "lookup_keys": len(index)},
    )
    return BatchResult.ok(Dataset(rows=rows, columns=columns))
