"""Batch dataset models.

Datasets are plain row dictionaries plus column metadata. Every batch
operation returns a new ``Dataset``; inputs are never modified in place.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ColumnType(str, Enum):
    """Declared type of a dataset column."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"


class ColumnMetadata(BaseModel):
    """Schema entry for one dataset column."""

    id: str = Field(..., description="Column key used in rows")
    name: str = Field(..., description="Display name")
    type: ColumnType = Field(ColumnType.STRING, description="Column type")
    unit: Optional[str] = Field(None, description="Unit of the column's values")


class Dataset(BaseModel):
    """Rows keyed by column id plus the column schema."""

    model_config = ConfigDict(populate_by_name=True)

    rows: list[dict[str, Any]] = Field(default_factory=list)
    # "schema" shadows a BaseModel attribute, so it is stored under an alias
    columns: list[ColumnMetadata] = Field(default_factory=list, alias="schema")

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column_ids(self) -> list[str]:
        return [column.id for column in self.columns]

    def column_units(self) -> dict[str, str]:
        """Column id -> unit for columns that declare one."""
        return {column.id: column.unit for column in self.columns if column.unit}

    def get_column(self, column_id: str) -> ColumnMetadata | None:
        return next((column for column in self.columns if column.id == column_id), None)


class ScalarInput(BaseModel):
    """Named single value fed into a batch formula from a scalar node."""

    value: float = 0.0
    unit: str = ""


class RowError(BaseModel):
    """Failure location and message; ``row_index`` is 1-based, -1 when not row specific."""

    row_index: int = -1
    message: str


class BatchResult(BaseModel):
    """Outcome of a batch operation."""

    success: bool
    dataset: Optional[Dataset] = None
    error: Optional[RowError] = None
    new_column: Optional[str] = None
    derived_unit: Optional[str] = None
    unit_warning: Optional[str] = None

    @classmethod
    def ok(cls, dataset: Dataset, **kwargs: Any) -> "BatchResult":
        return cls(success=True, dataset=dataset, **kwargs)

    @classmethod
    def fail(cls, message: str, row_index: int = -1) -> "BatchResult":
        return cls(success=False, error=RowError(row_index=row_index, message=message))


# =============================================================================
# Filter
# =============================================================================


class FilterMode(str, Enum):
    """Whether the filter compares against a literal or another column."""

    VALUE = "value"
    COLUMN = "column"


class FilterCriteria(BaseModel):
    """Row predicate ``row[column] <operator> value``."""

    column: str
    operator: str = Field(..., description="One of > < >= <= == != contains")
    value: Any = None
    mode: FilterMode = FilterMode.VALUE


# =============================================================================
# Transform operations
# =============================================================================


class DeleteOperation(BaseModel):
    type: Literal["delete"] = "delete"
    column: str


class RenameOperation(BaseModel):
    type: Literal["rename"] = "rename"
    column: str
    new_name: str


class SelectOperation(BaseModel):
    type: Literal["select"] = "select"
    columns: list[str] = Field(default_factory=list)


class SetUnitOperation(BaseModel):
    """Replace one column's unit; an empty unit clears it."""

    type: Literal["set_unit"] = "set_unit"
    column: str
    unit: Optional[str] = None


class CombineInput(BaseModel):
    """Columns taken from one of the combined source datasets."""

    source_index: int = Field(..., ge=0)
    columns: list[str] = Field(default_factory=list)


class CombineOperation(BaseModel):
    type: Literal["combine"] = "combine"
    inputs: list[CombineInput] = Field(default_factory=list)


Operation = Annotated[
    Union[DeleteOperation, RenameOperation, SelectOperation, SetUnitOperation, CombineOperation],
    Field(discriminator="type"),
]


# =============================================================================
# Join
# =============================================================================


class JoinConfig(BaseModel):
    """Left join keys and the lookup columns to copy onto the main rows."""

    left_key: str = ""
    right_key: str = ""
    target_columns: list[str] = Field(default_factory=list)
