"""
Intake of tabular driver data.

Turns rows that a spreadsheet reader already produced (one dict of
header -> cell per driver) into AlternativeSchema records. Reading the file
itself is the caller's concern.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .constants import (
    COLUMN_MAPPINGS,
    DISTANCE_COLUMN,
    DISTANCE_FIELD,
    ID_COLUMN,
    TRIP_COUNT_COLUMN,
    TRIP_COUNT_FIELD,
)
from .exceptions import ValidationError
from .hierarchy import CriteriaHierarchy
from .schemas import AlternativeSchema

logger = logging.getLogger(__name__)


def parse_cell(value: Any, row_index: int, column: str) -> float:
    """
    Parse a numeric cell. Blank cells read as 0; strings may use a decimal comma.

    Raises:
        ValidationError: the cell is not a number
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ValidationError(
            f"Row {row_index}, column '{column}': expected a number, got {value!r}",
            details={"row": row_index, "column": column},
        )
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.strip().replace(",", ".")
        if not cleaned:
            return 0.0
        try:
            return float(cleaned)
        except ValueError:
            raise ValidationError(
                f"Row {row_index}, column '{column}': cannot parse {value!r} as a number",
                details={"row": row_index, "column": column},
            ) from None
    raise ValidationError(
        f"Row {row_index}, column '{column}': unsupported cell type {type(value).__name__}",
        details={"row": row_index, "column": column},
    )


def find_column(headers: Sequence[str], fragment: str) -> Optional[str]:
    """First header containing fragment ("Toplam Sefer Sayısı" for "Sefer Sayısı")."""
    return next(
        (header for header in headers if isinstance(header, str) and fragment in header),
        None,
    )


def resolve_columns(
    headers: Sequence[str],
    hierarchy: CriteriaHierarchy,
    mappings: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Locate the column of every leaf criterion.

    A column matches a criterion by display name first, then through the
    header alias table.

    Returns:
        Leaf criterion id -> header

    Raises:
        ValidationError: a leaf criterion has no column
    """
    mappings = COLUMN_MAPPINGS if mappings is None else mappings
    present = set(headers)

    columns: Dict[str, str] = {}
    for criterion in hierarchy.leaf_criteria():
        if criterion.name in present:
            columns[criterion.id] = criterion.name
            continue
        for header, criterion_id in mappings.items():
            if criterion_id == criterion.id and header in present:
                columns[criterion.id] = header
                break
        else:
            raise ValidationError(
                f"No column found for criterion '{criterion.id}' ({criterion.name})",
                criterion_id=criterion.id,
            )

    return columns


def records_from_rows(
    rows: Sequence[Mapping[str, Any]],
    hierarchy: CriteriaHierarchy,
    id_column: str = ID_COLUMN,
    mappings: Optional[Mapping[str, str]] = None,
) -> List[AlternativeSchema]:
    """
    Convert header-keyed rows into alternatives.

    Args:
        rows: One mapping per driver, header -> cell
        hierarchy: Criteria whose leaves must all have a column
        id_column: Header of the identifier column
        mappings: Header alias table (default COLUMN_MAPPINGS)

    Returns:
        Alternatives with criterion values and trip_count / distance_km
        attributes when a header containing "Sefer Sayısı" / "Yapılan Kilometre"
        exists
    """
    if not rows:
        return []

    headers: List[str] = []
    for row in rows:
        headers.extend(h for h in row if h not in headers)

    columns = resolve_columns(headers, hierarchy, mappings)
    attribute_columns = {
        field: header
        for field, header in (
            (TRIP_COUNT_FIELD, find_column(headers, TRIP_COUNT_COLUMN)),
            (DISTANCE_FIELD, find_column(headers, DISTANCE_COLUMN)),
        )
        if header is not None
    }

    alternatives = []
    for index, row in enumerate(rows):
        raw_id = row.get(id_column)
        alternative_id = str(raw_id).strip() if raw_id not in (None, "") else f"Driver_{index}"

        values = {
            criterion_id: parse_cell(row.get(header), index, header)
            for criterion_id, header in columns.items()
        }
        attributes = {
            field: parse_cell(row.get(header), index, header)
            for field, header in attribute_columns.items()
            if header in row
        }

        alternatives.append(AlternativeSchema(
            alternative_id=alternative_id,
            values=values,
            attributes=attributes,
        ))

    logger.info(
        f"Read {len(alternatives)} drivers with {len(columns)} criteria "
        f"from {len(headers)} columns"
    )

    return alternatives
