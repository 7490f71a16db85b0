"""Header row detection for unstructured nutrition spreadsheets.

Government food composition exports (NUTTAB, AUSNUT and similar) put title
and notes rows above the actual table and use verbose headers such as
``"Energy, with dietary fibre (kJ)"``. The detector finds the header row,
maps its cells onto food fields and turns the rows beneath it into raw rows
that the regular row validator understands.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from food_importer.domain.foods import SheetRow

HEADER_SCAN_ROWS = 20
FALLBACK_SCAN_ROWS = 30
MIN_HEADER_TERM_MATCHES = 3
KILOJOULES_PER_KILOCALORIE = 4.184
KILOJOULE_THRESHOLD = 100.0

KEY_HEADER_TERMS = (
    "food name",
    "energy",
    "protein",
    "fat",
    "carbohydrate",
    "dietary fibre",
    "sodium",
)

NUTRIENT_COLUMNS = ("energy", "protein", "carbs", "fat")

# Rules are tested in order for each header cell; keywords are listed from
# most to least specific.
_COLUMN_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("category", ("category", "food group", "group", "classification", "type")),
    ("energy", ("energy",)),
    ("protein", ("protein",)),
    ("carbs", ("carbohydrate", "carbs")),
    ("fat", ("fat",)),
    ("fiber", ("fibre", "fiber")),
    ("sugar", ("sugar",)),
    ("sodium", ("sodium",)),
    ("name", ("food name", "name", "description", "food", "item")),
)

_EXCLUDED_TERMS = {"fat": ("saturated",)}


class HeaderDetectionError(ValueError):
    """Raised when a sheet has no usable header row or columns."""


@dataclass(frozen=True)
class HeaderMatch:
    """Location of the header row and the detected column indexes."""

    row_index: int
    columns: dict[str, int]


def find_header_row(
    rows: Sequence[Sequence[object]],
    scan_rows: int = HEADER_SCAN_ROWS,
    fallback_scan_rows: int = FALLBACK_SCAN_ROWS,
) -> int:
    """Return the index of the header row within ``rows``."""
    for index, row in enumerate(rows[:scan_rows]):
        if not row:
            continue
        text = " ".join(cell.lower() for cell in row if isinstance(cell, str))
        matches = sum(1 for term in KEY_HEADER_TERMS if term in text)
        if matches >= MIN_HEADER_TERM_MATCHES:
            return index

    for index, row in enumerate(rows[:fallback_scan_rows]):
        if not row:
            continue
        text = " ".join(str(cell).lower() for cell in row if cell is not None)
        if "energy" in text and "protein" in text:
            return index

    raise HeaderDetectionError(
        "Could not find a header row with nutritional information"
    )


def map_columns(header: Sequence[object]) -> dict[str, int]:
    """Map header cells onto food fields.

    Each cell is assigned to the first rule it matches. When several cells
    map to the same field the one matching the more specific keyword wins,
    then the leftmost one.
    """
    best: dict[str, tuple[int, int]] = {}
    for index, cell in enumerate(header):
        if cell is None:
            continue
        text = str(cell).strip().lower()
        if not text:
            continue
        for column, keywords in _COLUMN_RULES:
            if any(term in text for term in _EXCLUDED_TERMS.get(column, ())):
                continue
            rank = next(
                (rank for rank, keyword in enumerate(keywords) if keyword in text),
                None,
            )
            if rank is None:
                continue
            current = best.get(column)
            if current is None or rank < current[0]:
                best[column] = (rank, index)
            break
    return {column: index for column, (_rank, index) in best.items()}


def detect_header(
    rows: Sequence[Sequence[object]],
    scan_rows: int = HEADER_SCAN_ROWS,
    fallback_scan_rows: int = FALLBACK_SCAN_ROWS,
) -> HeaderMatch:
    """Locate the header row and validate that the required columns exist."""
    row_index = find_header_row(rows, scan_rows, fallback_scan_rows)
    columns = map_columns(rows[row_index])
    if "name" not in columns:
        raise HeaderDetectionError("Could not find a column for food names")
    if not any(column in columns for column in NUTRIENT_COLUMNS):
        raise HeaderDetectionError("Could not find any columns for nutritional data")
    return HeaderMatch(row_index=row_index, columns=columns)


def energy_to_kilocalories(value: float) -> float:
    """Convert an energy value to kcal, treating values above 100 as kJ.

    Source sheets rarely declare the unit, so this is an approximation:
    a genuine 150 kcal entry would be read as kJ.
    """
    if value > KILOJOULE_THRESHOLD:
        return value / KILOJOULES_PER_KILOCALORIE
    return value


def extract_rows(
    rows: Sequence[Sequence[object]],
    match: HeaderMatch,
    brand: str | None = None,
) -> list[SheetRow]:
    """Convert the data rows below the header into raw food rows."""
    extracted: list[SheetRow] = []
    for index in range(match.row_index + 1, len(rows)):
        row = rows[index]
        if not row or all(_is_blank(cell) for cell in row):
            continue
        values: dict[str, object] = {}
        for column, position in match.columns.items():
            cell = row[position] if position < len(row) else None
            if _is_blank(cell):
                continue
            if column == "energy":
                values["calories"] = _convert_number(cell, energy_to_kilocalories, 1)
            elif column == "sodium":
                values["sodium"] = _convert_number(cell, None, 0)
            elif column in {"name", "category"}:
                values[column] = cell
            else:
                values[column] = _convert_number(cell, None, 1)
        if "energy" not in match.columns:
            values["calories"] = 0.0
        if brand:
            values["brand"] = brand
        extracted.append(SheetRow(row_number=index + 1, values=values))
    return extracted


def _convert_number(
    cell: object, convert: Callable[[float], float] | None, digits: int
) -> object:
    """Round numeric cells, leaving anything unparsable for the validator."""
    if isinstance(cell, bool):
        return cell
    try:
        number = float(cell.strip()) if isinstance(cell, str) else float(cell)
    except (TypeError, ValueError):
        return cell
    if convert is not None:
        number = convert(number)
    return round(number, digits) if digits else float(round(number))


def _is_blank(cell: object) -> bool:
    return cell is None or (isinstance(cell, str) and not cell.strip())
