"""Tests for heuristic header detection."""

import pytest

from food_importer.services.header_detection import (
    HeaderDetectionError,
    HeaderMatch,
    detect_header,
    energy_to_kilocalories,
    extract_rows,
    find_header_row,
    map_columns,
)

NUTTAB_ROWS = [
    ["Australian Food Composition Database - Release 2"],
    ["Nutrient values per 100 g edible portion"],
    [],
    [
        "Public Food Key",
        "Classification",
        "Food Name",
        "Energy with dietary fibre (kJ)",
        "Protein (g)",
        "Fat, total (g)",
        "Total saturated fat (g)",
        "Available carbohydrate (g)",
        "Total sugars (g)",
        "Dietary fibre (g)",
        "Sodium (Na) (mg)",
    ],
    ["F002258", "Poultry", "Chicken, breast, raw", 460, 23.3, 1.6, 0.4, 0, 0, 0, 64],
    [None, None, None, None, None, None, None, None, None, None, None],
    ["F005643", "Fruit", "Apple, red skin, raw", 50, 0.3, 0.2, 0, 12.4, 11.2, 2.1, 1],
]


def test_find_header_row_skips_preamble() -> None:
    assert find_header_row(NUTTAB_ROWS) == 3


def test_find_header_row_falls_back_to_energy_and_protein() -> None:
    rows = [["Title"], ["ENERGY kcal", "PROTEIN g", "Item"]]

    assert find_header_row(rows) == 1


def test_find_header_row_respects_scan_window() -> None:
    rows = [["filler"]] * 25 + [["Food name", "Energy", "Protein"]]

    with pytest.raises(HeaderDetectionError):
        find_header_row(rows, scan_rows=20, fallback_scan_rows=20)


def test_map_columns_prefers_specific_name_keyword() -> None:
    columns = map_columns(NUTTAB_ROWS[3])

    assert columns == {
        "name": 2,
        "category": 1,
        "energy": 3,
        "protein": 4,
        "fat": 5,
        "carbs": 7,
        "sugar": 8,
        "fiber": 9,
        "sodium": 10,
    }


def test_detect_header_requires_name_column() -> None:
    rows = [["Energy (kJ)", "Protein (g)", "Fat (g)", "Sodium (mg)"]]

    with pytest.raises(HeaderDetectionError, match="food names"):
        detect_header(rows)


def test_detect_header_requires_a_nutrient_column() -> None:
    with pytest.raises(HeaderDetectionError, match="nutritional data"):
        detect_header([["Food name", "Dietary fibre (g)", "Sodium (mg)", "Notes"]])


def test_detect_header_fails_without_header() -> None:
    with pytest.raises(HeaderDetectionError, match="header row"):
        detect_header([["a", "b"], [1, 2]])


def test_energy_to_kilocalories_threshold() -> None:
    assert energy_to_kilocalories(2000) == pytest.approx(2000 / 4.184)
    assert round(energy_to_kilocalories(2000), 1) == 478.0
    assert energy_to_kilocalories(50) == 50
    assert energy_to_kilocalories(100) == 100


def test_extract_rows_builds_raw_rows() -> None:
    match = detect_header(NUTTAB_ROWS)

    rows = extract_rows(NUTTAB_ROWS, match, brand="NUTTAB")

    assert [row.row_number for row in rows] == [5, 7]
    chicken = rows[0].values
    assert chicken["name"] == "Chicken, breast, raw"
    assert chicken["category"] == "Poultry"
    assert chicken["calories"] == pytest.approx(109.9)
    assert chicken["protein"] == 23.3
    assert chicken["sodium"] == 64
    assert chicken["brand"] == "NUTTAB"
    assert rows[1].values["calories"] == 50


def test_extract_rows_keeps_unparsable_cells_for_validation() -> None:
    match = HeaderMatch(row_index=0, columns={"name": 0, "protein": 1})
    rows = [["Food name", "Protein"], ["Mystery", "tr"]]

    extracted = extract_rows(rows, match)

    assert extracted[0].values == {"name": "Mystery", "protein": "tr", "calories": 0.0}
