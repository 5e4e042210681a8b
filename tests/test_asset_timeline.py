"""
Unit tests for capture-date filtering and the per-day timeline
"""
from datetime import date

from utils.asset_timeline import build_timeline, filter_assets, group_by_day, parse_capture_date


def asset(asset_id, captured, category=1):
    return {"AV_IDACTIVO_PK": asset_id, "AV_FECHA_CAPTURA": captured, "CT_IDCATEGORIA_FK": category}


def test_parse_capture_date_formats():
    assert parse_capture_date("2025-06-10") == date(2025, 6, 10)
    assert parse_capture_date("2025-06-10T14:30:00Z") == date(2025, 6, 10)
    assert parse_capture_date("2025-06-10 14:30") == date(2025, 6, 10)
    assert parse_capture_date(None) is None
    assert parse_capture_date("mañana") is None


def test_year_filter_excludes_other_years_and_missing_dates():
    assets = [asset(1, "2024-03-01"), asset(2, "2025-06-10"), asset(3, None)]

    assert [a["AV_IDACTIVO_PK"] for a in filter_assets(assets, year=2025)] == [2]
    assert [a["AV_IDACTIVO_PK"] for a in filter_assets(assets, year=2024)] == [1]
    assert filter_assets(assets, year=2023) == []


def test_category_filter_compares_numerically():
    assets = [asset(1, "2025-01-01", category="4"), asset(2, "2025-01-02", category=5)]
    assert [a["AV_IDACTIVO_PK"] for a in filter_assets(assets, year=2025, category_id=4)] == [1]


def test_group_by_day_sorts_days_and_names_months():
    days = group_by_day([asset(1, "2025-06-10"), asset(2, "2025-01-05"), asset(3, "2025-06-10T08:00:00")])

    assert [d["fecha"] for d in days] == ["2025-1-5", "2025-6-10"]
    assert days[0]["mesNombre"] == "Enero"
    assert [a["AV_IDACTIVO_PK"] for a in days[1]["activos"]] == [1, 3]


def test_build_timeline():
    assets = [
        asset(1, "2024-03-01"),
        asset(2, "2025-06-10"),
        asset(3, "2025-02-14", category=2),
        asset(4, None),
    ]
    timeline = build_timeline(assets, 2025)

    assert timeline["year"] == 2025
    assert timeline["total"] == 2
    assert timeline["years"] == [2025, 2024]
    assert timeline["months"] == [{"mes": 2, "mesNombre": "Febrero"}, {"mes": 6, "mesNombre": "Junio"}]

    only_category = build_timeline(assets, 2025, category_id=2)
    assert only_category["total"] == 1
    assert only_category["years"] == [2025]
