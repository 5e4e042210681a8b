"""
Capture-date filtering and grouping of visual assets for the timeline views
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

MONTH_NAMES = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
]


def parse_capture_date(value: Any) -> Optional[date]:
    """
    Parse AV_FECHA_CAPTURA. ORDS sends either "YYYY-MM-DD", "YYYY-MM-DD HH:MM[:SS]"
    or an ISO timestamp with a trailing Z. Returns None when unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def filter_assets(
    assets: List[Dict[str, Any]],
    year: Optional[int] = None,
    category_id: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Keep assets with a parseable capture date whose year is `year` and, when
    given, whose CT_IDCATEGORIA_FK is `category_id`. Order is preserved.
    """
    result = []
    for asset in assets:
        captured = parse_capture_date(asset.get("AV_FECHA_CAPTURA"))
        if captured is None:
            continue
        if year is not None and captured.year != year:
            continue
        if category_id is not None and _as_int(asset.get("CT_IDCATEGORIA_FK")) != category_id:
            continue
        result.append(asset)
    return result


def group_by_day(assets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group assets by capture day, days in chronological order."""
    groups: Dict[date, Dict[str, Any]] = {}
    for asset in assets:
        captured = parse_capture_date(asset.get("AV_FECHA_CAPTURA"))
        if captured is None:
            continue
        group = groups.get(captured)
        if group is None:
            group = groups[captured] = {
                "fecha": f"{captured.year}-{captured.month}-{captured.day}",
                "anio": captured.year,
                "mes": captured.month,
                "dia": captured.day,
                "mesNombre": MONTH_NAMES[captured.month - 1],
                "activos": [],
            }
        group["activos"].append(asset)
    return [groups[key] for key in sorted(groups)]


def months_with_photos(assets: List[Dict[str, Any]]) -> List[int]:
    months = {
        captured.month
        for captured in (parse_capture_date(a.get("AV_FECHA_CAPTURA")) for a in assets)
        if captured is not None
    }
    return sorted(months)


def years_with_photos(assets: List[Dict[str, Any]]) -> List[int]:
    """Distinct capture years, newest first."""
    years = {
        captured.year
        for captured in (parse_capture_date(a.get("AV_FECHA_CAPTURA")) for a in assets)
        if captured is not None
    }
    return sorted(years, reverse=True)


def build_timeline(
    assets: List[Dict[str, Any]],
    year: int,
    category_id: Optional[int] = None
) -> Dict[str, Any]:
    """Timeline payload for one year (and optionally one category)."""
    in_category = filter_assets(assets, category_id=category_id)
    selected = filter_assets(in_category, year=year)
    return {
        "year": year,
        "categoryId": category_id,
        "total": len(selected),
        "years": years_with_photos(in_category),
        "months": [
            {"mes": month, "mesNombre": MONTH_NAMES[month - 1]}
            for month in months_with_photos(selected)
        ],
        "days": group_by_day(selected),
    }
