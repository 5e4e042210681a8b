"""
Stats router - dashboard counters derived from the project listing
"""
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from routers.projects_router import fetch_projects
from services.ords_proxy import OrdsProxy, get_ords_proxy
from utils.shared_utils import require_token

logger = logging.getLogger(__name__)

stats_router = APIRouter(prefix="/api/stats", tags=["stats"])


def _count(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def project_stats(projects: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "totalProjects": len(projects),
        "totalFiles": sum(_count(p.get("TOTAL_ACTIVOS")) for p in projects),
        "totalCategories": sum(_count(p.get("TOTAL_CATEGORIAS")) for p in projects),
        "activeProjects": sum(1 for p in projects if p.get("PR_ACTIVO") == "SI"),
        "assetsByProject": [
            {
                "projectId": p.get("PR_IDPROYECTO_PK"),
                "projectName": p.get("PR_NOMBRE"),
                "files": _count(p.get("TOTAL_ACTIVOS")),
            }
            for p in projects
        ],
    }


@stats_router.get("")
async def get_stats(
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    stats = project_stats(await fetch_projects(proxy, token))
    logger.debug(f"Stats: {stats['totalProjects']} projects, {stats['totalFiles']} files")
    return stats
