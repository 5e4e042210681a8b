"""
Projects router - proxies /proyectos on the ORDS module
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from backend.utils.errors import ApiError
from backend.utils.responses import json_response
from models.project import PROJECT_COUNT_FIELDS, PROJECT_FIELDS, ProjectRequest
from services.ords_proxy import OrdsProxy, get_ords_proxy
from utils.shared_utils import log_endpoint_event, optional_token, parse_id, require_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])

INVALID_PROJECT_ID = "ID de proyecto inválido"


def project_id_param(project_id: str) -> int:
    return parse_id(project_id, INVALID_PROJECT_ID)


async def fetch_projects(proxy: OrdsProxy, token: str):
    return await proxy.list_records(
        ("proyectos",),
        token,
        PROJECT_FIELDS,
        "Error al obtener proyectos",
        zero_defaults=PROJECT_COUNT_FIELDS,
    )


@router.get("")
async def list_projects(
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    projects = await fetch_projects(proxy, token)
    if projects:
        first = projects[0]
        logger.debug(f"First project transformed: id={first['PR_IDPROYECTO_PK']} nombre={first['PR_NOMBRE']}")
    return json_response(projects)


@router.post("")
async def create_project(
    request: ProjectRequest,
    token: Optional[str] = Depends(optional_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    """Create a project; the session token is forwarded only when present"""
    if not request.PR_NOMBRE or not request.PR_NOMBRE.strip():
        raise ApiError("El nombre del proyecto es requerido", status_code=400)

    data = await proxy.create(
        ("proyectos",),
        token,
        request.model_dump(exclude_unset=True),
        "Error al crear el proyecto",
    )
    log_endpoint_event("POST /api/projects", details={"nombre": request.PR_NOMBRE})
    return json_response(data, status=201)


@router.get("/{project_id}")
async def get_project(
    project_id: int = Depends(project_id_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    """Single project, picked from the normalized listing"""
    for project in await fetch_projects(proxy, token):
        try:
            if int(project["PR_IDPROYECTO_PK"]) == project_id:
                return project
        except (TypeError, ValueError):
            continue
    raise ApiError("Proyecto no encontrado", status_code=404)


@router.put("/{project_id}")
async def update_project(
    request: ProjectRequest,
    project_id: int = Depends(project_id_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    return await proxy.update(
        ("proyectos", project_id),
        token,
        request.model_dump(exclude_unset=True),
        "Error al actualizar el proyecto",
    )


@router.delete("/{project_id}")
async def delete_project(
    project_id: int = Depends(project_id_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    data = await proxy.delete(
        ("proyectos", project_id),
        token,
        "Error al eliminar el proyecto",
        soft_delete_body={"PR_ACTIVO": "NO"},
    )
    log_endpoint_event("DELETE /api/projects", details={"project_id": project_id})
    return data
