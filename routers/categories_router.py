"""
Categories router - proxies /proyectos/{id}/categorias on the ORDS module
"""
import logging
from typing import Tuple

from fastapi import APIRouter, Depends

from backend.utils.errors import ApiError
from backend.utils.responses import json_response
from models.category import CATEGORY_FIELDS, CATEGORY_ICONS, CategoryRequest
from routers.projects_router import project_id_param
from services.ords_proxy import OrdsProxy, get_ords_proxy
from utils.shared_utils import log_endpoint_event, parse_id, require_token

logger = logging.getLogger(__name__)

categories_router = APIRouter(prefix="/api/projects/{project_id}/categorias", tags=["categories"])

INVALID_CATEGORY_IDS = "ID de proyecto o categoría inválido"


def category_ids_param(project_id: str, categoria_id: str) -> Tuple[int, int]:
    return parse_id(project_id, INVALID_CATEGORY_IDS), parse_id(categoria_id, INVALID_CATEGORY_IDS)


def validate_icon(request: CategoryRequest) -> None:
    if request.CT_ICONO is not None and request.CT_ICONO not in CATEGORY_ICONS:
        raise ApiError(
            f"CT_ICONO inválido. Valores permitidos: {', '.join(CATEGORY_ICONS)}",
            status_code=400
        )


@categories_router.get("")
async def list_categories(
    project_id: int = Depends(project_id_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    categories = await proxy.list_records(
        ("proyectos", project_id, "categorias"),
        token,
        CATEGORY_FIELDS,
        "Error al obtener categorías",
    )
    logger.debug(f"Categories for project {project_id}: {len(categories)}")
    return json_response(categories)


@categories_router.post("")
async def create_category(
    request: CategoryRequest,
    project_id: int = Depends(project_id_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    """Create a category; the owning project always comes from the URL"""
    if not request.CT_NOMBRE or not request.CT_NOMBRE.strip():
        raise ApiError("CT_NOMBRE es requerido", status_code=400)
    validate_icon(request)

    body = request.model_dump(exclude_unset=True)
    body["PR_IDPROYECTO_FK"] = project_id

    data = await proxy.create(
        ("proyectos", project_id, "categorias"),
        token,
        body,
        "Error al crear la categoría",
    )
    log_endpoint_event("POST /api/projects/categorias", details={"project_id": project_id, "nombre": request.CT_NOMBRE})
    return json_response(data, status=201)


@categories_router.put("/{categoria_id}")
async def update_category(
    request: CategoryRequest,
    ids: Tuple[int, int] = Depends(category_ids_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    validate_icon(request)
    project_id, category_id = ids
    return await proxy.update(
        ("proyectos", project_id, "categorias", category_id),
        token,
        request.model_dump(exclude_unset=True),
        "Error al actualizar la categoría",
    )


@categories_router.delete("/{categoria_id}")
async def delete_category(
    ids: Tuple[int, int] = Depends(category_ids_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    project_id, category_id = ids
    data = await proxy.delete(
        ("proyectos", project_id, "categorias", category_id),
        token,
        "Error al eliminar la categoría",
        soft_delete_body={"CT_ACTIVO": "NO"},
    )
    log_endpoint_event("DELETE /api/projects/categorias", details={"project_id": project_id, "category_id": category_id})
    return data
