"""
Visual assets router - proxies /proyectos/{id}/activos on the ORDS module,
plus the capture-date timeline and the server-side multi-photo upload
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, UploadFile

from backend.utils.errors import ApiError
from backend.utils.responses import json_response
from models.asset import ASSET_FIELDS, AssetRequest
from routers.projects_router import project_id_param
from services.ords_proxy import OrdsProxy, get_ords_proxy
from services.storage_service import StorageService, get_storage_service
from services.upload_service import PendingPhoto, UploadService, capture_timestamp
from utils.asset_timeline import build_timeline, filter_assets, parse_capture_date
from utils.security_utils import validate_uploaded_file
from utils.shared_utils import log_endpoint_event, parse_id, parse_optional_int, require_token

logger = logging.getLogger(__name__)

assets_router = APIRouter(prefix="/api/projects/{project_id}/activos", tags=["assets"])

INVALID_ASSET_IDS = "ID de proyecto o activo inválido"
INVALID_YEAR = "Año inválido"
INVALID_CATEGORY = "ID de categoría inválido"


def asset_ids_param(project_id: str, activo_id: str) -> Tuple[int, int]:
    return parse_id(project_id, INVALID_ASSET_IDS), parse_id(activo_id, INVALID_ASSET_IDS)


async def fetch_assets(proxy: OrdsProxy, project_id: int, token: str):
    return await proxy.list_records(
        ("proyectos", project_id, "activos"),
        token,
        ASSET_FIELDS,
        "Error al obtener activos visuales",
    )


@assets_router.get("")
async def list_assets(
    project_id: int = Depends(project_id_param),
    year: Optional[str] = None,
    categoria: Optional[str] = None,
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    """All assets of a project; `year` and `categoria` narrow the list when given"""
    year_filter = parse_optional_int(year, INVALID_YEAR)
    category_filter = parse_optional_int(categoria, INVALID_CATEGORY)

    assets = await fetch_assets(proxy, project_id, token)
    if year_filter is not None or category_filter is not None:
        assets = filter_assets(assets, year=year_filter, category_id=category_filter)
    return json_response(assets)


@assets_router.get("/timeline")
async def asset_timeline(
    project_id: int = Depends(project_id_param),
    year: Optional[str] = None,
    categoria: Optional[str] = None,
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    selected_year = parse_optional_int(year, INVALID_YEAR) or datetime.now().year
    category_filter = parse_optional_int(categoria, INVALID_CATEGORY)

    assets = await fetch_assets(proxy, project_id, token)
    return build_timeline(assets, selected_year, category_filter)


@assets_router.post("")
async def create_asset(
    request: AssetRequest,
    project_id: int = Depends(project_id_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    if not request.AV_URL or not request.AV_URL.strip():
        raise ApiError("AV_URL es requerido", status_code=400)
    if parse_capture_date(request.AV_FECHA_CAPTURA) is None:
        raise ApiError("AV_FECHA_CAPTURA es requerida y debe ser una fecha válida", status_code=400)

    body = request.model_dump(exclude_unset=True)
    body["PR_IDPROYECTO_FK"] = project_id

    data = await proxy.create(
        ("proyectos", project_id, "activos"),
        token,
        body,
        "Error al crear el activo visual",
    )
    log_endpoint_event("POST /api/projects/activos", details={"project_id": project_id, "url": request.AV_URL})
    return json_response(data, status=201)


@assets_router.post("/upload")
async def upload_assets(
    project_id: int = Depends(project_id_param),
    files: List[UploadFile] = File(..., alias="files[]"),
    fechas_captura: List[str] = Form(..., alias="fechas_captura[]"),
    horas_captura: Optional[List[str]] = Form(None, alias="horas_captura[]"),
    category_id: Optional[str] = Form(None, alias="CT_IDCATEGORIA_FK"),
    descripcion: Optional[str] = Form(None),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
    storage: StorageService = Depends(get_storage_service),
):
    """
    Server-side multi-photo upload.

    Every file is validated first; then one storage upload and one create call
    per file run concurrently. Successful files are kept even when others fail.
    """
    if not files:
        raise ApiError("No se proporcionaron archivos", status_code=400)
    if len(fechas_captura) < len(files):
        raise ApiError("Cada archivo necesita una fecha de captura", status_code=400)
    category = parse_optional_int(category_id, INVALID_CATEGORY)
    hours = horas_captura or []

    photos = []
    for index, file in enumerate(files):
        sanitized_filename, content, mime_type = await validate_uploaded_file(file)
        date_part = fechas_captura[index]
        if parse_capture_date(date_part) is None:
            raise ApiError(f"Fecha de captura inválida para {file.filename}", status_code=400)
        photos.append(PendingPhoto(
            filename=file.filename,
            stored_name=sanitized_filename,
            content=content,
            content_type=mime_type,
            captured_at=capture_timestamp(date_part, hours[index] if index < len(hours) else None),
            description=descripcion or "",
        ))

    outcome = await UploadService(proxy, storage).upload_photos(project_id, token, photos, category)

    log_endpoint_event(
        "POST /api/projects/activos/upload",
        result="success" if outcome.success else "partial",
        details={"project_id": project_id, "files": len(photos)},
    )
    if outcome.success:
        return json_response({"success": True, "results": outcome.results}, status=201)
    return json_response(
        {"success": False, "error": outcome.error.message, "results": outcome.results},
        status=outcome.error.status_code,
    )


@assets_router.put("/{activo_id}")
async def update_asset(
    request: AssetRequest,
    ids: Tuple[int, int] = Depends(asset_ids_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    project_id, asset_id = ids
    return await proxy.update(
        ("proyectos", project_id, "activos", asset_id),
        token,
        request.model_dump(exclude_unset=True),
        "Error al actualizar el activo visual",
    )


@assets_router.delete("/{activo_id}")
async def delete_asset(
    ids: Tuple[int, int] = Depends(asset_ids_param),
    token: str = Depends(require_token),
    proxy: OrdsProxy = Depends(get_ords_proxy),
):
    project_id, asset_id = ids
    data = await proxy.delete(
        ("proyectos", project_id, "activos", asset_id),
        token,
        "Error al eliminar el activo visual",
    )
    log_endpoint_event("DELETE /api/projects/activos", details={"project_id": project_id, "asset_id": asset_id})
    return data
