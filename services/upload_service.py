"""
Upload Service - multi-photo upload: one storage upload and one ORDS create
call per file, all in flight at once
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from backend.utils.errors import ApiError, SessionExpiredError
from services.ords_proxy import OrdsProxy
from services.storage_service import StorageService

logger = logging.getLogger(__name__)


@dataclass
class PendingPhoto:
    """One validated file waiting to become a visual asset"""
    filename: str
    stored_name: str
    content: bytes
    content_type: str
    captured_at: str
    name: Optional[str] = None
    description: str = ""


@dataclass
class UploadOutcome:
    results: List[Dict[str, Any]]
    error: Optional[ApiError] = None

    @property
    def success(self) -> bool:
        return self.error is None


def asset_directory(project_id: int) -> str:
    return f"proyectos/{project_id}/activos"


def capture_timestamp(date_part: str, time_part: Optional[str] = None) -> str:
    """"YYYY-MM-DD" or "YYYY-MM-DD HH:MM" as the backend stores it"""
    date_part = date_part.strip()
    if time_part and time_part.strip():
        return f"{date_part} {time_part.strip()}"
    return date_part


class UploadService:
    """Service class for multi-file uploads"""

    def __init__(self, proxy: OrdsProxy, storage: StorageService):
        self.proxy = proxy
        self.storage = storage

    async def _upload_one(
        self,
        project_id: int,
        token: str,
        photo: PendingPhoto,
        category_id: Optional[int]
    ) -> Any:
        url = await self.storage.upload(photo.content, photo.stored_name, photo.content_type, asset_directory(project_id))
        payload = {
            "AV_NOMBRE": photo.name or photo.filename,
            "AV_DESCRIPCION": photo.description or "",
            "AV_URL": url,
            "AV_FECHA_CAPTURA": photo.captured_at,
            "AV_FILENAME": photo.filename,
            "AV_MIMETYPE": photo.content_type,
            "AV_TAMANIO": len(photo.content),
            "CT_IDCATEGORIA_FK": category_id,
            "PR_IDPROYECTO_FK": project_id,
        }
        return await self.proxy.create(
            ("proyectos", project_id, "activos"),
            token,
            payload,
            f"Error al guardar {photo.filename}",
        )

    async def upload_photos(
        self,
        project_id: int,
        token: str,
        photos: List[PendingPhoto],
        category_id: Optional[int] = None
    ) -> UploadOutcome:
        """
        Fire every file at once and wait for all of them. Files that succeed
        stay created even when others fail; the outcome carries the first
        failure in file order.

        Raises:
            SessionExpiredError: if any create call reported an invalid token
        """
        settled = await asyncio.gather(
            *(self._upload_one(project_id, token, photo, category_id) for photo in photos),
            return_exceptions=True,
        )

        results = []
        first_error: Optional[ApiError] = None
        for photo, outcome in zip(photos, settled):
            if isinstance(outcome, SessionExpiredError):
                raise outcome
            if isinstance(outcome, BaseException):
                if isinstance(outcome, ApiError):
                    error = outcome
                else:
                    logger.error(f"Unexpected error saving {photo.filename}: {outcome}", exc_info=outcome)
                    error = ApiError(f"Error al guardar {photo.filename}", status_code=500)
                logger.warning(f"Upload of {photo.filename} failed: {error.message}")
                results.append({"fileName": photo.filename, "success": False, "error": error.message})
                if first_error is None:
                    first_error = error
            else:
                results.append({"fileName": photo.filename, "success": True, "activo": outcome})

        logger.info(
            f"Project {project_id}: {sum(1 for r in results if r['success'])}/{len(results)} photos saved"
        )
        return UploadOutcome(results=results, error=first_error)
