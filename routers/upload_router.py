"""
Upload router - single photo upload to the storage bucket and the browser
credentials for direct uploads
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from backend.utils.errors import ApiError
from backend.utils.responses import success_response
from config.settings import DEFAULT_UPLOAD_DIRECTORY
from services.storage_service import StorageService, browser_credentials, get_storage_service
from utils.security_utils import sanitize_directory, validate_uploaded_file
from utils.shared_utils import log_endpoint_event, require_token

logger = logging.getLogger(__name__)

upload_router = APIRouter(prefix="/api/upload", tags=["upload"])


@upload_router.post("")
async def upload_file(
    file: UploadFile = File(...),
    directorio: Optional[str] = Form(None),
    token: str = Depends(require_token),
    storage: StorageService = Depends(get_storage_service),
):
    """
    Upload one photo to the bucket and return its public URL.

    Security validations:
    - Filename sanitization (no path traversal)
    - Extension whitelist
    - Size limit (10MB)
    - Image signature check
    """
    sanitized_filename, file_content, mime_type = await validate_uploaded_file(file)
    try:
        directory = sanitize_directory(directorio or DEFAULT_UPLOAD_DIRECTORY)
    except ValueError as e:
        raise ApiError(str(e), status_code=400)

    url = await storage.upload(file_content, sanitized_filename, mime_type, directory)

    log_endpoint_event("POST /api/upload", details={"filename": sanitized_filename, "size": len(file_content)})
    return success_response(
        data={
            "url": url,
            "fileName": file.filename,
            "size": len(file_content),
            "contentType": mime_type,
        },
        message="Archivo subido correctamente",
    )


@upload_router.post("/credentials")
async def upload_credentials(token: str = Depends(require_token)):
    """Firebase web config for authenticated browsers"""
    return success_response(data={"credentials": browser_credentials()})
