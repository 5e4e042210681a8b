"""
Security utilities for photo upload validation and sanitization
"""
import re
from pathlib import Path
from typing import Optional
from fastapi import UploadFile

from backend.utils.errors import ApiError
from config.settings import MAX_UPLOAD_SIZE


# Security constants
ALLOWED_MIME_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/tiff",
    "image/heic",
    "image/heif",
]

ALLOWED_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp", ".tif", ".tiff", ".heic", ".heif"]

MAX_FILE_SIZE = MAX_UPLOAD_SIZE

HEIF_BRANDS = {b"heic", b"heix", b"hevc", b"hevx", b"heim", b"heis", b"mif1", b"msf1"}


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename for use inside a bucket object path.

    Removes null bytes, directory separators and ".." sequences, then replaces
    every character outside [a-zA-Z0-9.-] with an underscore.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    if not filename:
        raise ValueError("El nombre del archivo no puede estar vacío")

    filename = filename.replace("\x00", "")
    filename = filename.replace("/", "").replace("\\", "")
    while ".." in filename:
        filename = filename.replace("..", "")

    filename = re.sub(r'[^a-zA-Z0-9.\-]', '_', filename).strip('.')

    if not filename or not filename.strip('_'):
        raise ValueError("El nombre del archivo no es válido")

    if len(filename) > 200:
        ext = Path(filename).suffix
        filename = Path(filename).stem[:200 - len(ext)] + ext

    return filename


def sanitize_directory(directory: str) -> str:
    """Bucket prefix such as "proyectos/12/activos"; no traversal, no leading slash."""
    parts = [
        re.sub(r'[^a-zA-Z0-9_\-]', '', part)
        for part in (directory or "").replace("\\", "/").split("/")
    ]
    parts = [part for part in parts if part and part not in (".", "..")]
    if not parts:
        raise ValueError("Directorio inválido")
    return "/".join(parts)


def get_file_extension(filename: str) -> str:
    return Path(filename).suffix.lower()


def validate_file_extension(filename: str) -> None:
    ext = get_file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ApiError(
            f"La extensión '{ext}' no está permitida. Extensiones permitidas: {', '.join(ALLOWED_EXTENSIONS)}",
            status_code=400
        )


def detect_mime_type_from_content(content: bytes) -> Optional[str]:
    """
    Detect an image MIME type from its signature (magic bytes).

    Returns:
        Detected MIME type or None if the content is not a known image format
    """
    if not content:
        return None

    if content[:3] == b'\xff\xd8\xff':
        return "image/jpeg"

    if content[:8] == b'\x89PNG\r\n\x1a\n':
        return "image/png"

    if content[:6] in (b'GIF87a', b'GIF89a'):
        return "image/gif"

    # WEBP: RIFF....WEBP
    if content[:4] == b'RIFF' and content[8:12] == b'WEBP':
        return "image/webp"

    if content[:4] in (b'II*\x00', b'MM\x00*'):
        return "image/tiff"

    # HEIC/HEIF: ISO base media box "ftyp" followed by the major brand
    if content[4:8] == b'ftyp' and content[8:12] in HEIF_BRANDS:
        return "image/heic" if content[8:12].startswith(b'he') else "image/heif"

    return None


def validate_file_content(content: bytes, filename: str) -> str:
    """
    Validate file content (size and image signature).

    Returns:
        The detected MIME type

    Raises:
        ApiError: If validation fails
    """
    if len(content) > MAX_FILE_SIZE:
        raise ApiError(
            f"El archivo es demasiado grande. Máximo {MAX_FILE_SIZE // (1024 * 1024)}MB",
            status_code=400
        )

    if len(content) == 0:
        raise ApiError(f"El archivo {filename} está vacío", status_code=400)

    detected_mime = detect_mime_type_from_content(content)
    if detected_mime not in ALLOWED_MIME_TYPES:
        raise ApiError(f"El archivo {filename} no es una imagen válida", status_code=400)
    return detected_mime


async def validate_uploaded_file(file: UploadFile) -> tuple[str, bytes, str]:
    """
    Comprehensive validation of an uploaded photo.

    Returns:
        Tuple of (sanitized_filename, file_content, mime_type)

    Raises:
        ApiError: If any validation fails
    """
    if not file.filename:
        raise ApiError("No se proporcionó ningún archivo", status_code=400)

    try:
        sanitized_filename = sanitize_filename(file.filename)
    except ValueError as e:
        raise ApiError(str(e), status_code=400)

    validate_file_extension(sanitized_filename)

    content = await file.read()
    mime_type = validate_file_content(content, file.filename)

    await file.seek(0)

    return sanitized_filename, content, mime_type
