"""
Project models
"""
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict

PROJECT_FIELDS = (
    "PR_IDPROYECTO_PK",
    "PR_NOMBRE",
    "PR_DESCRIPCION",
    "PR_UBICACION",
    "PR_LATITUD",
    "PR_LONGITUD",
    "PR_FOTO_PORTADA_URL",
    "PR_FECHA_INICIO",
    "PR_FECHA_FIN",
    "PR_ACTIVO",
    "TOTAL_ACTIVOS",
    "TOTAL_CATEGORIAS",
    "ULTIMA_ACTUALIZACION",
)

# Aggregates computed by the backend; missing means zero
PROJECT_COUNT_FIELDS = ("TOTAL_ACTIVOS", "TOTAL_CATEGORIAS")


class ProjectRequest(BaseModel):
    """Body for project create/update; unknown columns are forwarded as-is"""
    model_config = ConfigDict(extra="allow")

    PR_NOMBRE: Optional[str] = None
    PR_DESCRIPCION: Optional[str] = None
    PR_UBICACION: Optional[str] = None
    PR_LATITUD: Optional[Union[float, str]] = None
    PR_LONGITUD: Optional[Union[float, str]] = None
    PR_FOTO_PORTADA_URL: Optional[str] = None
    PR_FECHA_INICIO: Optional[str] = None
    PR_FECHA_FIN: Optional[str] = None
    PR_ACTIVO: Optional[str] = None
