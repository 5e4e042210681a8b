"""
Visual asset models
"""
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict

ASSET_FIELDS = (
    "AV_IDACTIVO_PK",
    "PR_IDPROYECTO_FK",
    "CT_IDCATEGORIA_FK",
    "AV_NOMBRE",
    "AV_DESCRIPCION",
    "AV_URL",
    "AV_FECHA_CAPTURA",
    "AV_FECHA_CARGA",
    "AV_FILENAME",
    "AV_MIMETYPE",
    "AV_TAMANIO",
)


class AssetRequest(BaseModel):
    """Body for visual asset create/update"""
    model_config = ConfigDict(extra="allow")

    AV_NOMBRE: Optional[str] = None
    AV_DESCRIPCION: Optional[str] = None
    AV_URL: Optional[str] = None
    AV_FECHA_CAPTURA: Optional[str] = None
    AV_FILENAME: Optional[str] = None
    AV_MIMETYPE: Optional[str] = None
    AV_TAMANIO: Optional[int] = None
    CT_IDCATEGORIA_FK: Optional[Union[int, str]] = None
