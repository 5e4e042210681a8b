"""
Category models
"""
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict

CATEGORY_FIELDS = (
    "CT_IDCATEGORIA_PK",
    "PR_IDPROYECTO_FK",
    "CT_NOMBRE",
    "CT_DESCRIPCION",
    "CT_ICONO",
    "CT_COLOR",
    "CT_ORDEN",
    "CT_ACTIVO",
)

CATEGORY_ICONS = ("folder", "camera", "building", "map-pin", "package", "drone")


class CategoryRequest(BaseModel):
    """Body for category create/update"""
    model_config = ConfigDict(extra="allow")

    CT_NOMBRE: Optional[str] = None
    CT_DESCRIPCION: Optional[str] = None
    CT_ICONO: Optional[str] = None
    CT_COLOR: Optional[str] = None
    CT_ORDEN: Optional[Union[int, str]] = None
    CT_ACTIVO: Optional[str] = None
