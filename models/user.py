from typing import Optional
from pydantic import BaseModel

# RL_IDROL_FK of the ADMINISTRADOR role
ADMIN_ROLE_ID = 1


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
