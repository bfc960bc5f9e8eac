from typing import Optional

from pydantic import BaseModel, ConfigDict


class Token(BaseModel):
    """
    Schema para el token de acceso devuelto por la API.
    """
    access_token: str
    token_type: str


class TokenPayload(BaseModel):
    """
    Schema para el payload del token JWT.
    """
    sub: Optional[str] = None


class UserOut(BaseModel):
    """
    Schema público del usuario autenticado.
    """
    id: int
    email: str
    full_name: Optional[str] = None
    is_subscribed: bool

    model_config = ConfigDict(from_attributes=True)


class SubscribeInfo(BaseModel):
    message: str
    home: str = "/"
