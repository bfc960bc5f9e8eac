# cleanova/api/v1/endpoints/auth.py
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from cleanova.core import security
from cleanova.core.config import settings
from cleanova.core.deps import SUBSCRIBE_INFO_PATH, get_current_user
from cleanova.crud import crud_user
from cleanova.db.session import get_db
from cleanova.models.user import User
from cleanova.schemas.token import SubscribeInfo, Token, UserOut

router = APIRouter()
logger = logging.getLogger("cleanova.api.auth")


@router.post("/auth/token", response_model=Token, summary="Autenticación con Email y Contraseña")
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)
):
    """
    Emite un JWT solo para usuarios activos con suscripción vigente.
    """
    user = crud_user.authenticate_user(db, email=form_data.username, password=form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email o contraseña incorrectos",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    if not user.is_subscribed:
        logger.info(f"Login rechazado sin suscripción: {user.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Subscription required",
                "subscribe_info": SUBSCRIBE_INFO_PATH,
            },
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = security.create_access_token(
        subject=user.email, expires_delta=access_token_expires
    )
    logger.info(f"Login exitoso: {user.email}")
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/auth/me", response_model=UserOut, summary="Usuario autenticado")
def read_current_user(user: User = Depends(get_current_user)):
    return user


@router.get("/subscribe-info", response_model=SubscribeInfo, summary="Información de suscripción")
def subscribe_info():
    return SubscribeInfo(
        message="Necesitas una suscripción activa para acceder a nuestro contenido de video."
    )
