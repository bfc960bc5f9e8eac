from typing import Optional

from sqlalchemy.orm import Session

from cleanova.core.security import get_password_hash, verify_password
from cleanova.models.user import User


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Obtiene un usuario por su email.
    """
    return db.query(User).filter(User.email == email).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Autentica un usuario verificando email y contraseña.
    """
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def create_user(
    db: Session,
    email: str,
    password: str = None,
    full_name: str = None,
    is_subscribed: bool = False,
    hashed_password: str = None,
) -> User:
    """
    Crea un nuevo usuario.
    Puede aceptar password plano O hashed_password (no ambos).
    """
    if hashed_password is None:
        if password is None:
            raise ValueError("Debe proporcionar password o hashed_password")
        hashed_password = get_password_hash(password)

    db_user = User(
        email=email,
        full_name=full_name or email.split("@")[0],
        hashed_password=hashed_password,
        is_active=True,
        is_subscribed=is_subscribed,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def set_subscription(db: Session, user: User, is_subscribed: bool) -> User:
    user.is_subscribed = is_subscribed
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_active_subscriber_id(db: Session, user_id: int) -> Optional[int]:
    """
    Devuelve el ID si el usuario sigue existiendo, activo y suscrito.
    """
    user = get_user(db, user_id)
    if user is None or not user.is_active or not user.is_subscribed:
        return None
    return user.id
