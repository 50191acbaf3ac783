# hapa/services/auth_service.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from hapa.core.security import check_password, hash_password
from hapa.models.enums import UserRole
from hapa.models.user import User
from hapa.policies.rbac import Principal


def authenticate(db: Session, email: str, password: str) -> Principal | None:
    user = db.execute(
        select(User).where(User.email == email.lower(), User.is_active.is_(True))
    ).scalar_one_or_none()

    if not user:
        return None

    ok, new_hash = check_password(password, user.password_hash)
    if not ok:
        return None
    if new_hash:
        user.password_hash = new_hash
        db.commit()

    return Principal(
        user_id=str(user.id),
        email=user.email,
        role=UserRole(user.role),
        display_name=user.name or user.email,
    )


def create_user(db: Session, email: str, password: str, *, name: str = "", role: UserRole = UserRole.ADMIN) -> User:
    user = User(email=email.lower(), name=name, password_hash=hash_password(password), role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def overwrite_password(db: Session, email: str, new_password: str) -> bool:
    user = db.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()
    if not user:
        return False

    user.password_hash = hash_password(new_password)
    db.commit()
    return True
