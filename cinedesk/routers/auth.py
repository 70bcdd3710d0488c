from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session
import structlog

from cinedesk.database import get_db
from cinedesk.models import User
from cinedesk.security import (
    create_token, get_current_user, hash_password, require_admin, verify_password
)

logger = structlog.get_logger(__name__)

router = APIRouter()


class RegisterInput(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6)


class LoginInput(BaseModel):
    username: str
    password: str


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    role: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


def send_token(request: Request, response: Response, user: User) -> dict:
    settings = request.app.state.settings
    token = create_token(user.id, settings)
    response.set_cookie(
        settings.cookie_name,
        token,
        max_age=settings.jwt_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
    )
    return {"success": True, "token": token, "data": UserOut.model_validate(user)}


@router.post("/register", status_code=201)
def register(item: RegisterInput, request: Request, response: Response, db: Session = Depends(get_db)):
    taken = db.query(User).filter(
        (User.username == item.username) | (User.email == item.email)
    ).first()
    if taken:
        raise HTTPException(400, "Username or email is already registered")

    user = User(
        username=item.username,
        email=item.email,
        password=hash_password(item.password),
        role="user",
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("user_registered", user_id=user.id)
    return send_token(request, response, user)


@router.post("/login")
def login(item: LoginInput, request: Request, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == item.username).first()
    if not user or not verify_password(item.password, user.password):
        raise HTTPException(401, "Invalid credentials")

    return send_token(request, response, user)


@router.get("/logout")
def logout(request: Request, response: Response):
    response.delete_cookie(request.app.state.settings.cookie_name)
    return {"success": True, "message": "Logged out"}


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"success": True, "data": UserOut.model_validate(user)}


@router.get("/user", dependencies=[Depends(require_admin)])
def get_users(db: Session = Depends(get_db)):
    users = db.query(User).order_by(User.id).all()
    return {
        "success": True,
        "count": len(users),
        "data": [UserOut.model_validate(u) for u in users],
    }


@router.delete("/user/{user_id}", dependencies=[Depends(require_admin)])
def delete_user(user_id: int, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(404, f"User {user_id} not found")

    db.delete(user)
    db.commit()
    return {"success": True, "message": f"User {user_id} deleted"}
