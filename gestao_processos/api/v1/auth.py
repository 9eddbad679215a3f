from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from gestao_processos.api.v1.serializers import serialize_usuario
from gestao_processos.core.security import build_token_payload, create_access_token, get_current_user
from gestao_processos.db import models
from gestao_processos.db.session import get_db

router = APIRouter(tags=["Usuario"])
local_router = APIRouter(tags=["Auth"])


class LoginRequest(BaseModel):
    usuario: str
    senha: str | None = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str
    permissao: str


@router.get("/me")
def get_me(current_user: models.Usuario = Depends(get_current_user)):
    return serialize_usuario(current_user)


def _authenticate_local(db: Session, username: str) -> models.Usuario:
    """
    Resolve o usuario pelo login ou email. A validacao de senha fica com o
    servico de diretorio, que nao e consultado neste modo.
    """
    normalized = username.strip().lower()
    usuario = (
        db.query(models.Usuario)
        .filter(
            or_(
                func.lower(models.Usuario.login) == normalized,
                func.lower(models.Usuario.email) == normalized,
            )
        )
        .first()
    )
    if not usuario:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuario nao encontrado")
    if not usuario.ativo:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Usuario inativo")
    usuario.ultimo_login = datetime.now()
    db.commit()
    return usuario


def _token_response(usuario: models.Usuario) -> dict:
    token = create_access_token(build_token_payload(usuario))
    return {"access_token": token, "token_type": "bearer", "permissao": usuario.permissao}


@local_router.post("/auth/login", response_model=LoginResponse, summary="Login local (desenvolvimento)")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    return _token_response(_authenticate_local(db, payload.usuario))


@local_router.post(
    "/auth/token",
    response_model=LoginResponse,
    summary="Login para Swagger (OAuth2PasswordBearer)",
)
def login_swagger(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    return _token_response(_authenticate_local(db, form_data.username))
