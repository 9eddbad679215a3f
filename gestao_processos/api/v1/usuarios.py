import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from gestao_processos.api.v1.serializers import serialize_usuario
from gestao_processos.core.security import require_permissoes
from gestao_processos.db import models
from gestao_processos.db.session import get_db
from gestao_processos.services.paginacao import paginar
from gestao_processos.services.transacao import commit

router = APIRouter(tags=["Usuarios"])
logger = logging.getLogger("gestao_processos.usuarios")


def _validar_permissao(value: str | None) -> str | None:
    if value is None:
        return value
    value = value.strip().upper()
    if value not in models.PERMISSOES:
        raise ValueError(f"Permissao invalida. Use uma de: {', '.join(models.PERMISSOES)}")
    return value


class UsuarioCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nome: str = Field(..., min_length=3)
    nome_social: str | None = None
    login: str = Field(..., min_length=3)
    email: str = Field(..., min_length=3)
    permissao: str = "USR"
    unidade_id: str

    @field_validator("permissao")
    @classmethod
    def validar_permissao(cls, value: str | None) -> str | None:
        return _validar_permissao(value)


class UsuarioUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nome: str | None = Field(default=None, min_length=3)
    nome_social: str | None = None
    login: str | None = Field(default=None, min_length=3)
    email: str | None = Field(default=None, min_length=3)
    permissao: str | None = None
    unidade_id: str | None = None

    @field_validator("permissao")
    @classmethod
    def validar_permissao(cls, value: str | None) -> str | None:
        return _validar_permissao(value)


def _get_usuario(db: Session, usuario_id: str) -> models.Usuario:
    usuario = db.query(models.Usuario).filter(models.Usuario.id == usuario_id).first()
    if not usuario:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario nao encontrado")
    return usuario


def _ensure_unique(db: Session, login: str | None, email: str | None, ignorar_id: str | None = None) -> None:
    filtros = []
    if login:
        filtros.append(func.lower(models.Usuario.login) == login.strip().lower())
    if email:
        filtros.append(func.lower(models.Usuario.email) == email.strip().lower())
    if not filtros:
        return
    query = db.query(models.Usuario).filter(or_(*filtros))
    if ignorar_id:
        query = query.filter(models.Usuario.id != ignorar_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Login ou email ja cadastrado")


def _ensure_unidade(db: Session, unidade_id: str) -> None:
    unidade = db.query(models.Unidade).filter(models.Unidade.id == unidade_id).first()
    if not unidade:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unidade informada nao existe")


def _permissao_efetiva(current_user: models.Usuario, solicitada: str) -> str:
    if solicitada == "DEV" and current_user.permissao != "DEV":
        logger.info("permissao DEV rebaixada para ADM solicitante=%s", current_user.id)
        return "ADM"
    return solicitada


def _ensure_pode_gerenciar(current_user: models.Usuario, alvo: models.Usuario) -> None:
    if alvo.permissao == "DEV" and current_user.permissao != "DEV":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permissao negada")


@router.get("/usuarios")
def list_usuarios(
    pagina: int | None = Query(default=None),
    limite: int | None = Query(default=None),
    busca: str | None = Query(default=None),
    status_filtro: str | None = Query(default=None, alias="status"),
    permissao: str | None = Query(default=None),
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    query = db.query(models.Usuario)
    if busca:
        like = f"%{busca.strip()}%"
        query = query.filter(
            or_(
                models.Usuario.nome.ilike(like),
                models.Usuario.login.ilike(like),
                models.Usuario.email.ilike(like),
            )
        )
    if status_filtro == "ativo":
        query = query.filter(models.Usuario.ativo.is_(True))
    elif status_filtro == "inativo":
        query = query.filter(models.Usuario.ativo.is_(False))
    if permissao:
        query = query.filter(models.Usuario.permissao == permissao.upper())
    return paginar(query.order_by(models.Usuario.nome.asc()), pagina, limite, serialize_usuario)


@router.get("/usuarios/{usuario_id}")
def get_usuario(
    usuario_id: str,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    return serialize_usuario(_get_usuario(db, usuario_id))


@router.post("/usuarios", status_code=status.HTTP_201_CREATED)
def create_usuario(
    payload: UsuarioCreate,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    _ensure_unique(db, payload.login, payload.email)
    _ensure_unidade(db, payload.unidade_id)
    usuario = models.Usuario(
        nome=payload.nome.strip(),
        nome_social=payload.nome_social,
        login=payload.login.strip().lower(),
        email=payload.email.strip().lower(),
        permissao=_permissao_efetiva(current_user, payload.permissao),
        unidade_id=payload.unidade_id,
    )
    db.add(usuario)
    commit(db, "Nao foi possivel criar o usuario.")
    db.refresh(usuario)
    return serialize_usuario(usuario)


@router.patch("/usuarios/{usuario_id}")
def update_usuario(
    usuario_id: str,
    payload: UsuarioUpdate,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    usuario = _get_usuario(db, usuario_id)
    _ensure_pode_gerenciar(current_user, usuario)
    _ensure_unique(db, payload.login, payload.email, ignorar_id=usuario.id)
    if payload.unidade_id is not None:
        _ensure_unidade(db, payload.unidade_id)
        usuario.unidade_id = payload.unidade_id
    if payload.nome is not None:
        usuario.nome = payload.nome.strip()
    if "nome_social" in payload.model_fields_set:
        usuario.nome_social = payload.nome_social
    if payload.login is not None:
        usuario.login = payload.login.strip().lower()
    if payload.email is not None:
        usuario.email = payload.email.strip().lower()
    if payload.permissao is not None:
        usuario.permissao = _permissao_efetiva(current_user, payload.permissao)
    commit(db, "Nao foi possivel atualizar o usuario.")
    db.refresh(usuario)
    return serialize_usuario(usuario)


@router.delete("/usuarios/{usuario_id}")
def delete_usuario(
    usuario_id: str,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    usuario = _get_usuario(db, usuario_id)
    if usuario.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Nao e possivel desativar o proprio usuario"
        )
    _ensure_pode_gerenciar(current_user, usuario)
    usuario.ativo = False
    commit(db, "Nao foi possivel desativar o usuario.")
    return {"removido": True}


@router.patch("/usuarios/{usuario_id}/autorizar")
def autorizar_usuario(
    usuario_id: str,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    usuario = _get_usuario(db, usuario_id)
    _ensure_pode_gerenciar(current_user, usuario)
    usuario.ativo = True
    commit(db, "Nao foi possivel autorizar o usuario.")
    db.refresh(usuario)
    return serialize_usuario(usuario)
