from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from gestao_processos.api.v1.serializers import serialize_unidade
from gestao_processos.core.security import require_permissoes
from gestao_processos.db import models
from gestao_processos.db.session import get_db
from gestao_processos.services.paginacao import paginar
from gestao_processos.services.transacao import commit

router = APIRouter(tags=["Unidades"])


class UnidadeCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nome: str = Field(..., min_length=3)
    sigla: str = Field(..., min_length=2, max_length=20)

    @field_validator("sigla")
    @classmethod
    def normalizar_sigla(cls, value: str | None) -> str | None:
        return value.strip().upper() if value is not None else value


class UnidadeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nome: str | None = Field(default=None, min_length=3)
    sigla: str | None = Field(default=None, min_length=2, max_length=20)
    ativo: bool | None = None

    @field_validator("sigla")
    @classmethod
    def normalizar_sigla(cls, value: str | None) -> str | None:
        return value.strip().upper() if value is not None else value


def _get_unidade(db: Session, unidade_id: str) -> models.Unidade:
    unidade = db.query(models.Unidade).filter(models.Unidade.id == unidade_id).first()
    if not unidade:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unidade nao encontrada")
    return unidade


def _ensure_unique(db: Session, nome: str | None, sigla: str | None, ignorar_id: str | None = None) -> None:
    filtros = []
    if nome:
        filtros.append(func.lower(models.Unidade.nome) == nome.strip().lower())
    if sigla:
        filtros.append(models.Unidade.sigla == sigla)
    if not filtros:
        return
    query = db.query(models.Unidade).filter(or_(*filtros))
    if ignorar_id:
        query = query.filter(models.Unidade.id != ignorar_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Ja existe uma unidade com este nome ou sigla",
        )


def _ensure_pode_desativar(db: Session, unidade: models.Unidade) -> None:
    usuarios = (
        db.query(models.Usuario)
        .filter(models.Usuario.unidade_id == unidade.id, models.Usuario.ativo.is_(True))
        .count()
    )
    processos = (
        db.query(models.Processo)
        .filter(models.Processo.unidade_id == unidade.id, models.Processo.ativo.is_(True))
        .count()
    )
    if usuarios or processos:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Unidade possui {usuarios} usuario(s) e {processos} processo(s) ativo(s) "
                "e nao pode ser desativada"
            ),
        )


@router.get("/unidades")
def list_unidades(
    pagina: int | None = Query(default=None),
    limite: int | None = Query(default=None),
    busca: str | None = Query(default=None),
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    query = db.query(models.Unidade)
    if busca:
        like = f"%{busca.strip()}%"
        query = query.filter(or_(models.Unidade.nome.ilike(like), models.Unidade.sigla.ilike(like)))
    return paginar(query.order_by(models.Unidade.nome.asc()), pagina, limite, serialize_unidade)


@router.get("/unidades/lista-completa")
def list_unidades_completa(
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    unidades = (
        db.query(models.Unidade)
        .filter(models.Unidade.ativo.is_(True))
        .order_by(models.Unidade.nome.asc())
        .all()
    )
    return [serialize_unidade(unidade) for unidade in unidades]


@router.get("/unidades/{unidade_id}")
def get_unidade(
    unidade_id: str,
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    return serialize_unidade(_get_unidade(db, unidade_id))


@router.post("/unidades", status_code=status.HTTP_201_CREATED)
def create_unidade(
    payload: UnidadeCreate,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    _ensure_unique(db, payload.nome, payload.sigla)
    unidade = models.Unidade(nome=payload.nome.strip(), sigla=payload.sigla)
    db.add(unidade)
    commit(db, "Nao foi possivel criar a unidade.")
    db.refresh(unidade)
    return serialize_unidade(unidade)


@router.patch("/unidades/{unidade_id}")
def update_unidade(
    unidade_id: str,
    payload: UnidadeUpdate,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    unidade = _get_unidade(db, unidade_id)
    _ensure_unique(db, payload.nome, payload.sigla, ignorar_id=unidade.id)
    if payload.nome is not None:
        unidade.nome = payload.nome.strip()
    if payload.sigla is not None:
        unidade.sigla = payload.sigla
    if payload.ativo is not None and payload.ativo != unidade.ativo:
        if not payload.ativo:
            _ensure_pode_desativar(db, unidade)
        unidade.ativo = payload.ativo
    commit(db, "Nao foi possivel atualizar a unidade.")
    db.refresh(unidade)
    return serialize_unidade(unidade)


@router.delete("/unidades/{unidade_id}")
def delete_unidade(
    unidade_id: str,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    unidade = _get_unidade(db, unidade_id)
    _ensure_pode_desativar(db, unidade)
    unidade.ativo = False
    commit(db, "Nao foi possivel desativar a unidade.")
    return {"removido": True}
