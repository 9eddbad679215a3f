from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from gestao_processos.api.v1.serializers import serialize_interessado
from gestao_processos.core.security import require_permissoes
from gestao_processos.db import models
from gestao_processos.db.session import get_db
from gestao_processos.services.paginacao import paginar
from gestao_processos.services.transacao import commit

router = APIRouter(tags=["Interessados"])

LIMITE_BUSCA = 10
TAMANHO_MINIMO_TERMO = 2


class InteressadoPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    valor: str = Field(..., min_length=3, max_length=255)


def _get_interessado(db: Session, interessado_id: str) -> models.Interessado:
    interessado = db.query(models.Interessado).filter(models.Interessado.id == interessado_id).first()
    if not interessado:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interessado nao encontrado")
    return interessado


def _ensure_unique(db: Session, valor: str, ignorar_id: str | None = None) -> None:
    query = db.query(models.Interessado).filter(func.lower(models.Interessado.valor) == valor.lower())
    if ignorar_id:
        query = query.filter(models.Interessado.id != ignorar_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Interessado ja cadastrado")


@router.get("/interessados")
def list_interessados(
    pagina: int | None = Query(default=None),
    limite: int | None = Query(default=None),
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    query = db.query(models.Interessado).order_by(models.Interessado.valor.asc())
    return paginar(query, pagina, limite, serialize_interessado)


def _lista_completa(db: Session) -> list[dict]:
    interessados = db.query(models.Interessado).order_by(models.Interessado.valor.asc()).all()
    return [serialize_interessado(interessado) for interessado in interessados]


@router.get("/interessados/lista-completa")
def lista_completa_interessados(
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    return _lista_completa(db)


@router.get("/interessados/autocomplete")
def autocomplete_interessados(
    termo: str = Query(default=""),
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    termo = termo.strip()
    if len(termo) < TAMANHO_MINIMO_TERMO:
        return _lista_completa(db)
    interessados = (
        db.query(models.Interessado)
        .filter(models.Interessado.valor.ilike(f"%{termo}%"))
        .order_by(models.Interessado.valor.asc())
        .limit(LIMITE_BUSCA)
        .all()
    )
    return [serialize_interessado(interessado) for interessado in interessados]


@router.get("/interessados/{interessado_id}")
def get_interessado(
    interessado_id: str,
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    return serialize_interessado(_get_interessado(db, interessado_id))


@router.post("/interessados", status_code=status.HTTP_201_CREATED)
def create_interessado(
    payload: InteressadoPayload,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    valor = payload.valor.strip()
    _ensure_unique(db, valor)
    interessado = models.Interessado(valor=valor)
    db.add(interessado)
    commit(db, "Nao foi possivel criar o interessado.")
    db.refresh(interessado)
    return serialize_interessado(interessado)


@router.patch("/interessados/{interessado_id}")
def update_interessado(
    interessado_id: str,
    payload: InteressadoPayload,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    interessado = _get_interessado(db, interessado_id)
    valor = payload.valor.strip()
    _ensure_unique(db, valor, ignorar_id=interessado.id)
    interessado.valor = valor
    commit(db, "Nao foi possivel atualizar o interessado.")
    db.refresh(interessado)
    return serialize_interessado(interessado)


@router.delete("/interessados/{interessado_id}")
def delete_interessado(
    interessado_id: str,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    interessado = _get_interessado(db, interessado_id)
    referencias = (
        db.query(models.Processo).filter(models.Processo.interessado_id == interessado.id).count()
    )
    if referencias:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Interessado possui {referencias} processo(s) vinculado(s) e nao pode ser removido",
        )
    db.delete(interessado)
    commit(db, "Nao foi possivel remover o interessado.")
    return {"removido": True}
