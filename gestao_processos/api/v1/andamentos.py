from typing import Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from gestao_processos.api.v1.serializers import serialize_andamento
from gestao_processos.core.security import require_permissoes
from gestao_processos.db import models
from gestao_processos.db.session import get_db
from gestao_processos.services import andamentos as service
from gestao_processos.services.paginacao import paginar

router = APIRouter(tags=["Andamentos"])


class AndamentoCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    processo_id: str
    origem: str = Field(..., min_length=2)
    destino: str = Field(..., min_length=2)
    data_envio: str | None = None
    prazo: str | None = None
    observacao: str | None = None
    assunto: str | None = None
    status: str | None = None


class AndamentoUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    origem: str | None = Field(default=None, min_length=2)
    destino: str | None = Field(default=None, min_length=2)
    data_envio: str | None = None
    prazo: str | None = None
    prorrogacao: str | None = None
    resposta: str | None = None
    observacao: str | None = None
    assunto: str | None = None
    status: str | None = None


class ProrrogarPayload(BaseModel):
    novaDataLimite: str


class LotePayload(BaseModel):
    ids: list[Any]
    operacao: str
    novaDataLimite: str | None = None
    prazo: str | None = None


@router.post("/andamentos", status_code=status.HTTP_201_CREATED)
def create_andamento(
    payload: AndamentoCreate,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    andamento = service.criar_andamento(db, current_user, payload.model_dump())
    return serialize_andamento(andamento)


@router.get("/andamentos")
def list_andamentos(
    pagina: int | None = Query(default=None),
    limite: int | None = Query(default=None),
    processo_id: str | None = Query(default=None),
    status_filtro: str | None = Query(default=None, alias="status"),
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    query = service.query_andamentos(db, current_user, processo_id=processo_id, status=status_filtro)
    return paginar(query, pagina, limite, serialize_andamento)


@router.post("/andamentos/lote")
def lote_andamentos(
    payload: LotePayload,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    return service.processar_lote(db, current_user, payload.model_dump())


@router.get("/andamentos/processo/{processo_id}")
def list_andamentos_processo(
    processo_id: str,
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    andamentos = service.listar_por_processo(db, current_user, processo_id)
    return [serialize_andamento(andamento) for andamento in andamentos]


@router.get("/andamentos/{andamento_id}")
def get_andamento(
    andamento_id: str,
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    return serialize_andamento(service.obter_andamento(db, current_user, andamento_id))


@router.patch("/andamentos/{andamento_id}")
def update_andamento(
    andamento_id: str,
    payload: AndamentoUpdate,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    andamento = service.atualizar_andamento(
        db, current_user, andamento_id, payload.model_dump(exclude_unset=True)
    )
    return serialize_andamento(andamento)


@router.patch("/andamentos/{andamento_id}/concluir")
def concluir_andamento(
    andamento_id: str,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    return serialize_andamento(service.concluir_andamento(db, current_user, andamento_id))


@router.patch("/andamentos/{andamento_id}/prorrogar")
def prorrogar_andamento(
    andamento_id: str,
    payload: ProrrogarPayload,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    andamento = service.prorrogar_andamento(db, current_user, andamento_id, payload.novaDataLimite)
    return serialize_andamento(andamento)


@router.delete("/andamentos/{andamento_id}")
def delete_andamento(
    andamento_id: str,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    return service.remover_andamento(db, current_user, andamento_id)
