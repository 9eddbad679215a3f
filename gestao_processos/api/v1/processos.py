from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from gestao_processos.api.v1.serializers import serialize_processo
from gestao_processos.core.security import require_permissoes
from gestao_processos.db import models
from gestao_processos.db.session import get_db
from gestao_processos.services import processos as service
from gestao_processos.services.paginacao import paginar

router = APIRouter(tags=["Processos"])


class ProcessoCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    numero_sei: str | None = None
    assunto: str = Field(..., min_length=5)
    origem: str | None = Field(default=None, min_length=2)
    interessado_id: str | None = None
    unidade_remetente_id: str | None = None
    data_recebimento: str | None = None
    prazo: str | None = None


class ProcessoUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    numero_sei: str | None = None
    assunto: str | None = Field(default=None, min_length=5)
    origem: str | None = None
    interessado_id: str | None = None
    unidade_remetente_id: str | None = None
    data_recebimento: str | None = None
    prazo: str | None = None


class RespostaFinalPayload(BaseModel):
    processo_id: str
    data_resposta_final: str
    resposta_final: str = Field(..., min_length=10)
    unidade_respondida_id: str | None = None


@router.post("/processos", status_code=status.HTTP_201_CREATED)
def create_processo(
    payload: ProcessoCreate,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    processo = service.criar_processo(db, current_user, payload.model_dump())
    return serialize_processo(processo)


@router.get("/processos")
def list_processos(
    pagina: int | None = Query(default=None),
    limite: int | None = Query(default=None),
    busca: str | None = Query(default=None),
    vencendo_hoje: bool = Query(default=False, alias="vencendoHoje"),
    atrasados: bool = Query(default=False),
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    query = service.query_processos(
        db, current_user, busca=busca, vencendo_hoje=vencendo_hoje, atrasados=atrasados
    )
    return paginar(query, pagina, limite, serialize_processo)


@router.get("/processos/resumo-prazos")
def resumo_prazos(
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    return service.contar_prazos(db, current_user)


@router.post("/processos/resposta-final")
def resposta_final(
    payload: RespostaFinalPayload,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    processo = service.registrar_resposta_final(db, current_user, payload.model_dump())
    return serialize_processo(processo, com_andamentos=True)


@router.get("/processos/numero-sei/{numero_sei}")
def get_processo_por_numero(
    numero_sei: str,
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    processo = service.obter_por_numero_sei(db, current_user, numero_sei)
    return serialize_processo(processo, com_andamentos=True)


@router.get("/processos/{processo_id}")
def get_processo(
    processo_id: str,
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    processo = service.obter_processo(db, current_user, processo_id)
    return serialize_processo(processo, com_andamentos=True)


@router.patch("/processos/{processo_id}")
def update_processo(
    processo_id: str,
    payload: ProcessoUpdate,
    current_user: models.Usuario = Depends(require_permissoes("ADM", "TEC")),
    db: Session = Depends(get_db),
):
    processo = service.atualizar_processo(
        db, current_user, processo_id, payload.model_dump(exclude_unset=True)
    )
    return serialize_processo(processo)


@router.delete("/processos/{processo_id}")
def delete_processo(
    processo_id: str,
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    return service.remover_processo(db, current_user, processo_id)
