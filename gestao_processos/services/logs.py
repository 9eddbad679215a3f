from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from gestao_processos.db import models

PROCESSO_CRIADO = "PROCESSO_CRIADO"
PROCESSO_ATUALIZADO = "PROCESSO_ATUALIZADO"
PROCESSO_REMOVIDO = "PROCESSO_REMOVIDO"
PROCESSO_RESPONDIDO = "PROCESSO_RESPONDIDO"
ANDAMENTO_CRIADO = "ANDAMENTO_CRIADO"
ANDAMENTO_ATUALIZADO = "ANDAMENTO_ATUALIZADO"
ANDAMENTO_PRORROGADO = "ANDAMENTO_PRORROGADO"
ANDAMENTO_CONCLUIDO = "ANDAMENTO_CONCLUIDO"
ANDAMENTO_REMOVIDO = "ANDAMENTO_REMOVIDO"


def _jsonable(dados: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if dados is None:
        return None
    return {
        chave: valor.isoformat() if isinstance(valor, (date, datetime)) else valor
        for chave, valor in dados.items()
    }


def registrar(
    db: Session,
    tipo_acao: str,
    descricao: str,
    entidade: str,
    entidade_id: Optional[str],
    usuario_id: Optional[str],
    dados_antigos: Optional[dict[str, Any]] = None,
    dados_novos: Optional[dict[str, Any]] = None,
) -> models.Log:
    """Adiciona o registro na sessao; o commit fica com a operacao auditada."""
    log = models.Log(
        tipo_acao=tipo_acao,
        descricao=descricao,
        entidade=entidade,
        entidade_id=entidade_id,
        usuario_id=usuario_id,
        dados_antigos=_jsonable(dados_antigos),
        dados_novos=_jsonable(dados_novos),
    )
    db.add(log)
    return log
