"""
Derivacao do status de um andamento.

O status nunca e informado pelo cliente: ele e sempre calculado a partir dos
campos `prorrogacao` e `resposta` resultantes de uma atualizacao.

- resposta preenchida -> CONCLUIDO (resposta tem prioridade sobre prorrogacao)
- sem resposta, prorrogacao preenchida -> PRORROGADO
- nenhum dos dois -> EM_ANDAMENTO
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from gestao_processos.db import models
from gestao_processos.services.datas import parse_data


@dataclass(frozen=True)
class EstadoAndamento:
    prorrogacao: Optional[datetime]
    resposta: Optional[datetime]
    usuario_prorrogacao_id: Optional[str]
    status: str


def derivar_status(prorrogacao: Optional[datetime], resposta: Optional[datetime]) -> str:
    if resposta is not None:
        return models.STATUS_CONCLUIDO
    if prorrogacao is not None:
        return models.STATUS_PRORROGADO
    return models.STATUS_EM_ANDAMENTO


def estado_atual(andamento: models.Andamento) -> EstadoAndamento:
    return EstadoAndamento(
        prorrogacao=andamento.prorrogacao,
        resposta=andamento.resposta,
        usuario_prorrogacao_id=andamento.usuario_prorrogacao_id,
        status=andamento.status,
    )


def aplicar_mudancas(
    atual: EstadoAndamento,
    mudancas: Mapping[str, Any],
    usuario_id: Optional[str],
) -> EstadoAndamento:
    """
    Aplica uma atualizacao parcial. Chaves ausentes em `mudancas` mantem o valor
    atual; `None` limpa o campo. Definir `prorrogacao` registra quem prorrogou e
    limpa-la remove esse registro.
    """
    prorrogacao = atual.prorrogacao
    resposta = atual.resposta
    usuario_prorrogacao_id = atual.usuario_prorrogacao_id

    if "prorrogacao" in mudancas:
        prorrogacao = parse_data(mudancas["prorrogacao"], "prorrogacao")
        usuario_prorrogacao_id = usuario_id if prorrogacao is not None else None

    if "resposta" in mudancas:
        resposta = parse_data(mudancas["resposta"], "resposta")

    return EstadoAndamento(
        prorrogacao=prorrogacao,
        resposta=resposta,
        usuario_prorrogacao_id=usuario_prorrogacao_id,
        status=derivar_status(prorrogacao, resposta),
    )
