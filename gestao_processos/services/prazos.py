from datetime import datetime, time
from typing import Iterable, Optional

from sqlalchemy import and_, func

from gestao_processos.db import models
from gestao_processos.services.datas import agora as _agora

FIM_DO_DIA = time(23, 59, 59, 999000)


def limites_do_dia(agora: Optional[datetime] = None) -> tuple[datetime, datetime]:
    referencia = agora or _agora()
    inicio = datetime.combine(referencia.date(), time.min)
    fim = datetime.combine(referencia.date(), FIM_DO_DIA)
    return inicio, fim


def prazo_efetivo(andamento: models.Andamento) -> Optional[datetime]:
    return andamento.prorrogacao or andamento.prazo


def _pendente(andamento: models.Andamento) -> bool:
    return bool(andamento.ativo) and andamento.status != models.STATUS_CONCLUIDO


def classificar_andamentos(
    andamentos: Iterable[models.Andamento], agora: Optional[datetime] = None
) -> dict[str, bool]:
    inicio, fim = limites_do_dia(agora)
    vencendo_hoje = False
    atrasado = False
    for andamento in andamentos:
        if not _pendente(andamento):
            continue
        prazo = prazo_efetivo(andamento)
        if prazo is None:
            continue
        if inicio <= prazo <= fim:
            vencendo_hoje = True
        elif prazo < inicio:
            atrasado = True
    return {"vencendo_hoje": vencendo_hoje, "atrasado": atrasado}


def _prazo_efetivo_sql():
    return func.coalesce(models.Andamento.prorrogacao, models.Andamento.prazo)


def _andamento_pendente_sql():
    return and_(
        models.Andamento.ativo.is_(True),
        models.Andamento.status != models.STATUS_CONCLUIDO,
    )


def filtro_vencendo_hoje(inicio: datetime, fim: datetime):
    prazo = _prazo_efetivo_sql()
    return models.Processo.andamentos.any(
        and_(_andamento_pendente_sql(), prazo >= inicio, prazo <= fim)
    )


def filtro_atrasados(inicio: datetime):
    return models.Processo.andamentos.any(
        and_(_andamento_pendente_sql(), _prazo_efetivo_sql() < inicio)
    )
