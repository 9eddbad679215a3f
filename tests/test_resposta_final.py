from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from gestao_processos.core.exceptions import ForbiddenError, InternalError, NotFoundError, ValidationError
from gestao_processos.db import models
from gestao_processos.services.processos import registrar_resposta_final

AGORA = datetime(2026, 5, 20, 10, 0)
TEXTO = "Resposta encaminhada ao orgao de origem."


@pytest.fixture()
def cenario(db_session, make_unidade, make_usuario, make_processo, make_andamento):
    unidade = make_unidade("SEFAZ")
    usuario = make_usuario(unidade, "TEC")
    processo = make_processo(unidade, origem="Y")
    make_andamento(processo, usuario, prazo=datetime(2026, 5, 25))
    return usuario, processo


def _payload(processo, data="2026-05-20T09:30:00", texto=TEXTO, **extra):
    return {"processo_id": processo.id, "data_resposta_final": data, "resposta_final": texto, **extra}


def _andamentos(db_session, processo):
    return (
        db_session.query(models.Andamento)
        .filter(models.Andamento.processo_id == processo.id, models.Andamento.ativo.is_(True))
        .all()
    )


def test_creates_terminal_andamento(db_session, cenario):
    usuario, processo = cenario
    resultado = registrar_resposta_final(db_session, usuario, _payload(processo), agora=AGORA)

    assert resultado.data_resposta_final == datetime(2026, 5, 20, 9, 30)
    assert resultado.resposta_final == TEXTO
    terminais = [a for a in _andamentos(db_session, processo) if a.status == models.STATUS_CONCLUIDO]
    assert len(terminais) == 1
    terminal = terminais[0]
    assert terminal.origem == terminal.destino == "Y"
    assert terminal.resposta == terminal.data_envio == terminal.prazo == datetime(2026, 5, 20, 9, 30)
    assert terminal.observacao == TEXTO


def test_resubmission_is_idempotent(db_session, cenario):
    usuario, processo = cenario
    registrar_resposta_final(db_session, usuario, _payload(processo), agora=AGORA)
    registrar_resposta_final(db_session, usuario, _payload(processo), agora=AGORA)

    assert len(_andamentos(db_session, processo)) == 2
    logs = db_session.query(models.Log).filter(models.Log.tipo_acao == "PROCESSO_RESPONDIDO").count()
    assert logs == 1


def test_end_of_today_is_accepted(db_session, cenario):
    usuario, processo = cenario
    resultado = registrar_resposta_final(
        db_session, usuario, _payload(processo, data="2026-05-20T23:59:59.999"), agora=AGORA
    )
    assert resultado.data_resposta_final == datetime(2026, 5, 20, 23, 59, 59, 999000)


def test_tomorrow_midnight_is_rejected(db_session, cenario):
    usuario, processo = cenario
    with pytest.raises(ValidationError):
        registrar_resposta_final(db_session, usuario, _payload(processo, data="2026-05-21T00:00:00"), agora=AGORA)
    assert len(_andamentos(db_session, processo)) == 1


def test_claimed_unit_is_overridden_by_origin(db_session, cenario):
    usuario, processo = cenario
    resultado = registrar_resposta_final(
        db_session, usuario, _payload(processo, unidade_respondida_id="X"), agora=AGORA
    )
    assert resultado.unidade_respondida_id == "Y"


def test_missing_process(db_session, cenario):
    usuario, _ = cenario
    with pytest.raises(NotFoundError):
        registrar_resposta_final(
            db_session,
            usuario,
            {"processo_id": "nao-existe", "data_resposta_final": "2026-05-20", "resposta_final": TEXTO},
            agora=AGORA,
        )


def test_inactive_process(db_session, cenario):
    usuario, processo = cenario
    processo.ativo = False
    db_session.commit()
    with pytest.raises(ValidationError):
        registrar_resposta_final(db_session, usuario, _payload(processo), agora=AGORA)


def test_process_without_andamentos(db_session, make_unidade, make_usuario, make_processo):
    unidade = make_unidade("SEFAZ")
    usuario = make_usuario(unidade, "TEC")
    processo = make_processo(unidade)
    with pytest.raises(ValidationError):
        registrar_resposta_final(db_session, usuario, _payload(processo), agora=AGORA)


def test_invalid_date_string(db_session, cenario):
    usuario, processo = cenario
    with pytest.raises(ValidationError) as exc:
        registrar_resposta_final(db_session, usuario, _payload(processo, data="ontem"), agora=AGORA)
    assert "data_resposta_final" in exc.value.message


def test_other_unit_is_forbidden(db_session, cenario, make_unidade, make_usuario):
    _, processo = cenario
    estranho = make_usuario(make_unidade("OUTRA"), "TEC")
    with pytest.raises(ForbiddenError):
        registrar_resposta_final(db_session, estranho, _payload(processo), agora=AGORA)


def test_existing_terminal_andamento_only_backfills(
    db_session, make_unidade, make_usuario, make_processo, make_andamento
):
    unidade = make_unidade("SEFAZ")
    usuario = make_usuario(unidade, "TEC")
    processo = make_processo(unidade, origem="Y")
    data = datetime(2026, 5, 19, 16, 0)
    make_andamento(
        processo,
        usuario,
        origem="Y",
        destino="Y",
        data_envio=data,
        resposta=data,
        observacao=TEXTO,
    )

    resultado = registrar_resposta_final(
        db_session, usuario, _payload(processo, data="2026-05-19T16:00:00"), agora=AGORA
    )

    assert resultado.data_resposta_final == data
    assert resultado.resposta_final == TEXTO
    assert resultado.unidade_respondida_id == "Y"
    assert len(_andamentos(db_session, processo)) == 1


def test_failed_commit_leaves_no_partial_state(db_session, cenario):
    usuario, processo = cenario
    with patch.object(db_session, "commit", side_effect=SQLAlchemyError("disco cheio")):
        with pytest.raises(InternalError):
            registrar_resposta_final(db_session, usuario, _payload(processo), agora=AGORA)

    db_session.expire_all()
    recarregado = db_session.query(models.Processo).filter(models.Processo.id == processo.id).one()
    assert recarregado.data_resposta_final is None
    assert recarregado.resposta_final is None
    assert recarregado.unidade_respondida_id is None
    andamentos = _andamentos(db_session, processo)
    assert len(andamentos) == 1
    assert andamentos[0].status == models.STATUS_EM_ANDAMENTO
    assert db_session.query(models.Log).filter(models.Log.tipo_acao == "PROCESSO_RESPONDIDO").count() == 0
