import uuid
from datetime import datetime, timedelta

import pytest

from gestao_processos.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from gestao_processos.db import models
from gestao_processos.services import andamentos

AGORA = datetime(2026, 5, 20, 10, 0)


@pytest.fixture()
def cenario(db_session, make_unidade, make_usuario, make_processo, make_andamento):
    unidade = make_unidade("SEFAZ")
    usuario = make_usuario(unidade, "TEC")
    processo = make_processo(unidade, origem="SEFAZ")
    andamento = make_andamento(processo, usuario, prazo=datetime(2026, 5, 22))
    return usuario, processo, andamento


def test_create_starts_em_andamento(db_session, cenario):
    usuario, processo, _ = cenario
    novo = andamentos.criar_andamento(
        db_session,
        usuario,
        {"processo_id": processo.id, "origem": "SEFAZ", "destino": "PGE", "prazo": "2026-06-01T00:00:00"},
    )
    assert novo.status == models.STATUS_EM_ANDAMENTO
    assert novo.usuario_id == usuario.id
    log = db_session.query(models.Log).filter(models.Log.entidade_id == novo.id).one()
    assert log.tipo_acao == "ANDAMENTO_CRIADO"


def test_status_in_payload_is_forbidden(db_session, cenario):
    usuario, _, andamento = cenario
    with pytest.raises(ForbiddenError):
        andamentos.atualizar_andamento(db_session, usuario, andamento.id, {"status": "CONCLUIDO"})


def test_update_with_resposta_concludes_and_backfills_process(db_session, cenario):
    usuario, processo, andamento = cenario
    atualizado = andamentos.atualizar_andamento(
        db_session,
        usuario,
        andamento.id,
        {"resposta": "2026-05-20T08:00:00", "observacao": "Parecer emitido e devolvido."},
    )
    assert atualizado.status == models.STATUS_CONCLUIDO
    db_session.refresh(processo)
    assert processo.data_resposta_final == datetime(2026, 5, 20, 8, 0)
    assert processo.resposta_final == "Parecer emitido e devolvido."
    assert processo.unidade_respondida_id == "SEFAZ"


def test_update_keeps_existing_final_response(db_session, cenario):
    usuario, processo, andamento = cenario
    processo.data_resposta_final = datetime(2026, 5, 1)
    processo.resposta_final = "Resposta anterior do processo."
    db_session.commit()

    andamentos.atualizar_andamento(
        db_session, usuario, andamento.id, {"resposta": "2026-05-20T08:00:00", "observacao": "Outra nota"}
    )
    db_session.refresh(processo)
    assert processo.data_resposta_final == datetime(2026, 5, 1)
    assert processo.resposta_final == "Resposta anterior do processo."


def test_invalid_resposta_is_rejected(db_session, cenario):
    usuario, _, andamento = cenario
    with pytest.raises(ValidationError) as exc:
        andamentos.atualizar_andamento(db_session, usuario, andamento.id, {"resposta": "respondido"})
    assert "resposta" in exc.value.message


def test_prorrogar_records_user(db_session, cenario):
    usuario, _, andamento = cenario
    atualizado = andamentos.prorrogar_andamento(
        db_session, usuario, andamento.id, "2026-05-30T18:00:00", agora=AGORA
    )
    assert atualizado.status == models.STATUS_PRORROGADO
    assert atualizado.prorrogacao == datetime(2026, 5, 30, 18, 0)
    assert atualizado.usuario_prorrogacao_id == usuario.id


def test_prorrogar_requires_future_date(db_session, cenario):
    usuario, _, andamento = cenario
    with pytest.raises(ValidationError):
        andamentos.prorrogar_andamento(db_session, usuario, andamento.id, "2026-05-19T00:00:00", agora=AGORA)


def test_prorrogar_concluded_is_rejected(db_session, cenario):
    usuario, _, andamento = cenario
    andamentos.concluir_andamento(db_session, usuario, andamento.id, agora=AGORA)
    with pytest.raises(ValidationError):
        andamentos.prorrogar_andamento(db_session, usuario, andamento.id, "2026-06-30T00:00:00", agora=AGORA)


def test_concluir_twice_is_rejected(db_session, cenario):
    usuario, _, andamento = cenario
    concluido = andamentos.concluir_andamento(db_session, usuario, andamento.id, agora=AGORA)
    assert concluido.status == models.STATUS_CONCLUIDO
    assert concluido.resposta == AGORA
    with pytest.raises(ValidationError):
        andamentos.concluir_andamento(db_session, usuario, andamento.id, agora=AGORA)


def test_remover_is_soft_delete(db_session, cenario):
    usuario, _, andamento = cenario
    assert andamentos.remover_andamento(db_session, usuario, andamento.id) == {"removido": True}
    db_session.refresh(andamento)
    assert andamento.ativo is False
    with pytest.raises(NotFoundError):
        andamentos.obter_andamento(db_session, usuario, andamento.id)


def test_other_unit_cannot_read(db_session, cenario, make_unidade, make_usuario):
    _, _, andamento = cenario
    estranho = make_usuario(make_unidade("OUTRA"), "USR")
    with pytest.raises(ForbiddenError):
        andamentos.obter_andamento(db_session, estranho, andamento.id)


def test_lote_partial_success(db_session, cenario):
    usuario, _, andamento = cenario
    resultado = andamentos.processar_lote(
        db_session,
        usuario,
        {"ids": [andamento.id, "nao-e-uuid"], "operacao": "prorrogar", "novaDataLimite": "2026-06-15T00:00:00"},
        agora=AGORA,
    )
    assert resultado["processados"] == 1
    assert len(resultado["erros"]) == 1
    assert resultado["erros"][0]["id"] == "nao-e-uuid"
    db_session.refresh(andamento)
    assert andamento.status == models.STATUS_PRORROGADO


def test_lote_collects_per_id_failures(db_session, cenario, make_andamento):
    usuario, processo, andamento = cenario
    concluido = make_andamento(processo, usuario, resposta=AGORA - timedelta(days=1))
    desconhecido = str(uuid.uuid4())

    resultado = andamentos.processar_lote(
        db_session,
        usuario,
        {"ids": [concluido.id, andamento.id, desconhecido], "operacao": "concluir"},
        agora=AGORA,
    )

    assert resultado["processados"] == 1
    assert {erro["id"] for erro in resultado["erros"]} == {concluido.id, desconhecido}
    db_session.refresh(andamento)
    assert andamento.status == models.STATUS_CONCLUIDO


@pytest.mark.parametrize(
    "dados",
    [
        {"ids": [], "operacao": "excluir"},
        {"ids": ["x"], "operacao": "arquivar"},
        {"ids": ["x"], "operacao": "prorrogar"},
        {"ids": "x", "operacao": "excluir"},
    ],
)
def test_lote_request_validation(db_session, cenario, dados):
    usuario, _, _ = cenario
    with pytest.raises(ValidationError):
        andamentos.processar_lote(db_session, usuario, dados, agora=AGORA)
