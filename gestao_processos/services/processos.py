import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from gestao_processos.core.authorization import apply_unidade_scope, enforce_unidade_scope
from gestao_processos.core.exceptions import ConflictError, NotFoundError, ValidationError
from gestao_processos.db import models
from gestao_processos.services import logs
from gestao_processos.services.datas import formatar_br, parse_data
from gestao_processos.services.prazos import filtro_atrasados, filtro_vencendo_hoje, limites_do_dia
from gestao_processos.services.transacao import commit

logger = logging.getLogger("gestao_processos.processos")


def gerar_numero_provisorio() -> str:
    return f"SEM-SEI-{uuid.uuid4().hex[:12].upper()}"


def registrar_origem(db: Session, valor: Optional[str]) -> None:
    texto = (valor or "").strip()
    if not texto:
        return
    existente = db.query(models.OrigemProcesso).filter(models.OrigemProcesso.valor == texto).first()
    if not existente:
        db.add(models.OrigemProcesso(valor=texto))


def listar_origens(db: Session, busca: Optional[str] = None) -> list[str]:
    query = db.query(models.OrigemProcesso).order_by(models.OrigemProcesso.valor.asc())
    if busca:
        query = query.filter(models.OrigemProcesso.valor.ilike(f"%{busca.strip()}%")).limit(10)
    return [origem.valor for origem in query.all()]


def _snapshot(processo: models.Processo) -> dict[str, Any]:
    return {
        "numero_sei": processo.numero_sei,
        "assunto": processo.assunto,
        "origem": processo.origem,
        "prazo": processo.prazo,
    }


def _validar_referencias(db: Session, dados: dict[str, Any]) -> None:
    interessado_id = dados.get("interessado_id")
    if interessado_id:
        interessado = db.query(models.Interessado).filter(models.Interessado.id == interessado_id).first()
        if not interessado:
            raise ValidationError("Interessado nao encontrado.")
    unidade_remetente_id = dados.get("unidade_remetente_id")
    if unidade_remetente_id:
        unidade = db.query(models.Unidade).filter(models.Unidade.id == unidade_remetente_id).first()
        if not unidade:
            raise ValidationError("Unidade remetente nao encontrada.")


def _numero_em_uso(db: Session, numero_sei: str, ignorar_id: Optional[str] = None) -> bool:
    query = db.query(models.Processo).filter(models.Processo.numero_sei == numero_sei)
    if ignorar_id:
        query = query.filter(models.Processo.id != ignorar_id)
    return query.first() is not None


def criar_processo(db: Session, usuario: models.Usuario, dados: dict[str, Any]) -> models.Processo:
    if not usuario.unidade_id:
        raise ValidationError("Usuario nao possui unidade atribuida.")

    numero_sei = (dados.get("numero_sei") or "").strip() or gerar_numero_provisorio()
    if _numero_em_uso(db, numero_sei):
        raise ConflictError("Ja existe um processo com este numero SEI.")
    _validar_referencias(db, dados)

    processo = models.Processo(
        numero_sei=numero_sei,
        assunto=dados["assunto"].strip(),
        origem=(dados.get("origem") or "").strip() or None,
        interessado_id=dados.get("interessado_id"),
        unidade_remetente_id=dados.get("unidade_remetente_id"),
        data_recebimento=parse_data(dados.get("data_recebimento"), "data_recebimento") or datetime.now(),
        prazo=parse_data(dados.get("prazo"), "prazo"),
        unidade_id=usuario.unidade_id,
    )
    db.add(processo)
    db.flush()
    registrar_origem(db, processo.origem)
    logs.registrar(
        db,
        logs.PROCESSO_CRIADO,
        f"Processo criado: {processo.numero_sei} - {processo.assunto}",
        "processo",
        processo.id,
        usuario.id,
        None,
        _snapshot(processo),
    )
    commit(db, "Nao foi possivel criar o processo.")
    db.refresh(processo)
    return processo


def query_processos(
    db: Session,
    usuario: models.Usuario,
    busca: Optional[str] = None,
    vencendo_hoje: bool = False,
    atrasados: bool = False,
    agora: Optional[datetime] = None,
) -> Query:
    query = db.query(models.Processo).filter(models.Processo.ativo.is_(True))
    query = apply_unidade_scope(query, usuario, models.Processo.unidade_id)
    if busca:
        like = f"%{busca.strip()}%"
        query = query.filter(
            or_(models.Processo.numero_sei.ilike(like), models.Processo.assunto.ilike(like))
        )
    inicio, fim = limites_do_dia(agora)
    filtros = []
    if vencendo_hoje:
        filtros.append(filtro_vencendo_hoje(inicio, fim))
    if atrasados:
        filtros.append(filtro_atrasados(inicio))
    if filtros:
        query = query.filter(or_(*filtros))
    return query.order_by(models.Processo.criado_em.desc())


def contar_prazos(db: Session, usuario: models.Usuario, agora: Optional[datetime] = None) -> dict[str, int]:
    return {
        "vencendo_hoje": query_processos(db, usuario, vencendo_hoje=True, agora=agora).count(),
        "atrasados": query_processos(db, usuario, atrasados=True, agora=agora).count(),
    }


def obter_processo(db: Session, usuario: models.Usuario, processo_id: str) -> models.Processo:
    if not processo_id:
        raise ValidationError("ID do processo e obrigatorio.")
    processo = db.query(models.Processo).filter(models.Processo.id == processo_id).first()
    if not processo or not processo.ativo:
        raise NotFoundError("Processo nao encontrado.")
    enforce_unidade_scope(usuario, processo.unidade_id)
    return processo


def obter_por_numero_sei(db: Session, usuario: models.Usuario, numero_sei: str) -> models.Processo:
    if not numero_sei:
        raise ValidationError("Numero SEI e obrigatorio.")
    processo = db.query(models.Processo).filter(models.Processo.numero_sei == numero_sei).first()
    if not processo or not processo.ativo:
        raise NotFoundError("Processo nao encontrado.")
    enforce_unidade_scope(usuario, processo.unidade_id)
    return processo


def atualizar_processo(
    db: Session, usuario: models.Usuario, processo_id: str, dados: dict[str, Any]
) -> models.Processo:
    processo = obter_processo(db, usuario, processo_id)
    antes = _snapshot(processo)

    numero_sei = dados.get("numero_sei")
    if numero_sei is not None:
        numero_sei = numero_sei.strip()
        if not numero_sei:
            raise ValidationError("Numero SEI nao pode ser vazio.")
        if numero_sei != processo.numero_sei and _numero_em_uso(db, numero_sei, processo.id):
            raise ConflictError("Ja existe outro processo com este numero SEI.")
        processo.numero_sei = numero_sei
    _validar_referencias(db, dados)

    if dados.get("assunto") is not None:
        processo.assunto = dados["assunto"].strip()
    if "origem" in dados:
        processo.origem = (dados["origem"] or "").strip() or None
        registrar_origem(db, processo.origem)
    if "interessado_id" in dados:
        processo.interessado_id = dados["interessado_id"]
    if "unidade_remetente_id" in dados:
        processo.unidade_remetente_id = dados["unidade_remetente_id"]
    if dados.get("data_recebimento") is not None:
        processo.data_recebimento = parse_data(dados["data_recebimento"], "data_recebimento")
    if "prazo" in dados:
        processo.prazo = parse_data(dados["prazo"], "prazo")

    logs.registrar(
        db,
        logs.PROCESSO_ATUALIZADO,
        f"Processo atualizado: {processo.numero_sei} - {processo.assunto}",
        "processo",
        processo.id,
        usuario.id,
        antes,
        _snapshot(processo),
    )
    commit(db, "Nao foi possivel atualizar o processo.")
    db.refresh(processo)
    return processo


def _andamentos_ativos(db: Session, processo_id: str) -> Query:
    return db.query(models.Andamento).filter(
        models.Andamento.processo_id == processo_id,
        models.Andamento.ativo.is_(True),
    )


def remover_processo(db: Session, usuario: models.Usuario, processo_id: str) -> dict[str, bool]:
    processo = obter_processo(db, usuario, processo_id)
    ativos = _andamentos_ativos(db, processo.id).count()
    if ativos > 0:
        raise ValidationError(
            f"Nao e possivel remover o processo pois existem {ativos} andamento(s) ativo(s) "
            "relacionado(s). Remova os andamentos primeiro."
        )
    processo.ativo = False
    logs.registrar(
        db,
        logs.PROCESSO_REMOVIDO,
        f"Processo removido: {processo.numero_sei} - {processo.assunto}",
        "processo",
        processo.id,
        usuario.id,
        _snapshot(processo),
        None,
    )
    commit(db, "Nao foi possivel remover o processo.")
    return {"removido": True}


def _unidade_respondida(processo: models.Processo) -> str:
    if processo.origem:
        return processo.origem
    return processo.unidade.sigla if processo.unidade else processo.unidade_id


def registrar_resposta_final(
    db: Session,
    usuario: models.Usuario,
    dados: dict[str, Any],
    agora: Optional[datetime] = None,
) -> models.Processo:
    """
    Fecha o processo com a resposta final.

    A unidade respondida e sempre a origem do processo; o valor enviado pelo
    cliente e ignorado. Reenvios com a mesma data e texto nao geram um novo
    andamento. A atualizacao do processo e a criacao do andamento terminal sao
    confirmadas no mesmo commit.
    """
    processo = db.query(models.Processo).filter(models.Processo.id == dados.get("processo_id")).first()
    if not processo:
        raise NotFoundError("Processo nao encontrado.")
    enforce_unidade_scope(usuario, processo.unidade_id)
    if not processo.ativo:
        raise ValidationError("Processo inativo nao pode receber resposta final.")
    if _andamentos_ativos(db, processo.id).count() == 0:
        raise ValidationError("Processo nao possui andamentos ativos.")

    data_resposta = parse_data(dados.get("data_resposta_final"), "data_resposta_final")
    if data_resposta is None:
        raise ValidationError("Data de resposta final e obrigatoria.")
    _, fim_do_dia = limites_do_dia(agora)
    if data_resposta > fim_do_dia:
        raise ValidationError("Data de resposta final nao pode ser futura.")

    texto = (dados.get("resposta_final") or "").strip()
    unidade_respondida = _unidade_respondida(processo)
    informada = dados.get("unidade_respondida_id")
    if informada and informada != unidade_respondida:
        logger.info(
            "unidade_respondida_id ignorada processo=%s informada=%s aplicada=%s",
            processo.id,
            informada,
            unidade_respondida,
        )

    if processo.data_resposta_final == data_resposta and processo.resposta_final == texto:
        return processo

    terminal = (
        _andamentos_ativos(db, processo.id)
        .filter(
            models.Andamento.status == models.STATUS_CONCLUIDO,
            models.Andamento.observacao == texto,
            models.Andamento.data_envio == data_resposta,
        )
        .first()
    )
    if terminal:
        alterado = False
        if not processo.data_resposta_final:
            processo.data_resposta_final = data_resposta
            alterado = True
        if not processo.resposta_final:
            processo.resposta_final = texto
            alterado = True
        if not processo.unidade_respondida_id:
            processo.unidade_respondida_id = unidade_respondida
            alterado = True
        if alterado:
            commit(db, "Nao foi possivel completar a resposta final do processo.")
            db.refresh(processo)
        return processo

    antes = {
        "data_resposta_final": processo.data_resposta_final,
        "resposta_final": processo.resposta_final,
        "unidade_respondida_id": processo.unidade_respondida_id,
    }
    processo.data_resposta_final = data_resposta
    processo.resposta_final = texto
    processo.unidade_respondida_id = unidade_respondida
    andamento = models.Andamento(
        processo_id=processo.id,
        origem=unidade_respondida,
        destino=unidade_respondida,
        data_envio=data_resposta,
        prazo=data_resposta,
        resposta=data_resposta,
        status=models.STATUS_CONCLUIDO,
        observacao=texto,
        usuario_id=usuario.id,
    )
    db.add(andamento)
    db.flush()
    logs.registrar(
        db,
        logs.PROCESSO_RESPONDIDO,
        f"Resposta final registrada: {processo.numero_sei} em {formatar_br(data_resposta)}",
        "processo",
        processo.id,
        usuario.id,
        antes,
        {
            "data_resposta_final": data_resposta,
            "resposta_final": texto,
            "unidade_respondida_id": unidade_respondida,
            "andamento_id": andamento.id,
        },
    )
    commit(db, "Nao foi possivel registrar a resposta final.")
    db.refresh(processo)
    logger.info("resposta final processo=%s andamento=%s", processo.id, andamento.id)
    return processo
