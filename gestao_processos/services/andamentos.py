import logging
import re
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Query, Session

from gestao_processos.core.authorization import apply_unidade_scope, enforce_unidade_scope
from gestao_processos.core.exceptions import ForbiddenError, NotFoundError, ServiceError, ValidationError
from gestao_processos.db import models
from gestao_processos.services import logs
from gestao_processos.services.andamento_status import aplicar_mudancas, estado_atual
from gestao_processos.services.datas import agora as _agora
from gestao_processos.services.datas import formatar_br, parse_data
from gestao_processos.services.transacao import commit

logger = logging.getLogger("gestao_processos.andamentos")

OPERACOES_LOTE = ("excluir", "prorrogar", "concluir")
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def _snapshot(andamento: models.Andamento) -> dict[str, Any]:
    return {
        "origem": andamento.origem,
        "destino": andamento.destino,
        "prazo": andamento.prazo,
        "prorrogacao": andamento.prorrogacao,
        "resposta": andamento.resposta,
        "status": andamento.status,
        "processo_id": andamento.processo_id,
    }


def _rejeitar_status_manual(dados: dict[str, Any]) -> None:
    if dados.get("status") is not None:
        raise ForbiddenError(
            "Status do andamento e definido automaticamente e nao pode ser informado."
        )


def criar_andamento(db: Session, usuario: models.Usuario, dados: dict[str, Any]) -> models.Andamento:
    _rejeitar_status_manual(dados)
    processo = db.query(models.Processo).filter(models.Processo.id == dados.get("processo_id")).first()
    if not processo or not processo.ativo:
        raise NotFoundError("Processo nao encontrado.")
    enforce_unidade_scope(usuario, processo.unidade_id)

    andamento = models.Andamento(
        processo_id=processo.id,
        origem=dados["origem"].strip(),
        destino=dados["destino"].strip(),
        data_envio=parse_data(dados.get("data_envio"), "data_envio"),
        prazo=parse_data(dados.get("prazo"), "prazo"),
        status=models.STATUS_EM_ANDAMENTO,
        observacao=dados.get("observacao"),
        assunto=dados.get("assunto"),
        usuario_id=usuario.id,
    )
    db.add(andamento)
    db.flush()
    prazo = f" (Prazo: {formatar_br(andamento.prazo)})" if andamento.prazo else ""
    logs.registrar(
        db,
        logs.ANDAMENTO_CRIADO,
        f"Andamento criado: {andamento.origem} -> {andamento.destino}{prazo}",
        "andamento",
        andamento.id,
        usuario.id,
        None,
        _snapshot(andamento),
    )
    commit(db, "Nao foi possivel criar o andamento.")
    db.refresh(andamento)
    return andamento


def query_andamentos(
    db: Session,
    usuario: models.Usuario,
    processo_id: Optional[str] = None,
    status: Optional[str] = None,
) -> Query:
    query = (
        db.query(models.Andamento)
        .join(models.Processo, models.Processo.id == models.Andamento.processo_id)
        .filter(models.Andamento.ativo.is_(True))
    )
    query = apply_unidade_scope(query, usuario, models.Processo.unidade_id)
    if processo_id:
        query = query.filter(models.Andamento.processo_id == processo_id)
    if status:
        if status not in models.STATUS_ANDAMENTO:
            raise ValidationError(f"Status invalido: {status}.")
        query = query.filter(models.Andamento.status == status)
    return query.order_by(models.Andamento.criado_em.desc())


def listar_por_processo(db: Session, usuario: models.Usuario, processo_id: str) -> list[models.Andamento]:
    if not processo_id:
        raise ValidationError("ID do processo e obrigatorio.")
    processo = db.query(models.Processo).filter(models.Processo.id == processo_id).first()
    if not processo:
        raise NotFoundError("Processo nao encontrado.")
    enforce_unidade_scope(usuario, processo.unidade_id)
    return query_andamentos(db, usuario, processo_id=processo_id).all()


def obter_andamento(db: Session, usuario: models.Usuario, andamento_id: str) -> models.Andamento:
    if not andamento_id:
        raise ValidationError("ID do andamento e obrigatorio.")
    andamento = db.query(models.Andamento).filter(models.Andamento.id == andamento_id).first()
    if not andamento or not andamento.ativo:
        raise NotFoundError(f"Andamento nao encontrado ou inativo: {andamento_id}")
    enforce_unidade_scope(usuario, andamento.processo.unidade_id)
    return andamento


def _completar_processo(
    andamento: models.Andamento, resposta: datetime, observacao: Optional[str]
) -> Optional[dict[str, Any]]:
    processo = andamento.processo
    antes = {
        "data_resposta_final": processo.data_resposta_final,
        "resposta_final": processo.resposta_final,
        "unidade_respondida_id": processo.unidade_respondida_id,
    }
    alterado = False
    if not processo.data_resposta_final:
        processo.data_resposta_final = resposta
        alterado = True
    if not processo.resposta_final and observacao:
        processo.resposta_final = observacao
        alterado = True
    if not alterado:
        return None
    processo.unidade_respondida_id = processo.origem or processo.unidade_respondida_id
    return antes


def atualizar_andamento(
    db: Session,
    usuario: models.Usuario,
    andamento_id: str,
    dados: dict[str, Any],
) -> models.Andamento:
    """
    Atualiza campos livres e recalcula o status a partir de `prorrogacao` e
    `resposta`. Chaves ausentes em `dados` nao sao alteradas.
    """
    _rejeitar_status_manual(dados)
    andamento = obter_andamento(db, usuario, andamento_id)
    antes = _snapshot(andamento)

    if dados.get("origem"):
        andamento.origem = dados["origem"].strip()
    if dados.get("destino"):
        andamento.destino = dados["destino"].strip()
    if "data_envio" in dados:
        andamento.data_envio = parse_data(dados["data_envio"], "data_envio")
    if dados.get("prazo"):
        andamento.prazo = parse_data(dados["prazo"], "prazo")
    if "observacao" in dados:
        andamento.observacao = dados["observacao"]
    if "assunto" in dados:
        andamento.assunto = dados["assunto"]

    estado = aplicar_mudancas(estado_atual(andamento), dados, usuario.id)
    andamento.prorrogacao = estado.prorrogacao
    andamento.resposta = estado.resposta
    andamento.usuario_prorrogacao_id = estado.usuario_prorrogacao_id
    andamento.status = estado.status

    resposta_definida = dados.get("resposta") is not None
    processo_antes = None
    if resposta_definida:
        processo_antes = _completar_processo(andamento, estado.resposta, dados.get("observacao"))

    tipo_acao = logs.ANDAMENTO_ATUALIZADO
    descricao = f"Andamento atualizado: {andamento.origem} -> {andamento.destino}"
    if dados.get("prorrogacao") is not None:
        tipo_acao = logs.ANDAMENTO_PRORROGADO
        descricao = (
            f"Andamento prorrogado: {andamento.origem} -> {andamento.destino} "
            f"(Nova data: {formatar_br(andamento.prorrogacao)})"
        )
    elif resposta_definida:
        tipo_acao = logs.ANDAMENTO_CONCLUIDO
        descricao = f"Andamento concluido: {andamento.origem} -> {andamento.destino}"
    logs.registrar(
        db, tipo_acao, descricao, "andamento", andamento.id, usuario.id, antes, _snapshot(andamento)
    )

    if processo_antes is not None:
        processo = andamento.processo
        logs.registrar(
            db,
            logs.PROCESSO_ATUALIZADO,
            f"Processo atualizado por conclusao de andamento: {processo.numero_sei}",
            "processo",
            processo.id,
            usuario.id,
            processo_antes,
            {
                "data_resposta_final": processo.data_resposta_final,
                "resposta_final": processo.resposta_final,
                "unidade_respondida_id": processo.unidade_respondida_id,
            },
        )

    commit(db, "Nao foi possivel atualizar o andamento.")
    db.refresh(andamento)
    return andamento


def concluir_andamento(
    db: Session, usuario: models.Usuario, andamento_id: str, agora: Optional[datetime] = None
) -> models.Andamento:
    andamento = obter_andamento(db, usuario, andamento_id)
    if andamento.status == models.STATUS_CONCLUIDO:
        raise ValidationError("Andamento ja esta concluido.")
    return atualizar_andamento(db, usuario, andamento.id, {"resposta": agora or _agora()})


def prorrogar_andamento(
    db: Session,
    usuario: models.Usuario,
    andamento_id: str,
    nova_data_limite,
    agora: Optional[datetime] = None,
) -> models.Andamento:
    andamento = obter_andamento(db, usuario, andamento_id)
    if andamento.status == models.STATUS_CONCLUIDO:
        raise ValidationError("Andamento concluido nao pode ser prorrogado.")
    nova_data = parse_data(nova_data_limite, "novaDataLimite")
    if nova_data is None:
        raise ValidationError("Nova data limite e obrigatoria para prorrogacao.")
    if nova_data <= (agora or _agora()):
        raise ValidationError("A nova data limite deve ser futura.")
    return atualizar_andamento(db, usuario, andamento.id, {"prorrogacao": nova_data})


def remover_andamento(db: Session, usuario: models.Usuario, andamento_id: str) -> dict[str, bool]:
    andamento = obter_andamento(db, usuario, andamento_id)
    andamento.ativo = False
    logs.registrar(
        db,
        logs.ANDAMENTO_REMOVIDO,
        f"Andamento removido: {andamento.origem} -> {andamento.destino}",
        "andamento",
        andamento.id,
        usuario.id,
        _snapshot(andamento),
        None,
    )
    commit(db, "Nao foi possivel remover o andamento.")
    return {"removido": True}


def processar_lote(
    db: Session,
    usuario: models.Usuario,
    dados: dict[str, Any],
    agora: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Executa a operacao para cada id de forma independente. Falhas de um id sao
    coletadas em `erros` e nao interrompem os demais.
    """
    ids = dados.get("ids")
    operacao = dados.get("operacao")
    nova_data_limite = dados.get("novaDataLimite") or dados.get("prazo")

    if not isinstance(ids, list):
        raise ValidationError(f"Campo 'ids' deve ser um array. Recebido tipo: {type(ids).__name__}")
    if not ids:
        raise ValidationError("Array de IDs esta vazio. Pelo menos um ID e necessario.")
    if operacao not in OPERACOES_LOTE:
        raise ValidationError(f"Operacao invalida: {operacao}. Use: excluir, prorrogar ou concluir.")
    if operacao == "prorrogar" and not nova_data_limite:
        raise ValidationError("Nova data limite e obrigatoria para prorrogacao.")

    processados = 0
    erros: list[dict[str, Any]] = []
    for andamento_id in ids:
        if not andamento_id or not isinstance(andamento_id, str):
            erros.append({"id": andamento_id, "mensagem": "ID invalido (nao e string)."})
            continue
        if not UUID_RE.match(andamento_id):
            erros.append({"id": andamento_id, "mensagem": "ID invalido (formato UUID incorreto)."})
            continue
        try:
            if operacao == "excluir":
                remover_andamento(db, usuario, andamento_id)
            elif operacao == "prorrogar":
                prorrogar_andamento(db, usuario, andamento_id, nova_data_limite, agora)
            else:
                concluir_andamento(db, usuario, andamento_id, agora)
            processados += 1
        except ServiceError as exc:
            db.rollback()
            erros.append(
                {
                    "id": andamento_id,
                    "mensagem": f"Erro ao processar ID {andamento_id} na operacao {operacao}: {exc.message}",
                }
            )

    logger.info(
        "lote operacao=%s usuario=%s processados=%s erros=%s",
        operacao,
        usuario.id,
        processados,
        len(erros),
    )
    return {"processados": processados, "erros": erros}
