from gestao_processos.db import models


def serialize_unidade(unidade: models.Unidade | None) -> dict | None:
    if unidade is None:
        return None
    return {
        "id": unidade.id,
        "nome": unidade.nome,
        "sigla": unidade.sigla,
        "ativo": unidade.ativo,
        "criado_em": unidade.criado_em,
        "atualizado_em": unidade.atualizado_em,
    }


def serialize_usuario(usuario: models.Usuario) -> dict:
    return {
        "id": usuario.id,
        "nome": usuario.nome,
        "nome_social": usuario.nome_social,
        "login": usuario.login,
        "email": usuario.email,
        "permissao": usuario.permissao,
        "ativo": usuario.ativo,
        "unidade_id": usuario.unidade_id,
        "unidade": serialize_unidade(usuario.unidade),
        "ultimo_login": usuario.ultimo_login,
        "criado_em": usuario.criado_em,
    }


def serialize_interessado(interessado: models.Interessado | None) -> dict | None:
    if interessado is None:
        return None
    return {"id": interessado.id, "valor": interessado.valor, "criado_em": interessado.criado_em}


def serialize_andamento(andamento: models.Andamento) -> dict:
    return {
        "id": andamento.id,
        "processo_id": andamento.processo_id,
        "origem": andamento.origem,
        "destino": andamento.destino,
        "data_envio": andamento.data_envio,
        "prazo": andamento.prazo,
        "prorrogacao": andamento.prorrogacao,
        "resposta": andamento.resposta,
        "status": andamento.status,
        "observacao": andamento.observacao,
        "assunto": andamento.assunto,
        "usuario_id": andamento.usuario_id,
        "usuario_prorrogacao_id": andamento.usuario_prorrogacao_id,
        "criado_em": andamento.criado_em,
        "atualizado_em": andamento.atualizado_em,
    }


def serialize_processo(processo: models.Processo, com_andamentos: bool = False) -> dict:
    data = {
        "id": processo.id,
        "numero_sei": processo.numero_sei,
        "assunto": processo.assunto,
        "origem": processo.origem,
        "interessado_id": processo.interessado_id,
        "interessado": serialize_interessado(processo.interessado),
        "unidade_remetente_id": processo.unidade_remetente_id,
        "unidade_remetente": serialize_unidade(processo.unidade_remetente),
        "data_recebimento": processo.data_recebimento,
        "prazo": processo.prazo,
        "data_resposta_final": processo.data_resposta_final,
        "resposta_final": processo.resposta_final,
        "unidade_respondida_id": processo.unidade_respondida_id,
        "unidade_id": processo.unidade_id,
        "ativo": processo.ativo,
        "criado_em": processo.criado_em,
        "atualizado_em": processo.atualizado_em,
    }
    if com_andamentos:
        data["andamentos"] = [
            serialize_andamento(andamento) for andamento in processo.andamentos if andamento.ativo
        ]
    return data


def serialize_log(log: models.Log) -> dict:
    return {
        "id": log.id,
        "tipo_acao": log.tipo_acao,
        "descricao": log.descricao,
        "entidade": log.entidade,
        "entidade_id": log.entidade_id,
        "usuario_id": log.usuario_id,
        "dados_antigos": log.dados_antigos,
        "dados_novos": log.dados_novos,
        "criado_em": log.criado_em,
    }
