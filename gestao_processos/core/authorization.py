from sqlalchemy.orm import Query

from gestao_processos.core.exceptions import ForbiddenError
from gestao_processos.db import models


def is_privilegiado(usuario: models.Usuario) -> bool:
    return usuario.permissao in models.PERMISSOES_PRIVILEGIADAS


def pode_ver_unidade(permissao: str, unidade_usuario: str | None, unidade_recurso: str | None) -> bool:
    """DEV e ADM enxergam todas as unidades; os demais apenas a propria."""
    if permissao in models.PERMISSOES_PRIVILEGIADAS:
        return True
    return unidade_usuario is not None and unidade_usuario == unidade_recurso


def apply_unidade_scope(query: Query, usuario: models.Usuario, unidade_field) -> Query:
    if is_privilegiado(usuario):
        return query
    return query.filter(unidade_field == usuario.unidade_id)


def enforce_unidade_scope(usuario: models.Usuario, unidade_recurso: str | None) -> None:
    if not pode_ver_unidade(usuario.permissao, usuario.unidade_id, unidade_recurso):
        raise ForbiddenError("Voce nao tem permissao para acessar este processo.")
