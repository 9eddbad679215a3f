import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gestao_processos.core.exceptions import ConflictError, InternalError

logger = logging.getLogger("gestao_processos.transacao")


def commit(db: Session, mensagem_erro: str) -> None:
    """Confirma tudo o que esta pendente na sessao ou desfaz por completo."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Violacao de integridade: %s", exc.orig)
        raise ConflictError("Registro duplicado ou referencia invalida.") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Falha ao gravar: %s", mensagem_erro)
        raise InternalError(mensagem_erro) from exc
