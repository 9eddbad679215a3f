import logging

from sqlalchemy import inspect, or_, text
from sqlalchemy.orm import Session

from gestao_processos.core.config import settings
from gestao_processos.db import models
from gestao_processos.db.session import SessionLocal

logger = logging.getLogger("gestao_processos.init_db")

UNIDADE_PADRAO_NOME = "Unidade Padrao"
UNIDADE_PADRAO_SIGLA = "PADRAO"


def ensure_missing_columns(engine) -> None:
    """Adiciona em bancos SQLite antigos as colunas que os modelos ganharam depois."""
    if engine.dialect.name != "sqlite":
        return
    inspector = inspect(engine)
    preparer = engine.dialect.identifier_preparer
    existing_tables = set(inspector.get_table_names())
    for table_name, table in models.Base.metadata.tables.items():
        if table_name not in existing_tables:
            continue
        existing_columns = {col["name"] for col in inspector.get_columns(table_name)}
        for column in table.columns:
            if column.name in existing_columns:
                continue
            col_type = column.type.compile(dialect=engine.dialect)
            with engine.begin() as connection:
                connection.execute(
                    text(
                        f"ALTER TABLE {preparer.quote(table_name)} "
                        f"ADD COLUMN {preparer.quote(column.name)} {col_type}"
                    )
                )
            logger.info("coluna adicionada tabela=%s coluna=%s", table_name, column.name)


def seed_unidade_padrao(db: Session) -> models.Unidade:
    unidade = (
        db.query(models.Unidade)
        .filter(models.Unidade.sigla == UNIDADE_PADRAO_SIGLA)
        .first()
    )
    if not unidade:
        unidade = models.Unidade(nome=UNIDADE_PADRAO_NOME, sigla=UNIDADE_PADRAO_SIGLA)
        db.add(unidade)
        db.commit()
        db.refresh(unidade)
    return unidade


def seed_dev_user(db: Session, unidade: models.Unidade, login: str, email: str) -> models.Usuario:
    usuario = (
        db.query(models.Usuario)
        .filter(or_(models.Usuario.login == login.lower(), models.Usuario.email == email.lower()))
        .first()
    )
    if not usuario:
        usuario = models.Usuario(
            nome="Desenvolvedor",
            login=login.lower(),
            email=email.lower(),
            permissao="DEV",
            unidade_id=unidade.id,
        )
        db.add(usuario)
    else:
        usuario.permissao = "DEV"
        usuario.ativo = True
    db.commit()
    db.refresh(usuario)
    return usuario


def seed_initial_data() -> None:
    db: Session = SessionLocal()
    try:
        unidade = seed_unidade_padrao(db)
        if settings.SEED_DEV_LOGIN and settings.SEED_DEV_EMAIL:
            seed_dev_user(db, unidade, settings.SEED_DEV_LOGIN, settings.SEED_DEV_EMAIL)
    finally:
        db.close()
