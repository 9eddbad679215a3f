import uuid
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gestao_processos.core.security import build_token_payload, create_access_token
from gestao_processos.db import models
from gestao_processos.db.session import get_db


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture()
def client(engine):
    from gestao_processos.main import app

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _override_get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_unidade(db_session):
    def _make(sigla="UNI", nome=None, ativo=True):
        unidade = models.Unidade(nome=nome or f"Unidade {sigla}", sigla=sigla, ativo=ativo)
        db_session.add(unidade)
        db_session.commit()
        db_session.refresh(unidade)
        return unidade

    return _make


@pytest.fixture()
def make_usuario(db_session):
    def _make(unidade, permissao="TEC", login=None, ativo=True):
        login = login or f"{permissao.lower()}-{uuid.uuid4().hex[:6]}"
        usuario = models.Usuario(
            nome=f"Usuario {login}",
            login=login,
            email=f"{login}@example.com",
            permissao=permissao,
            unidade_id=unidade.id,
            ativo=ativo,
        )
        db_session.add(usuario)
        db_session.commit()
        db_session.refresh(usuario)
        return usuario

    return _make


@pytest.fixture()
def make_processo(db_session):
    def _make(unidade, numero_sei=None, origem="SEFAZ", assunto="Processo de teste", **kwargs):
        processo = models.Processo(
            numero_sei=numero_sei or f"SEI-{uuid.uuid4().hex[:8]}",
            assunto=assunto,
            origem=origem,
            unidade_id=unidade.id,
            **kwargs,
        )
        db_session.add(processo)
        db_session.commit()
        db_session.refresh(processo)
        return processo

    return _make


@pytest.fixture()
def make_andamento(db_session):
    def _make(processo, usuario, prazo=None, prorrogacao=None, resposta=None, status=None, **kwargs):
        if status is None:
            if resposta is not None:
                status = models.STATUS_CONCLUIDO
            elif prorrogacao is not None:
                status = models.STATUS_PRORROGADO
            else:
                status = models.STATUS_EM_ANDAMENTO
        andamento = models.Andamento(
            processo_id=processo.id,
            origem=kwargs.pop("origem", "SEFAZ"),
            destino=kwargs.pop("destino", "PGE"),
            data_envio=kwargs.pop("data_envio", datetime(2026, 1, 1, 9, 0)),
            prazo=prazo,
            prorrogacao=prorrogacao,
            resposta=resposta,
            status=status,
            usuario_id=usuario.id,
            **kwargs,
        )
        db_session.add(andamento)
        db_session.commit()
        db_session.refresh(andamento)
        return andamento

    return _make


@pytest.fixture()
def auth_headers():
    def _headers(usuario):
        token = create_access_token(build_token_payload(usuario))
        return {"Authorization": f"Bearer {token}"}

    return _headers
