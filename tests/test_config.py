from gestao_processos.core.config import Settings


def test_default_cors_allows_only_frontend(monkeypatch):
    monkeypatch.delenv("BACKEND_CORS_ORIGINS", raising=False)
    assert Settings().BACKEND_CORS_ORIGINS == ["http://localhost:3001", "http://127.0.0.1:3001"]


def test_cors_origins_from_env(monkeypatch):
    monkeypatch.setenv("BACKEND_CORS_ORIGINS", "https://processos.exemplo.gov.br, ,http://localhost:8080")
    assert Settings().BACKEND_CORS_ORIGINS == ["https://processos.exemplo.gov.br", "http://localhost:8080"]


def test_login_local_only_in_development(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    assert Settings().login_local_habilitado is False
    monkeypatch.setenv("ENV", "Local")
    assert Settings().login_local_habilitado is True
