import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from gestao_processos.api.v1.andamentos import router as andamentos_router
from gestao_processos.api.v1.auth import local_router as auth_local_router
from gestao_processos.api.v1.auth import router as auth_router
from gestao_processos.api.v1.interessados import router as interessados_router
from gestao_processos.api.v1.logs import router as logs_router
from gestao_processos.api.v1.origens import router as origens_router
from gestao_processos.api.v1.processos import router as processos_router
from gestao_processos.api.v1.unidades import router as unidades_router
from gestao_processos.api.v1.usuarios import router as usuarios_router
from gestao_processos.core.config import settings
from gestao_processos.core.exceptions import ServiceError, service_error_handler
from gestao_processos.core.responses import SafeJSONResponse
from gestao_processos.db import models
from gestao_processos.db.init_db import ensure_missing_columns, seed_initial_data
from gestao_processos.db.session import engine

if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger("gestao_processos")

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Gestao de Processos - Processos, Andamentos e Prazos",
    default_response_class=SafeJSONResponse,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ServiceError, service_error_handler)


@app.on_event("startup")
def on_startup() -> None:
    models.Base.metadata.create_all(bind=engine)
    ensure_missing_columns(engine)
    seed_initial_data()
    if settings.ENV.lower() == "production":
        if settings.SECRET_KEY == "dev-secret-change-me":
            logger.warning("SECRET_KEY esta usando valor padrao em producao.")
        if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
            logger.warning("SQLALCHEMY_DATABASE_URI aponta para SQLite em producao.")


app.include_router(auth_router, prefix="/api")
if settings.login_local_habilitado:
    app.include_router(auth_local_router, prefix="/api")
app.include_router(processos_router, prefix="/api")
app.include_router(andamentos_router, prefix="/api")
app.include_router(unidades_router, prefix="/api")
app.include_router(usuarios_router, prefix="/api")
app.include_router(interessados_router, prefix="/api")
app.include_router(origens_router, prefix="/api")
app.include_router(logs_router, prefix="/api")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "request method=%s path=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


@app.get("/api/health")
def health():
    return {"status": "ok"}
