from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gestao_processos.api.v1.serializers import serialize_log
from gestao_processos.core.security import require_permissoes
from gestao_processos.db import models
from gestao_processos.db.session import get_db
from gestao_processos.services.paginacao import paginar

router = APIRouter(tags=["Logs"])


@router.get("/logs")
def list_logs(
    pagina: int | None = Query(default=None),
    limite: int | None = Query(default=None),
    entidade: str | None = Query(default=None),
    entidade_id: str | None = Query(default=None),
    current_user: models.Usuario = Depends(require_permissoes("ADM")),
    db: Session = Depends(get_db),
):
    query = db.query(models.Log)
    if entidade:
        query = query.filter(models.Log.entidade == entidade)
    if entidade_id:
        query = query.filter(models.Log.entidade_id == entidade_id)
    return paginar(query.order_by(models.Log.criado_em.desc()), pagina, limite, serialize_log)
