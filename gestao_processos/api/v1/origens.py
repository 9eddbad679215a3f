from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gestao_processos.core.security import require_permissoes
from gestao_processos.db import models
from gestao_processos.db.session import get_db
from gestao_processos.services.processos import listar_origens

router = APIRouter(tags=["Origens"])


@router.get("/origens")
def list_origens(
    busca: str | None = Query(default=None),
    current_user: models.Usuario = Depends(require_permissoes()),
    db: Session = Depends(get_db),
):
    return listar_origens(db, busca)
