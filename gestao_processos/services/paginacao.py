import math
from typing import Callable

from sqlalchemy.orm import Query

LIMITE_PADRAO = 10


def verifica_pagina(pagina: int | None, limite: int | None) -> tuple[int, int]:
    pagina = pagina if pagina and pagina > 0 else 1
    limite = limite if limite and limite > 0 else LIMITE_PADRAO
    return pagina, limite


def verifica_limite(pagina: int, limite: int, total: int) -> tuple[int, int]:
    ultima = max(1, math.ceil(total / limite))
    return min(pagina, ultima), limite


def paginar(query: Query, pagina: int | None, limite: int | None, serializer: Callable) -> dict:
    pagina, limite = verifica_pagina(pagina, limite)
    total = query.count()
    if total == 0:
        return {"total": 0, "pagina": 0, "limite": 0, "data": []}
    pagina, limite = verifica_limite(pagina, limite, total)
    items = query.offset((pagina - 1) * limite).limit(limite).all()
    return {
        "total": total,
        "pagina": pagina,
        "limite": limite,
        "data": [serializer(item) for item in items],
    }
