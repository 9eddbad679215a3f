from datetime import date, datetime
from typing import Optional

from gestao_processos.core.exceptions import ValidationError


def agora() -> datetime:
    return datetime.now()


def normalizar(valor: datetime) -> datetime:
    """Converte datas com fuso para horario local sem tzinfo, como gravado no banco."""
    if valor.tzinfo is not None:
        return valor.astimezone().replace(tzinfo=None)
    return valor


def parse_data(valor, campo: str) -> Optional[datetime]:
    if valor is None:
        return None
    if isinstance(valor, datetime):
        return normalizar(valor)
    if isinstance(valor, date):
        return datetime(valor.year, valor.month, valor.day)
    if isinstance(valor, str) and valor.strip():
        texto = valor.strip()
        if texto.endswith("Z"):
            texto = texto[:-1] + "+00:00"
        try:
            return normalizar(datetime.fromisoformat(texto))
        except ValueError:
            pass
    raise ValidationError(f"Campo `{campo}` deve ser uma data valida em formato ISO 8601.")


def formatar_br(valor: Optional[datetime]) -> str:
    return valor.strftime("%d/%m/%Y") if valor else "-"
