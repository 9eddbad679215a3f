from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from gestao_processos.core.config import settings
from gestao_processos.db import models
from gestao_processos.db.session import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


def build_token_payload(usuario: models.Usuario) -> dict[str, Any]:
    return {
        "sub": usuario.id,
        "login": usuario.login,
        "nome": usuario.nome,
        "email": usuario.email,
        "permissao": usuario.permissao,
        "unidade_id": usuario.unidade_id,
    }


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def get_current_user_from_token(token: str, db: Session) -> models.Usuario:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Credenciais invalidas",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        usuario_id: str | None = payload.get("sub")
        permissao: str | None = payload.get("permissao")
        if usuario_id is None or permissao is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    usuario = db.query(models.Usuario).filter(models.Usuario.id == usuario_id).first()
    if not usuario:
        raise credentials_exception
    if not usuario.ativo:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Usuario inativo")
    # a token issued before a role change is not honored
    if usuario.permissao != permissao:
        raise credentials_exception
    return usuario


def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> models.Usuario:
    return get_current_user_from_token(token, db)


def usuario_permitido(usuario: models.Usuario, permissoes: tuple[str, ...]) -> bool:
    if usuario.permissao == "DEV":
        return True
    return usuario.permissao in permissoes


def require_permissoes(*permissoes: str):
    def _dependency(
        usuario: models.Usuario = Depends(get_current_user),
    ) -> models.Usuario:
        if permissoes and not usuario_permitido(usuario, permissoes):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permissao negada")
        return usuario

    return _dependency
