# app/utils/security.py

from typing import Optional

from jose import jwt, JWTError

from app.config import SECRET_KEY, ALGORITHM


def decodificar_token(token: str) -> Optional[int]:
    """
    Decodifica el JWT y retorna el id del usuario.
    Acepta el claim "user_id" o, en su defecto, "sub".
    Retorna None si el token es inválido, expiró o no trae usuario.
    """
    if token.lower().startswith("bearer "):
        token = token[7:]
    token = token.strip()

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    user_id = payload.get("user_id") or payload.get("sub")
    if user_id is None:
        return None
    try:
        return int(user_id)
    except (TypeError, ValueError):
        return None
