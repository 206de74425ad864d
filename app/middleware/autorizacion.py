"""
Middleware de Autorización
app/middleware/autorizacion.py

Dependency de FastAPI que identifica al usuario que opera.
El id se usa para los sellos de auditoría (deleted_by, restored_by, usuario_cobro).

Uso:
    @router.patch("/{cuota_id}/soft-delete")
    async def eliminar(cuota_id: int, usuario_id: int = Depends(obtener_usuario_id)):
        ...
"""

from fastapi import HTTPException, Request

from app.utils.security import decodificar_token


async def obtener_usuario_id(request: Request) -> int:
    """Extrae el id del usuario autenticado del request."""
    user_id = None

    # Opción 1: Middleware previo
    if hasattr(request.state, 'user_id'):
        user_id = request.state.user_id

    # Opción 2: JWT en header
    if not user_id:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            user_id = decodificar_token(auth_header)

    # Opción 3: JWT en cookie
    if not user_id:
        token = request.cookies.get("access_token")
        if token:
            user_id = decodificar_token(token)

    if not user_id:
        raise HTTPException(
            status_code=401,
            detail={"error": "No autenticado", "codigo": "AUTH_REQUIRED"}
        )

    request.state.user_id = user_id
    return user_id
