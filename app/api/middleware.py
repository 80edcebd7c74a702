import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.security import ROLE_ADMIN, decode_token

logger = logging.getLogger(__name__)

ADMIN_PREFIXES = (f"{settings.API_PREFIX}/admins/", f"{settings.API_PREFIX}/admin/")
PUBLIC_ADMIN_PATHS = {
    f"{settings.API_PREFIX}/admins/login",
    f"{settings.API_PREFIX}/admins/register",
}


async def admin_role_interceptor(request: Request, call_next):
    """Reject non-admin bearer tokens on admin route prefixes before routing."""
    path = request.url.path.rstrip("/")
    if request.method != "OPTIONS" and path.startswith(ADMIN_PREFIXES) and path not in PUBLIC_ADMIN_PATHS:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"message": "Not authenticated"},
                headers={"WWW-Authenticate": "Bearer"},
            )
        payload = decode_token(token)
        if payload is None:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"message": "Could not validate credentials"},
                headers={"WWW-Authenticate": "Bearer"},
            )
        if payload.get("role") != ROLE_ADMIN:
            logger.info("Blocked %s %s for role %s", request.method, path, payload.get("role"))
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"message": "Admin privileges required"},
            )
    return await call_next(request)
