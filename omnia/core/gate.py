from typing import Iterable

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from omnia.core.config import settings

API_PREFIX = "/api/"


def _is_protected(path: str, prefixes: Iterable[str]) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)


async def access_gate(request: Request, call_next):
    """Keep anonymous visitors out of admin routes and signed-in admins off the login page."""
    path = request.url.path
    protected = _is_protected(path, settings.PROTECTED_PREFIXES)
    if not protected and path != settings.LOGIN_PATH:
        return await call_next(request)

    # Let CORS preflight pass through
    if request.method == "OPTIONS":
        return await call_next(request)

    verifier = request.app.state.session_verifier
    has_session = await verifier.has_valid_session(request)

    if protected and not has_session:
        if path.startswith(API_PREFIX):
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Not authenticated"},
            )
        return RedirectResponse(url=settings.LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)

    if path == settings.LOGIN_PATH and has_session:
        return RedirectResponse(url=settings.ADMIN_HOME, status_code=status.HTTP_303_SEE_OTHER)

    return await call_next(request)
