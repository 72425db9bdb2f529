from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from workforce.core import security
from workforce.core.errors import (
    ClassificationAmbiguous,
    NotFoundError,
    PermissionDenied,
    PreconditionFailed,
    WorkforceError,
)
from workforce.domain import Role, SessionContext

bearer_scheme = HTTPBearer(auto_error=False)


def session_from_token(token: str) -> SessionContext:
    """Decode a bearer token into the caller's session; raises ``JWTError``."""

    payload = security.decode_access_token(token)
    role = Role.parse(payload.get("role"))
    if role is None:
        raise JWTError("unknown role")
    try:
        return SessionContext(user_id=int(payload["sub"]), company_id=int(payload["company_id"]), role=role)
    except (TypeError, ValueError) as exc:
        raise JWTError("malformed subject") from exc


async def get_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> SessionContext:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    try:
        return session_from_token(credentials.credentials)
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


async def require_privileged(session: SessionContext = Depends(get_session)) -> SessionContext:
    if not session.is_privileged:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin or manager role required")
    return session


def to_http_error(exc: WorkforceError | ValueError) -> HTTPException:
    """Translate a domain error raised by a service into an HTTP response."""

    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PermissionDenied):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, PreconditionFailed):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ClassificationAmbiguous):
        return HTTPException(
            status_code=422,
            detail={"file_name": exc.file_name, "reason": exc.reason},
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
