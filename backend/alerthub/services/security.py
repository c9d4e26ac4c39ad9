"""Bearer-token principals and project/role checks for operator routes."""

import base64
import json
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from alerthub.config import get_settings
from alerthub.domain.models import AuthPrincipal, UserRole


bearer = HTTPBearer(auto_error=False)

_ALL_PROJECTS = "*"
_ROLE_RANK = {UserRole.viewer: 0, UserRole.responder: 1, UserRole.admin: 2}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _principal_from_claims(token: str) -> AuthPrincipal:
    """Build a principal from a base64url JSON claims token (``dev.`` prefix allowed)."""

    raw = token.removeprefix("dev.")
    try:
        padded = raw + "=" * (-len(raw) % 4)
        claims = json.loads(base64.urlsafe_b64decode(padded.encode("utf-8")).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise _unauthorized(f"invalid auth token: {exc}") from exc
    if not isinstance(claims, dict):
        raise _unauthorized("invalid auth token: claims must be an object")

    role = claims.get("role")
    projects = claims.get("projects")
    return AuthPrincipal(
        subject=str(claims.get("sub", "unknown")),
        # unknown roles degrade to read-only
        role=UserRole(role) if role in UserRole._value2member_map_ else UserRole.viewer,
        projects=[str(p) for p in projects] if isinstance(projects, list) else [],
    )


def require_auth(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
) -> AuthPrincipal:
    settings = get_settings()
    if not settings.auth_enabled:
        return AuthPrincipal(subject="dev-local", role=UserRole.admin, projects=[_ALL_PROJECTS])
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("missing bearer token")

    token = credentials.credentials.strip()
    if settings.auth_shared_token and token == settings.auth_shared_token:
        return AuthPrincipal(subject="shared-token", role=UserRole.admin, projects=[_ALL_PROJECTS])
    return _principal_from_claims(token)


def authorize_project(principal: AuthPrincipal, project_id: UUID | str) -> None:
    if principal.role == UserRole.admin or _ALL_PROJECTS in principal.projects:
        return
    if str(project_id) not in principal.projects:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"forbidden for project={project_id}")


def _require_role(principal: AuthPrincipal, minimum: UserRole) -> None:
    if _ROLE_RANK[principal.role] < _ROLE_RANK[minimum]:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"{minimum.value} role required")


def require_responder(principal: AuthPrincipal) -> None:
    _require_role(principal, UserRole.responder)


def require_admin(principal: AuthPrincipal) -> None:
    _require_role(principal, UserRole.admin)
