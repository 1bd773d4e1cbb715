import secrets

from fastapi import Depends, Header

from backend.config.settings import AuthMode, Settings, SettingsDep
from backend.v1.core.exceptions import ForbiddenError, UnauthorizedError


async def require_admin(
    authorization: str | None = Header(None, alias="Authorization"),
    settings: Settings = SettingsDep,
) -> None:
    """
    Dependency guarding the operational admin routes.

    Behavior based on AUTH_MODE:
    - none: every caller is treated as an operator (development only)
    - token: requires ``Authorization: Bearer <ADMIN_API_TOKEN>``
    """
    if settings.auth_mode == AuthMode.NONE:
        return None
    elif settings.auth_mode == AuthMode.TOKEN:
        if not authorization:
            raise UnauthorizedError("Missing Authorization header")

        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise UnauthorizedError("Authorization header must use the Bearer scheme")

        if not secrets.compare_digest(token.strip(), settings.admin_api_token):
            raise ForbiddenError("Invalid admin token")
        return None
    else:
        raise ValueError(f"Unknown auth mode: {settings.auth_mode}")


# Convenience type alias for dependency injection
AdminDep = Depends(require_admin)
