from fastapi import Depends, Header, HTTPException, status

from lgl_sync.core.settings import Settings, get_settings


async def require_admin_api_key(
    x_api_key: str = Header("", alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.admin_api_key:
        return

    if x_api_key != settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
