from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from listings_hub.core.security import verify_admin_token

bearer_scheme = HTTPBearer(auto_error=False)

ADMIN_ACTOR = "admin"


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> str:
    if credentials is None or not verify_admin_token(credentials.credentials):
        raise HTTPException(
            status_code=401,
            detail={"success": False, "message": "Unauthorized. Invalid or missing authentication token."},
        )
    return ADMIN_ACTOR
