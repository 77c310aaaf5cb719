import logging

from fastapi import APIRouter, HTTPException

from listings_hub.core.security import issue_admin_token, verify_admin_password
from listings_hub.schemas.auth import AuthRequest, AuthResponse


log = logging.getLogger(__name__)
router = APIRouter()


@router.post("/auth", response_model=AuthResponse)
async def authenticate(body: AuthRequest) -> AuthResponse:
    if not verify_admin_password(body.password):
        log.warning("admin login rejected")
        raise HTTPException(status_code=401, detail={"success": False, "message": "Invalid password"})

    issued = issue_admin_token()
    return AuthResponse(
        success=True,
        message="Authentication successful",
        token=issued.token,
        expires_in=issued.expires_in,
    )
