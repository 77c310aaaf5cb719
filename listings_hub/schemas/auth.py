from pydantic import Field

from listings_hub.schemas.listing import CamelModel


class AuthRequest(CamelModel):
    password: str = Field(min_length=6, max_length=100)


class AuthResponse(CamelModel):
    success: bool
    message: str
    token: str
    expires_in: int
