import secrets
from dataclasses import dataclass

from listings_hub.core.config import settings


@dataclass(frozen=True)
class AdminToken:
    token: str
    expires_in: int


def verify_admin_password(password: str) -> bool:
    expected = settings.admin_password.get_secret_value()
    # compare_digest needs equal-type inputs; bytes keeps non-ascii passwords working
    return secrets.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def verify_admin_token(token: str) -> bool:
    expected = settings.admin_token.get_secret_value()
    return secrets.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


def issue_admin_token() -> AdminToken:
    # Single shared admin token; rotation happens through ADMIN_TOKEN in the environment.
    return AdminToken(
        token=settings.admin_token.get_secret_value(),
        expires_in=settings.admin_token_ttl_seconds,
    )
