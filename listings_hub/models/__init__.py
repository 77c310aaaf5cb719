from listings_hub.models.base import Base  # noqa: F401

from listings_hub.models.listing import Listing  # noqa: F401
from listings_hub.models.audit_log import AuditLog  # noqa: F401
