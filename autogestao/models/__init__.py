"""SQLAlchemy ORM models.

Individual models should be imported explicitly:
    from autogestao.models.tenant import Tenant

All models are imported here so Alembic can detect them during migration
autogenerate. This module is imported by alembic/env.py.
"""

from autogestao.models.api_key import ApiKey
from autogestao.models.auth_token import AuthToken
from autogestao.models.image import Image
from autogestao.models.lead import WhatsAppLead
from autogestao.models.profile import Profile
from autogestao.models.tenant import Tenant
from autogestao.models.user import User
from autogestao.models.vehicle import Vehicle
from autogestao.models.webhook import Webhook

__all__ = [
    "Tenant",
    "User",
    "Profile",
    "Vehicle",
    "Image",
    "ApiKey",
    "WhatsAppLead",
    "Webhook",
    "AuthToken",
]
