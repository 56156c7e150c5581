"""Tenant resolution and request scoping.

    host: host header parsing and tenant URL helpers
    resolver: pluggable strategies mapping a request to a subdomain
    context: TenantContext enrichment and authorization guards
"""

from autogestao.services.tenancy.context import (
    TenantContext,
    TenantRole,
    enrich_context_with_tenant,
    require_platform_admin,
    require_tenant,
    require_tenant_admin,
    require_tenant_auth,
    require_tenant_owner,
)
from autogestao.services.tenancy.host import extract_subdomain_from_host
from autogestao.services.tenancy.resolver import TenantResolver, build_resolver

__all__ = [
    "TenantContext",
    "TenantResolver",
    "TenantRole",
    "build_resolver",
    "enrich_context_with_tenant",
    "extract_subdomain_from_host",
    "require_platform_admin",
    "require_tenant",
    "require_tenant_admin",
    "require_tenant_auth",
    "require_tenant_owner",
]
