"""Tenant resolution strategies.

A resolver maps an incoming request to a *candidate* subdomain. It never
touches the database: validating the candidate against stored tenants is
the job of enrich_context_with_tenant(). The active strategy is chosen by
``settings.tenant_resolution`` and injected via Depends() in api/deps.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Protocol

from autogestao.core.config import settings
from autogestao.services.tenancy.host import extract_subdomain_from_host


class RequestLike(Protocol):
    """The slice of a Starlette request the resolvers read."""

    @property
    def headers(self) -> Mapping[str, str]: ...

    @property
    def query_params(self) -> Mapping[str, str]: ...


class TenantResolver(ABC):
    """Strategy interface: request -> subdomain candidate or None."""

    @abstractmethod
    def resolve(self, request: RequestLike) -> str | None:
        ...


class SubdomainTenantResolver(TenantResolver):
    """Reads the tenant from the Host header (default strategy)."""

    def resolve(self, request: RequestLike) -> str | None:
        return extract_subdomain_from_host(request.headers.get("host", ""))


class HeaderTenantResolver(TenantResolver):
    """Reads the tenant from an explicit header, e.g. behind a proxy."""

    def __init__(self, header_name: str) -> None:
        self._header_name = header_name

    def resolve(self, request: RequestLike) -> str | None:
        value = request.headers.get(self._header_name)
        return _normalize(value)


class QueryParamTenantResolver(TenantResolver):
    """Reads the tenant from a query parameter (``/admin?tenant=loja-a``)."""

    def __init__(self, param_name: str) -> None:
        self._param_name = param_name

    def resolve(self, request: RequestLike) -> str | None:
        value = request.query_params.get(self._param_name)
        return _normalize(value)


class ChainedTenantResolver(TenantResolver):
    """Tries each resolver in order; the first non-null candidate wins."""

    def __init__(self, resolvers: Sequence[TenantResolver]) -> None:
        self._resolvers = list(resolvers)

    def resolve(self, request: RequestLike) -> str | None:
        for resolver in self._resolvers:
            subdomain = resolver.resolve(request)
            if subdomain:
                return subdomain
        return None


def _normalize(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def build_resolver(strategy: str | None = None) -> TenantResolver:
    """Build the resolver named by *strategy* (defaults to settings)."""
    strategy = strategy or settings.tenant_resolution
    if strategy == "subdomain":
        return SubdomainTenantResolver()
    if strategy == "header":
        return HeaderTenantResolver(settings.tenant_header_name)
    if strategy == "query":
        return QueryParamTenantResolver(settings.tenant_query_param)
    if strategy == "chained":
        return ChainedTenantResolver(
            [
                SubdomainTenantResolver(),
                HeaderTenantResolver(settings.tenant_header_name),
                QueryParamTenantResolver(settings.tenant_query_param),
            ]
        )
    raise ValueError(f"Unknown tenant resolution strategy: {strategy!r}")
