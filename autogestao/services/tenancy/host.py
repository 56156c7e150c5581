"""Host header parsing for subdomain-based tenancy.

    "loja-a.autogestao.com.br"      -> "loja-a"
    "loja-a.autogestao.com.br:443"  -> "loja-a"
    "autogestao.com.br"             -> None  (bare base domain)
    "localhost:3000"                -> None  (local development)

Only hosts with four or more labels carry a subdomain, so exactly one
level of nesting over a three-label base domain is supported.
"""

from autogestao.core.config import settings


def _hostname(host: str) -> str:
    return host.split(":")[0]


def _is_dev_host(hostname: str) -> bool:
    if hostname in settings.dev_hosts:
        return True
    return any(marker in hostname for marker in settings.dev_host_markers)


def extract_subdomain_from_host(host: str | None) -> str | None:
    """Return the tenant subdomain of *host*, or None for the public site."""
    if not host:
        return None

    hostname = _hostname(host)
    if not hostname or _is_dev_host(hostname):
        return None

    parts = hostname.split(".")
    if len(parts) >= 4:
        return parts[0]
    return None


def is_tenant_request(host: str | None) -> bool:
    """True when *host* addresses a tenant store rather than the main site."""
    return extract_subdomain_from_host(host) is not None


def get_base_domain(host: str) -> str:
    """Strip the first label from hosts with more than two labels."""
    hostname = _hostname(host)
    parts = hostname.split(".")
    if len(parts) <= 2:
        return hostname
    return ".".join(parts[1:])


def build_tenant_url(
    subdomain: str,
    base_path: str = "/",
    protocol: str = "https",
) -> str:
    return f"{protocol}://{subdomain}.{settings.app_domain}{base_path}"


def build_public_url(base_path: str = "/", protocol: str = "https") -> str:
    return f"{protocol}://{settings.app_domain}{base_path}"
