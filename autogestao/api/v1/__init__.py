"""Session-authenticated routers, mounted under /v1."""
