"""AutoGestão: multi-tenant car dealership backend."""
