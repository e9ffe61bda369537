# HTTP adapter for the star ledger
from .middleware import RequestContextMiddleware
from .routes import router

__all__ = ["RequestContextMiddleware", "router"]
