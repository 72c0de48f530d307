"""FastAPI routers for the wage ledger."""

from .ledger import router as ledger_router

__all__ = ["ledger_router"]
