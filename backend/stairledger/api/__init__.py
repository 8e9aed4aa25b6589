"""
API Routes
Project: Stair Ledger

Aggregates the versioned routers.
"""

from stairledger.api.v1 import api_v1_router

__all__ = ["api_v1_router"]
