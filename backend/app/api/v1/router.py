"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import parcels, qr, wallet, notifications

router = APIRouter()

# Parcel lifecycle
router.include_router(parcels.router)
router.include_router(qr.router)

# Wallet ledger
router.include_router(wallet.router)
router.include_router(wallet.users_router)

# In-app notifications
router.include_router(notifications.router)
