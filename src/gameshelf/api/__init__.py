"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Authentication itself happens in RequestAuthenticationMiddleware,
before routing. Routers only decide whether they *need* an identity:
handlers that do take `identity: Identity = Depends(get_current_identity)`
and get a 401 when the request arrived without credentials. Health,
auth, and public review reads take no identity at all.
"""

from fastapi import APIRouter

from gameshelf.api.auth import router as auth_router
from gameshelf.api.collections import router as collections_router
from gameshelf.api.health import router as health_router
from gameshelf.api.reviews import router as reviews_router
from gameshelf.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(collections_router, tags=["collections"])
api_router.include_router(reviews_router, tags=["reviews"])
