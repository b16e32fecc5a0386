from fastapi import APIRouter
from trashapp.api.v1.endpoints import admin, auth, pickups, portfolio, recurring

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
# recurring раньше pickups, иначе /recurring уйдет в /{pickup_id}
api_router.include_router(recurring.router, prefix="/customer/pickups/recurring", tags=["recurring"])
api_router.include_router(pickups.router, prefix="/customer/pickups", tags=["pickups"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(portfolio.router, prefix="/portfolio", tags=["portfolio"])
