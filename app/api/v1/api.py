from fastapi import APIRouter
from app.api.v1.routes.auth import router as auth_router
from app.api.v1.routes.reservations import router as reservations_router
from app.api.v1.routes.contact import router as contact_router
from app.api.v1.routes.categories import router as categories_router
from app.api.v1.routes.emails import router as emails_router
from app.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(reservations_router)
api_router.include_router(contact_router)
api_router.include_router(categories_router)
api_router.include_router(emails_router)
api_router.include_router(admin_router)
