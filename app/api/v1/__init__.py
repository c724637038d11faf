"""
API v1 Router
"""

from fastapi import APIRouter

from app.api.v1 import auth, email, faq_categories, faqs, users

router = APIRouter()

# Include all endpoint routers
router.include_router(auth.router)
router.include_router(users.router)
router.include_router(faq_categories.router)
router.include_router(faqs.router)
router.include_router(email.router)

__all__ = ["router"]
