"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from recycleconnect.api.routes import auth, users, listings, transactions

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(listings.router)
api_router.include_router(transactions.router)
