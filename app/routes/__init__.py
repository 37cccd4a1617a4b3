# app/routes/__init__.py
from fastapi import APIRouter
from app.routes.auth import auth, profile
from app.routes.trip import trip_routes, trip_member, invitation
from app.routes.activities import activity_routes
from app.routes.dashboard import dashboard
from app.routes.planner import planner


api_router = APIRouter()

# Auth routes
api_router.include_router(auth.router)
api_router.include_router(profile.router)
api_router.include_router(profile.users_router)

# Trip routes
api_router.include_router(trip_routes.router)
api_router.include_router(trip_member.router)
api_router.include_router(invitation.router)

# Activity and vote routes
api_router.include_router(activity_routes.router)

# Dashboard
api_router.include_router(dashboard.router)

# AI planner
api_router.include_router(planner.router)
