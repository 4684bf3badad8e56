from fastapi import APIRouter

from vibe_apply.api.routes import applications, health, notes, recommendations, review_queue, users

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(applications.router, prefix="/applications", tags=["applications"])
api_router.include_router(recommendations.router, prefix="/recommendations", tags=["recommendations"])
api_router.include_router(review_queue.router, prefix="/review-queue", tags=["review"])
api_router.include_router(notes.router)
