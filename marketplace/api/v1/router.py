"""
API v1 router - aggregates all endpoint modules (RESTful structure).
"""

from fastapi import APIRouter

from marketplace.api.v1.endpoints import (
    auth,
    functions,
    health,
    items,
    jobs,
    listings,
    locations,
    messages,
    requests,
    search,
)

api_router = APIRouter(prefix="/v1")

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(items.router, prefix="/items", tags=["items"])
api_router.include_router(listings.router, prefix="/listings", tags=["listings"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(functions.router, prefix="/functions", tags=["functions"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(requests.router, prefix="/requests", tags=["requests"])
api_router.include_router(search.router, prefix="/search", tags=["search"])
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])
