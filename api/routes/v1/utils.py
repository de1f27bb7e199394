"""
api/routes/v1/utils.py -- Liveness check with no dependencies.

Routes:
  GET /api/v1/utils/ping  -- always 200 {}; touches neither DB nor auth
"""

from fastapi import APIRouter

router = APIRouter()


@router.get("/utils/ping")
async def ping() -> dict:
    return {}
