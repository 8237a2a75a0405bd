# Purpose:
# Defines the /api/health endpoint.
# - Liveness check that also reports which providers the runtime config selects.
# - Does not build the stack, so it stays up when credentials are missing.
from fastapi import APIRouter

from medifly.factory import describe_runtime

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", **describe_runtime()}
