"""Health check API routes.

Liveness only: the Shopify store is not contacted.
"""

from fastapi import APIRouter, status

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check():
    """Check application health."""
    return {"status": "ok"}
