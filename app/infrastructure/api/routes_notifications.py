"""Notification endpoints — drain the assignment outbox on demand."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.use_cases.relay_notifications import RelayNotificationsUseCase
from app.infrastructure.api.dependencies import get_relay_uc

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/relay")
async def relay_notifications(
    limit: int = Query(default=50, ge=1, le=500),
    relay_uc: RelayNotificationsUseCase = Depends(get_relay_uc),
    session: AsyncSession = Depends(get_session),
):
    """Deliver pending assignment notifications (client, CA, firm admins)."""
    summary = await relay_uc.execute(limit)
    await session.commit()
    return {"status": "ok", "delivered": summary.delivered, "failed": summary.failed}
