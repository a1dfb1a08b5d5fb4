"""Listener status endpoint."""

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from datalake_mediator.datalake.processors import processor_name

router = APIRouter()


class ListenerStatusResponse(BaseModel):
    """Buckets being watched and processors that will run on their files."""

    buckets: list[str]
    processors: list[str]
    prefix: str
    suffix: str


@router.get("/listeners", response_model=ListenerStatusResponse)
async def listener_status(request: Request) -> ListenerStatusResponse:
    """Report the active bucket subscriptions and registered processors."""
    datalake = getattr(request.app.state, "datalake", None)
    if datalake is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Datalake listeners are not initialized",
        )

    listeners = datalake.listeners
    return ListenerStatusResponse(
        buckets=sorted(listeners.subscribed_buckets),
        processors=[processor_name(p) for p in listeners.get_processors()],
        prefix=listeners.prefix,
        suffix=listeners.suffix,
    )
