from fastapi import APIRouter
from fastapi.responses import Response
from starlette.requests import Request
from fitplan.core.metrics import get_metrics


router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics(request: Request):
    return Response(
        content=get_metrics(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )
