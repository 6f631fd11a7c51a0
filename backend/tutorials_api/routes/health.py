"""
Tutorials API: Health Check Route
=================================

What:  Reports whether the database connection is up.
How:   Reads the connector's locally cached connection state. It never sends
       a command to MongoDB, so it answers immediately even while the
       database is slow.
Who:   Docker HEALTHCHECK, load balancers and monitoring systems.

Status mapping:
    connected                      → 200 {"status": "ok",    "db": "connected"}
    connecting / disconnecting /
    disconnected                   → 503 {"status": "error", "db": "disconnected"}
"""

import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from tutorials_api import __version__
from tutorials_api.database import ConnectionState, MongoConnector, get_connector
from tutorials_api.schemas.tutorial import HealthResponse

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        200: {"description": "Database connected", "model": HealthResponse},
        503: {"description": "Database disconnected", "model": HealthResponse},
    },
    summary="Service health check",
)
async def health_check(connector: MongoConnector = Depends(get_connector)) -> JSONResponse:
    connected = connector.state is ConnectionState.CONNECTED
    body = HealthResponse(
        status="ok" if connected else "error",
        db="connected" if connected else "disconnected",
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(status_code=200 if connected else 503, content=body.model_dump())
