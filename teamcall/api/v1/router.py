from fastapi import APIRouter
from teamcall.api.v1 import calls, ws_signaling

router = APIRouter()
router.include_router(calls.router, tags=["calls"])
router.include_router(ws_signaling.router, tags=["signaling-ws"])
