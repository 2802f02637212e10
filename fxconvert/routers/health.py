from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness probe")
async def health(request: Request):
    return {"status": "ok", "version": request.app.state.settings.version}
