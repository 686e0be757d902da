from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from smartnotes.api import deps
from smartnotes.api.ai import router as ai_router
from smartnotes.api.auth import router as auth_router
from smartnotes.api.notes import router as notes_router
from smartnotes.api.session import router as session_router
from smartnotes.config import logger
from smartnotes.errors import GatewayError, NotFound, SessionClosedError, StoreError

AI_ENDPOINTS = {
    "summarize": "/api/ai/summarize",
    "explain": "/api/ai/explain",
    "quiz": "/api/ai/quiz",
    "enhance": "/api/ai/enhance",
    "studyTips": "/api/ai/study-tips",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # logout for everyone still signed in: flush, then drop subscriptions
    await deps.sessions.close_all()


app = FastAPI(title="SmartNotes API", lifespan=lifespan)


@app.exception_handler(NotFound)
async def _not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(StoreError)
async def _store_error(request: Request, exc: StoreError):
    return JSONResponse(status_code=503, content={"error": str(exc)})


@app.exception_handler(GatewayError)
async def _gateway_error(request: Request, exc: GatewayError):
    logger.warning("AI request failed: %s", exc)
    return JSONResponse(status_code=502, content={"error": str(exc)})


@app.exception_handler(SessionClosedError)
async def _session_closed(request: Request, exc: SessionClosedError):
    return JSONResponse(status_code=409, content={"error": str(exc)})


@app.exception_handler(StarletteHTTPException)
async def _unmatched_route(request: Request, exc: StarletteHTTPException):
    # only the router's own 404 (no route matched); handlers' 404s keep their detail
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(
            status_code=404,
            content={
                "error": "Route not found",
                "path": request.url.path,
                "method": request.method,
                "message": "The requested API endpoint does not exist. Check /api for available endpoints.",
            },
        )
    return await http_exception_handler(request, exc)


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/api/health")
def api_health():
    return {"status": "Backend running"}


@app.get("/api")
def api_index():
    return {
        "message": "SmartNotes API",
        "endpoints": {"health": "/api/health", "ai": AI_ENDPOINTS},
    }


app.include_router(auth_router)
app.include_router(notes_router)
app.include_router(session_router)
app.include_router(ai_router)
