import time
import traceback

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.logging.logger import Log
from app.web.container import Container
from app.web.errors import register_exception_handlers
from app.web.routes import auth, extraction, scraper, settings


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        t0 = time.time()
        try:
            Log.info(f"[req] {request.method} {request.url.path}", q=dict(request.query_params))
            response: Response = await call_next(request)
            dt = int((time.time() - t0) * 1000)
            Log.info(f"[res] {request.method} {request.url.path} -> {response.status_code} {dt}ms")
            return response
        except Exception:
            dt = int((time.time() - t0) * 1000)
            Log.error(
                f"[res] {request.method} {request.url.path} -> 500 {dt}ms\n{traceback.format_exc()}"
            )
            raise


def create_app(container: Container) -> FastAPI:
    app = FastAPI(title="Agent Hub", version="0.1.0")
    app.state.container = container
    app.add_middleware(AccessLogMiddleware)

    origins = [o.strip() for o in container.settings.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["meta"])
    def health() -> dict:
        return {"status": "ok", "notices": []}

    app.include_router(auth.router)
    app.include_router(extraction.router)
    app.include_router(scraper.router)
    app.include_router(settings.router)
    return app
