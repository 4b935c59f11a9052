from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from visionpos.api.dispatcher import Command
from visionpos.core.config import Settings
from visionpos.core.logging import configure_logging
from visionpos.context import build_context


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def _read_payload(request: Request):
    if request.method == "GET":
        return dict(request.query_params) or None
    body = await request.body()
    if not body:
        return None
    try:
        return await request.json()
    except ValueError:
        return None


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.ctx = await build_context(settings)
        yield
        await app.state.ctx.close()

    app = FastAPI(
        title=f"{settings.PROJECT_NAME} API",
        description="Point-of-sale checkout engine with simulated vision recognition",
        version=settings.VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "version": settings.VERSION}

    @app.api_route(
        settings.API_PREFIX + "/{path:path}",
        methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    )
    async def forward(path: str, request: Request):
        command = Command(
            verb=request.method,
            path="/" + path,
            data=await _read_payload(request),
            token=_bearer_token(request),
        )
        envelope = await request.app.state.ctx.dispatch(command)
        return JSONResponse(envelope.to_dict(), status_code=envelope.status)

    return app
