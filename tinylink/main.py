import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from . import __version__, database, qr_utils, schemas
from .errors import LinkError
from .service import DEFAULT_MAX_ATTEMPTS, LinkService
from .store import SqlLinkStore

load_dotenv(Path(__file__).parent.parent / ".env")

ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")

# --- Logging ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger("tinylink")


def cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", "")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    if origins:
        return origins
    return ["*"] if ENVIRONMENT == "dev" else []


def default_service() -> LinkService:
    store = SqlLinkStore(database.make_engine())
    return LinkService(
        store,
        code_length=int(os.getenv("CODE_LENGTH", 6)),
        max_attempts=int(os.getenv("CODE_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)),
    )


def get_service(request: Request) -> LinkService:
    return request.app.state.service


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.service.store.setup()
    logger.info("Link store ready (%s)", type(app.state.service.store).__name__)
    yield


def create_app(service: LinkService | None = None) -> FastAPI:
    app = FastAPI(
        title="TinyLink",
        description="Shorten URLs and count the clicks on them.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service or default_service()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LinkError)
    async def link_error_handler(request: Request, exc: LinkError):
        # 5xx kinds are logged where they are raised
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    # Bad request bodies are a user input problem like any other validation failure
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    # Health check (useful for uptime monitors & load balancers)
    @app.get("/healthz", response_model=schemas.Health)
    def healthz():
        return {"ok": True, "version": __version__}

    # ---------- API ----------
    @app.post("/api/links", response_model=schemas.LinkOut, status_code=201)
    def create_link(link_in: schemas.LinkCreate, service: LinkService = Depends(get_service)):
        return service.create_link(link_in.target_url, link_in.code)

    @app.get("/api/links", response_model=list[schemas.LinkOut])
    def list_links(
        q: str | None = Query(None, description="Filter by code or target URL"),
        service: LinkService = Depends(get_service),
    ):
        return service.list_links(q)

    @app.get("/api/links/{code}", response_model=schemas.LinkOut)
    def get_link(code: str, service: LinkService = Depends(get_service)):
        return service.get_link(code)

    @app.get("/api/links/{code}/qr", response_model=schemas.LinkQR)
    def link_qr(code: str, request: Request, service: LinkService = Depends(get_service)):
        link = service.get_link(code)
        base = os.getenv("PUBLIC_BASE_URL") or str(request.base_url)
        short_url, qr_b64 = qr_utils.short_url_qr_base64(base, link.code)
        return {"code": link.code, "short_url": short_url, "qr_base64": qr_b64}

    @app.delete("/api/links/{code}", response_model=schemas.MessageOut)
    def delete_link(code: str, service: LinkService = Depends(get_service)):
        service.delete_link(code)
        return {"ok": True, "detail": f"Link '{code}' deleted"}

    # Redirect /{code}, registered last so it never shadows the routes above
    @app.get("/{code}", include_in_schema=False)
    def redirect(code: str, service: LinkService = Depends(get_service)):
        return RedirectResponse(url=service.resolve(code), status_code=302)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("tinylink.main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)), log_level="info")
