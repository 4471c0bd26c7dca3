import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from tinylink import crud, database, models, schemas
from tinylink.errors import InvalidCode, InvalidUrl, LinkError, NotFound
from tinylink.utils import is_valid_code

load_dotenv(Path(__file__).parent.parent / ".env")

ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")

# --- Logging ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger("tinylink")

# --- DB tables ---
models.Base.metadata.create_all(bind=database.engine)

app = FastAPI(
    title="TinyLink",
    description="Shorten URLs, redirect visitors and count clicks.",
    version="1.0.0",
)

# --- CORS (allow frontend dev servers, etc.) ---
origins = ["*"] if ENVIRONMENT == "dev" else [
    os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"),
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ERROR_RESPONSES = {
    400: {"model": schemas.ErrorOut},
    404: {"model": schemas.ErrorOut},
    409: {"model": schemas.ErrorOut},
    500: {"model": schemas.ErrorOut},
    503: {"model": schemas.ErrorOut},
}


@app.exception_handler(LinkError)
def link_error_handler(request: Request, exc: LinkError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error": exc.kind},
    )

# Wrong-typed link fields get the same 400 body as the registry's own checks
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    if request.method == "POST" and request.url.path == "/links":
        fields = {err["loc"][1] for err in exc.errors()
                  if len(err["loc"]) > 1 and err["loc"][0] == "body"}
        if "url" in fields:
            return link_error_handler(request, InvalidUrl("URL is required"))
        if "code" in fields:
            return link_error_handler(request, InvalidCode())
    return await request_validation_exception_handler(request, exc)

def public_base_url(request: Request) -> str:
    return os.getenv("PUBLIC_BASE_URL") or str(request.base_url).rstrip("/")

# Health check (useful for uptime monitors & load balancers)
@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok", "env": ENVIRONMENT}

# ---------- API ----------
@app.post("/links", response_model=schemas.LinkOut, status_code=status.HTTP_201_CREATED,
          responses=_ERROR_RESPONSES)
def create_link(link_in: schemas.LinkCreate, db=Depends(database.get_db)):
    try:
        link = crud.create_link(db, link_in.url, link_in.code)
    except LinkError as exc:
        logger.info("Rejected link: url=%s code=%s (%s)", link_in.url, link_in.code, exc.kind)
        raise
    logger.info("Created link %s -> %s", link.code, link.target_url)
    return link

@app.get("/links", response_model=list[schemas.LinkOut])
def list_links(db=Depends(database.get_db)):
    return crud.get_active_links(db)

@app.get("/links/{code}", response_model=schemas.LinkStats, responses=_ERROR_RESPONSES)
def link_stats(code: str, request: Request, db=Depends(database.get_db)):
    link = crud.get_active_link(db, code)
    return schemas.LinkStats(
        **schemas.LinkOut.model_validate(link).model_dump(),
        short_url=f"{public_base_url(request)}/{link.code}",
    )

@app.delete("/links/{code}", response_model=schemas.MessageOut, responses=_ERROR_RESPONSES)
def delete_link(code: str, db=Depends(database.get_db)):
    crud.delete_link(db, code)
    logger.info("Deleted link %s", code)
    return {"ok": True, "detail": f"Link '{code}' deleted"}

# Redirect /{code}, declared last so the fixed routes above win
@app.get("/{code}", include_in_schema=False)
def redirect_code(code: str, db=Depends(database.get_db)):
    if not is_valid_code(code):
        raise NotFound()
    try:
        link = crud.resolve_link(db, code)
    except NotFound:
        logger.warning("Redirect miss for %s", code)
        raise
    return RedirectResponse(url=link.target_url, status_code=status.HTTP_302_FOUND)
