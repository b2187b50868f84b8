import logging
import os

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from matchday.database import init_db
from matchday.routes import (
    admin,
    formats,
    match_overrides,
    matches,
    participants,
    public,
    standings,
    teams,
    tournament_groups,
    tournaments,
    withdrawals,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Matchday Tournament API"

app = FastAPI(title=APP_NAME)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error body is {"success": false, "error": ...}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "Validation failed", "details": jsonable_encoder(exc.errors())},
    )


app.include_router(tournament_groups.router, prefix="/api", tags=["tournament-groups"])
app.include_router(formats.router, prefix="/api", tags=["formats"])
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(participants.router, prefix="/api", tags=["participants"])
app.include_router(matches.router, prefix="/api", tags=["matches"])
app.include_router(standings.router, prefix="/api", tags=["standings"])
app.include_router(match_overrides.router, prefix="/api", tags=["match-overrides"])
app.include_router(withdrawals.router, prefix="/api", tags=["withdrawals"])
app.include_router(admin.router, prefix="/api", tags=["admin"])
app.include_router(public.router, prefix="/api", tags=["public"])


@app.on_event("startup")
def on_startup():
    init_db()
    route_count = sum(1 for r in app.routes if getattr(r, "path", None))
    logger.info("%s started with %s routes", APP_NAME, route_count)


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}
