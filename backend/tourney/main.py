import logging
import os
import subprocess
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tourney.database import engine, init_db
from tourney.db_schema_patch import ensure_fixture_columns
from tourney.routes import fixtures
from tourney.services.errors import FixtureEngineError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Tourney Fixtures API")


# Get build info
def get_build_info():
    """Get git commit hash or build timestamp"""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=os.path.dirname(os.path.dirname(__file__)),
            capture_output=True,
            text=True,
            timeout=2,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        pass

    # Fallback to build timestamp
    return datetime.now().strftime("%Y%m%d-%H%M%S")


BUILD_HASH = get_build_info()

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

app.include_router(fixtures.router, prefix="/api", tags=["fixtures"])


@app.exception_handler(FixtureEngineError)
async def fixture_engine_error_handler(request: Request, exc: FixtureEngineError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    fields = [".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "path", "query")) for err in errors]
    path_ids = [err for err in errors if err.get("loc", ())[:1] == ("path",)]
    code = "INVALID_IDENTIFIER" if path_ids else "VALIDATION_ERROR"
    message = "; ".join(
        f"{field}: {err.get('msg')}" if field else str(err.get("msg")) for field, err in zip(fields, errors)
    )
    return JSONResponse(status_code=422, content={"success": False, "code": code, "message": message})


@app.on_event("startup")
def on_startup():
    init_db()
    ensure_fixture_columns(engine)
    logger.info("Tourney Fixtures API started (build %s)", BUILD_HASH)


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify which code is running"""
    return {"app_name": "Tourney Fixtures API", "build_hash": BUILD_HASH, "status": "healthy"}
