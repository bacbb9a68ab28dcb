from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pathlib import Path
import os
import logging
from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).parent / ".env", override=True)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

from crewsheet.exceptions import CrewsheetError

# mapper registry needs every model imported before the first query
from crewsheet.models import user, shift, timesheet, audit_log  # noqa: F401

from crewsheet.routers.shifts import router as shifts_router
from crewsheet.routers.timesheets import router as timesheets_router

app = FastAPI(title="Crewsheet API")

app.include_router(shifts_router)
app.include_router(timesheets_router)


CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in CORS_ORIGINS],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CrewsheetError)
async def crewsheet_error_handler(request: Request, exc: CrewsheetError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"error": exc.code, "detail": exc.message}
    if exc.retryable:
        body["retryable"] = True
    return JSONResponse(status_code=exc.status_code, content=body)


@app.get("/health")
def health():
    return {"ok": True}
