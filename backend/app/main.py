import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.settings import settings, validate_settings
from app.db.session import engine
from app.models import Base
from app.routers.records import router as records_router
from app.services.surgery_import.suppliers import load_vendor_aliases

app = FastAPI(title="Material Ledger API", version="0.1.0")
logger = logging.getLogger("material_ledger.startup")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = request.headers.get("x-request-id")
    logger.exception("Unhandled server error", extra={"request_id": request_id})
    payload = {"detail": "Internal server error"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


@app.on_event("startup")
def startup():
    validate_settings(settings)
    Base.metadata.create_all(bind=engine)
    aliases = load_vendor_aliases(settings.vendor_aliases_path)
    logger.info(
        "Vendor alias table loaded (%s entries, source=%s).",
        len(aliases),
        settings.vendor_aliases_path or "built-in",
    )


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(records_router)
