from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from finexport.core.log import configure_logging
from finexport.routers.export import router as export_router
from finexport.services.export import (
    ExportError,
    NoDataError,
    RenderFailureError,
    UnsupportedFormatError,
)

ERROR_STATUS = {
    NoDataError: 404,
    UnsupportedFormatError: 400,
    RenderFailureError: 500,
}


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    yield


app = FastAPI(lifespan=lifespan)
app.include_router(export_router)


@app.exception_handler(HTTPException)
def http_exc_handler(_, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "detail": exc.detail})


@app.exception_handler(ExportError)
def export_exc_handler(_, exc: ExportError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    return JSONResponse(status_code=status_code, content={"ok": False, "detail": exc.message, "kind": exc.kind})
