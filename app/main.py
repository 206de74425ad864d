import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL
from .database import engine, Base
from .exceptions import CuotaError
from .routers import cuotas

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Club Deportivo - Cuotas", lifespan=lifespan)


# --- ERRORES ---
@app.exception_handler(CuotaError)
async def cuota_error_handler(request: Request, exc: CuotaError):
    logger.warning(f"{request.method} {request.url.path} → {exc.codigo}: {exc.mensaje}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "mensaje": exc.mensaje, "codigo": exc.codigo},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errores = [
        {
            "campo": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "mensaje": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    logger.info(f"{request.method} {request.url.path} → validación: {errores}")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "mensaje": "Errores de validación",
            "codigo": "VALIDATION_ERROR",
            "errores": errores,
        },
    )


# --- RUTAS ---
app.include_router(cuotas.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
