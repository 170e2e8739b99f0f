"""
Punto de entrada principal de la aplicacion FastAPI.

Aqui se:
1. Configura el logging.
2. Crea la instancia de la aplicacion FastAPI.
3. Registra los handlers de errores (GatewayError y validacion).
4. Configura CORS.
5. Registra las rutas y el health check.

Arquitectura de la aplicacion:
------------------------------
    main.py (punto de entrada)
        |
        +-- routes/          (Controladores: reciben HTTP requests)
        |    +-- upload.py   POST /upload
        |    +-- bulk.py     POST /bulk-upload, GET /bulk-status/{id}
        |    +-- token.py    GET /upload-token
        |
        +-- services/        (Logica de negocio)
        |    +-- quota.py      politicas por tier
        |    +-- validator.py  reglas de validacion y expiracion
        |    +-- gateway.py    orquestacion de subidas y estado de lotes
        |    +-- tokens.py     tokens HMAC de subida directa
        |    +-- upstream.py   cliente HTTP del upstream
        |
        +-- models/schemas.py  (Contrato de la API)
        +-- dependencies.py    (Identidad, politica, admision)
        +-- limiter.py         (Rate limiting de ventana fija)
        +-- errors.py          (Taxonomia de errores)
        +-- config.py          (Configuracion centralizada)

El flujo de una peticion de subida es:
    Cliente -> CORS -> identidad -> politica -> rate limiter -> endpoint -> upstream
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.errors import AdmissionDenied, GatewayError
from app.routes.bulk import router as bulk_router
from app.routes.token import router as token_router
from app.routes.upload import router as upload_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Image Host Upload Gateway")


# ---------- Manejo de errores ----------

@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    """
    Convierte cualquier GatewayError en {"success": false, "error": ...}.

    Los errores de servidor (configuracion, upstream) se loguean con su
    detalle interno y se responden con un mensaje generico.
    """
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    else:
        logger.warning("%s %s rejected: %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)

    headers = None
    if isinstance(exc, AdmissionDenied) and exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.client_message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning("%s %s invalid input: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request"},
    )


# ---------- Configuracion de CORS ----------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ---------- Health Check ----------

@app.get("/health")
async def health_check():
    """
    Endpoint de verificacion de salud del servidor.

    Retorna:
        dict: {"status": "ok"} si el servidor esta funcionando.
    """
    return {"status": "ok"}


# ---------- Registro de rutas ----------

app.include_router(upload_router)
app.include_router(bulk_router)
app.include_router(token_router)
