"""
Modulo de ruta para subida de un archivo individual.

Este archivo define el endpoint POST /upload:

    1. POST /upload               -> Sube un archivo           [ESTE ARCHIVO]
    2. POST /bulk-upload          -> Sube un lote (bulk.py)
    3. GET  /bulk-status/{id}     -> Progreso del lote (bulk.py)
    4. GET  /upload-token         -> Token de subida directa (token.py)

Responsabilidades de este endpoint:
1. Admitir la peticion (rate limit segun el tier del caller)
2. Recibir el archivo (multipart/form-data, campo "file")
3. Leer como maximo el tamano del tier + 1 byte (rechazo temprano)
4. Validar tamano y permiso de expiracion
5. Reenviar al upstream y retransmitir su respuesta

Este endpoint SIEMPRE hace el viaje al upstream: nunca fabrica una
respuesta localmente.
"""

# os: usado para os.path.basename() que sanitiza el nombre del archivo
# (ej: "../../etc/passwd" -> "passwd") antes de reenviarlo.
import os

# APIRouter: agrupa los endpoints de este archivo.
# Depends: inyecta la politica del caller ya admitido por el rate limiter.
# File / Form: marcadores de FastAPI para campos multipart/form-data.
# UploadFile: wrapper del archivo subido con read() async y metadata
#   (filename, content_type).
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from app.dependencies import require_admission
from app.models.schemas import ErrorResponse, UploadResponse
from app.services.gateway import upload_single
from app.services.quota import QuotaPolicy

# upstream_service se importa AQUI (y no dentro del gateway) para que los
# tests puedan reemplazarlo con monkeypatch en "app.routes.upload".
from app.services.upstream import FilePart, upstream_service
from app.services.validator import parse_expiration

# En main.py se "monta" este router en la app con app.include_router().
router = APIRouter()


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No file or invalid expiration"},
        403: {"model": ErrorResponse, "description": "Expiration requires Pro plan"},
        413: {"model": ErrorResponse, "description": "File exceeds the plan size limit"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        502: {"model": ErrorResponse, "description": "Upstream upload failed"},
    },
)
async def upload_file(
    file: UploadFile | None = File(None),
    expiration: str | None = Form(None),
    policy: QuotaPolicy = Depends(require_admission),
):
    """
    Sube una imagen al upstream.

    Parametros:
        file (UploadFile | None): Archivo a subir. Opcional en la firma para
            poder responder 400 "No file provided" en vez del 422 generico.
        expiration (str | None): Dias hasta que la imagen expire (solo pro).
        policy (QuotaPolicy): Politica del caller, ya admitido por el
            rate limiter.

    Retorna:
        JSONResponse: {"success": true, "data": {...}} con el payload del
            upstream sin modificar.
    """
    expiration_days = parse_expiration(expiration)

    part = None
    if file is not None:
        # Leemos a lo mucho max + 1 bytes: si leemos mas del maximo, el
        # archivo es demasiado grande y el validador lo rechaza con 413
        # sin haber cargado el archivo completo en memoria.
        data = await file.read(policy.max_file_size_bytes + 1)
        part = FilePart(
            filename=os.path.basename(file.filename or "unknown"),
            content_type=file.content_type or "application/octet-stream",
            data=data,
        )

    payload = await upload_single(upstream_service, part, expiration_days, policy)
    return JSONResponse(content={"success": True, "data": payload})
