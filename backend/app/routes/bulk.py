"""
Modulo de rutas para subidas por lote y su seguimiento.

    POST /bulk-upload           -> reenvia el lote, retorna batchId
    GET  /bulk-status/{batchId} -> progreso actual del lote

El cliente sube el lote, recibe el batchId de inmediato y luego consulta
/bulk-status/{batchId} cada segundo hasta que percent == 100. No hay
notificaciones push ni websockets: el seguimiento lo maneja el cliente.

/bulk-status no pasa por el rate limiter, porque un cliente que consulta
cada segundo agotaria en segundos el presupuesto de un caller anonimo.
"""

# os: os.path.basename() sanitiza el nombre de cada archivo del lote.
import os

# File(None, alias="files[]"): el formulario del navegador repite el campo
# "files[]" una vez por archivo; FastAPI los junta en una lista.
from fastapi import APIRouter, Depends, File, Form, UploadFile

# JSONResponse: necesario para agregar el header Cache-Control en el
# endpoint de estado.
from fastapi.responses import JSONResponse

from app.dependencies import require_admission
from app.models.schemas import BatchStatus, BulkUploadResponse, ErrorResponse
from app.services.gateway import get_batch_status, upload_bulk
from app.services.quota import QuotaPolicy

# Igual que en upload.py: los tests parchean "app.routes.bulk.upstream_service".
from app.services.upstream import FilePart, upstream_service
from app.services.validator import parse_expiration

# En main.py se "monta" este router en la app con app.include_router().
router = APIRouter()


@router.post(
    "/bulk-upload",
    response_model=BulkUploadResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No files, too many files or invalid expiration"},
        403: {"model": ErrorResponse, "description": "Expiration requires Pro plan"},
        413: {"model": ErrorResponse, "description": "A file exceeds the plan size limit"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        502: {"model": ErrorResponse, "description": "Upstream did not accept the batch"},
        504: {"model": ErrorResponse, "description": "Upstream timed out"},
    },
)
async def bulk_upload(
    files: list[UploadFile] | None = File(None, alias="files[]"),
    expiration: str | None = Form(None),
    policy: QuotaPolicy = Depends(require_admission),
):
    """
    Reenvia un lote de imagenes al upstream como una sola peticion.

    Parametros:
        files (list[UploadFile] | None): Campo multipart repetido "files[]".
        expiration (str | None): Dias hasta la expiracion (solo pro), uno
            para todo el lote.
        policy (QuotaPolicy): Politica del caller ya admitido.

    Retorna:
        JSONResponse: {"success": true, "batchId": "..."}
    """
    expiration_days = parse_expiration(expiration)

    # Basta con leer max_bulk_files + 1 partes para que el validador
    # rechace el lote por cantidad; las demas nunca se cargan en memoria.
    # Cada parte se lee a lo mucho hasta el tamano del tier + 1 byte, igual
    # que en /upload, y el validador la rechaza con 413 si lo excede.
    parts = [
        FilePart(
            filename=os.path.basename(f.filename or "unknown"),
            content_type=f.content_type or "application/octet-stream",
            data=await f.read(policy.max_file_size_bytes + 1),
        )
        for f in (files or [])[: policy.max_bulk_files + 1]
    ]

    batch_id = await upload_bulk(upstream_service, parts, expiration_days, policy)
    return JSONResponse(content={"success": True, "batchId": batch_id})


@router.get(
    "/bulk-status/{batch_id}",
    responses={
        200: {"model": BatchStatus, "description": "Current progress of the batch"},
        400: {"model": ErrorResponse, "description": "Invalid batch ID"},
        502: {"model": ErrorResponse, "description": "Upstream status unavailable"},
    },
)
async def bulk_status(batch_id: str):
    """
    Retransmite el estado de un lote desde el upstream.

    Cada llamada consulta al upstream de nuevo. La respuesta lleva
    Cache-Control: no-store para que ni el navegador ni un proxy intermedio
    devuelvan un estado viejo al siguiente sondeo.
    """
    status = await get_batch_status(upstream_service, batch_id)
    return JSONResponse(content=status, headers={"Cache-Control": "no-store"})
