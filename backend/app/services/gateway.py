"""
Modulo del gateway de subidas: archivo individual, lote y estado de lote.

Flujo de cada operacion:

    upload_single:    validar -> expiracion -> POST /upload        -> payload
    upload_bulk:      validar -> expiracion -> POST /bulk-upload   -> batchId
    get_batch_status: validar id            -> GET /bulk-status/id -> estado

Las subidas por lote son "fire and forget": upload_bulk retorna el batchId
en cuanto el upstream acepta el lote, sin esperar a que se procese. El
cliente consulta get_batch_status repetidamente (ej: cada segundo) hasta
que percent == 100. Este modulo no guarda estado entre llamadas; cancelar
un seguimiento es simplemente dejar de consultar.

Las fallas parciales de un lote (un archivo corrupto entre veinte) las
reporta el upstream por item en BatchStatus.items; no abortan el lote.
"""

import logging

# re: para validar el formato del batch ID con una expresion regular
# antes de meterlo en la URL del upstream.
import re
from typing import Any

from app.errors import UpstreamFailure, ValidationError
from app.services.quota import QuotaPolicy

# UpstreamService llega como PARAMETRO en cada funcion en vez de importar
# la instancia global: asi los tests pasan un servicio falso sin parchear
# nada. Las rutas son las que pasan upstream_service.
from app.services.upstream import FilePart, Structured, UpstreamResponse, UpstreamService
from app.services.validator import check_expiration, validate_batch, validate_file

# Logger del modulo: registra cada subida aceptada (nombre, tamano, tier).
logger = logging.getLogger(__name__)

# Los batch IDs se interpolan en la URL del upstream, asi que solo
# aceptamos caracteres seguros (sin '/', '.', '?', etc.).
BATCH_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def _describe(response: UpstreamResponse) -> str:
    if isinstance(response.body, Structured):
        text = str(response.body.payload)
    else:
        text = response.body.raw_text
    return f"status={response.status_code} body={text[:200]!r}"


async def upload_single(
    upstream: UpstreamService,
    file: FilePart | None,
    expiration_days: int | None,
    policy: QuotaPolicy,
    now: float | None = None,
) -> dict[str, Any]:
    """
    Valida un archivo, lo reenvia al upstream y retorna su payload.

    Retorna:
        dict: El miembro "data" de la respuesta del upstream si existe;
            si no, el documento completo. No se modifica.

    Raises:
        NoFile, FileTooLarge, ExpirationRequiresPro: Validacion.
        UpstreamFailure: Respuesta no-2xx, ilegible, o con success falso.
    """
    file = validate_file(file, policy)
    expiration = check_expiration(expiration_days, policy, now)

    response = await upstream.upload(file, expiration)

    # El upstream puede responder texto plano en vez de JSON; eso se
    # trata como falla, igual que un status no-2xx o "success": false.
    if not response.ok or not isinstance(response.body, Structured):
        raise UpstreamFailure(f"Upload of {file.filename!r} rejected: {_describe(response)}")
    payload = response.body.payload
    if not payload.get("success"):
        raise UpstreamFailure(f"Upload of {file.filename!r} unsuccessful: {_describe(response)}")

    logger.info("Uploaded %r (%d bytes, tier=%s)", file.filename, file.size, policy.tier)
    return payload.get("data") or payload


async def upload_bulk(
    upstream: UpstreamService,
    files: list[FilePart] | None,
    expiration_days: int | None,
    policy: QuotaPolicy,
    now: float | None = None,
) -> str:
    """
    Valida un lote y lo reenvia completo en una sola peticion.

    La expiracion se autoriza y convierte UNA vez para todo el lote.

    Retorna:
        str: El batchId asignado por el upstream.

    Raises:
        NoFiles, TooManyFiles, FileTooLarge, ExpirationRequiresPro: Validacion.
        UpstreamFailure: Si el upstream no retorna un batchId.
    """
    files = validate_batch(files, policy)
    expiration = check_expiration(expiration_days, policy, now)

    response = await upstream.bulk_upload(files, expiration)

    batch_id = None
    if response.ok and isinstance(response.body, Structured):
        batch_id = response.body.payload.get("batchId")
    if not batch_id:
        raise UpstreamFailure(f"Bulk upload of {len(files)} files returned no batchId: {_describe(response)}")

    logger.info("Bulk upload accepted: batch %s with %d files (tier=%s)", batch_id, len(files), policy.tier)
    return str(batch_id)


async def get_batch_status(upstream: UpstreamService, batch_id: str) -> dict[str, Any]:
    """
    Consulta el estado actual de un lote, sin cache.

    El resultado se retransmite tal cual: este modulo no calcula percent ni
    modifica los items. Consultas repetidas retornan el mismo estado o uno
    mas avanzado.

    Raises:
        ValidationError: Si el batch_id tiene caracteres no permitidos.
        UpstreamFailure: Si el upstream no responde, responde no-2xx o
            responde algo que no es JSON.
    """
    if not BATCH_ID_PATTERN.match(batch_id):
        raise ValidationError("Invalid batch ID format")

    response = await upstream.bulk_status(batch_id)
    if not response.ok or not isinstance(response.body, Structured):
        raise UpstreamFailure(f"Status of batch {batch_id} unavailable: {_describe(response)}")
    return response.body.payload
