"""
Modulo de ruta para tokens de subida directa.

GET /upload-token entrega al cliente un token firmado con el que puede
subir un lote DIRECTAMENTE al upstream, sin pasar el cuerpo por este
servidor (y sin chocar con sus limites de tamano y tiempo).

Solo callers autenticados pueden pedir tokens, y cada peticion consume el
mismo presupuesto de rate limit que una subida.
"""

# Depends: el endpoint declara que necesita un caller autenticado y
# admitido; FastAPI ejecuta esas dependencias antes que el endpoint.
from fastapi import APIRouter, Depends

# settings: de aqui salen el secreto de firma y la URL publica del
# endpoint bulk del upstream.
from app.config import settings
from app.dependencies import Caller, require_admission, require_authenticated
from app.models.schemas import ErrorResponse, UploadTokenResponse
from app.services.quota import QuotaPolicy
from app.services.tokens import issue_upload_token

# Router del token; main.py lo monta con app.include_router().
router = APIRouter()


@router.get(
    "/upload-token",
    response_model=UploadTokenResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Caller is not signed in"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Signing secret not configured"},
    },
)
async def upload_token(
    caller: Caller = Depends(require_authenticated),
    policy: QuotaPolicy = Depends(require_admission),
):
    token = issue_upload_token(settings.UPLOAD_SIGNING_SECRET)
    return UploadTokenResponse(
        timestamp=token.timestamp,
        signature=token.signature,
        endpoint=settings.bulk_upload_endpoint,
    )
