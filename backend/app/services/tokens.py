"""
Modulo de tokens de subida directa (capability tokens).

Un cliente que quiere subir un lote muy grande no tiene que pasar por este
servidor (y por sus limites de tamano y tiempo): pide un token a
GET /upload-token y lo presenta directamente al upstream.

Formato del token:

    timestamp = segundos unix actuales
    signature = base64url_sin_padding(HMAC_SHA256(secret, "upload:" + timestamp))

El mensaje firmado es EXACTAMENTE "upload:" seguido del timestamp en
decimal, sin espacios. El upstream recalcula la firma byte a byte, asi que
cualquier variacion (espacios, milisegundos, padding) la invalida. El
upstream tambien rechaza timestamps fuera de su tolerancia de reloj; aqui
solo emitimos.

Si el secreto esta vacio NO se emite nada: un token firmado con clave
vacia lo podria fabricar cualquiera.
"""

# base64: la firma viaja en la URL, por eso usamos la variante URL-safe.
import base64

# hashlib + hmac: HMAC-SHA256 de la libreria estandar. El upstream calcula
# exactamente lo mismo con el mismo secreto y compara.
import hashlib
import hmac
import time
from dataclasses import dataclass

from app.errors import ConfigurationError


@dataclass(frozen=True)
class UploadToken:
    timestamp: int
    signature: str


def sign(secret: bytes, timestamp: int) -> str:
    """Firma "upload:{timestamp}" con HMAC-SHA256 en base64 URL-safe sin '='."""
    message = f"upload:{timestamp}".encode("ascii")
    digest = hmac.new(secret, message, hashlib.sha256).digest()
    # urlsafe_b64encode ya cambia '+' -> '-' y '/' -> '_'; solo falta
    # quitar el padding final.
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def issue_upload_token(secret: bytes | str | None, now: float | None = None) -> UploadToken:
    """
    Emite un token de subida firmado.

    Parametros:
        secret: Secreto HMAC compartido con el upstream.
        now: Instante unix a usar como timestamp (por defecto, time.time()).

    Raises:
        ConfigurationError: Si el secreto esta vacio o no existe.
    """
    if not secret:
        raise ConfigurationError("UPLOAD_SIGNING_SECRET is not configured")
    if isinstance(secret, str):
        secret = secret.encode("utf-8")

    timestamp = int(time.time() if now is None else now)
    return UploadToken(timestamp=timestamp, signature=sign(secret, timestamp))
