"""
Modulo de servicio para el upstream de imagenes.

Este modulo encapsula TODA la comunicacion HTTP con el servicio externo que
almacena, transforma y sirve las imagenes. Ningun otro archivo del proyecto
deberia llamar a httpx para hablar con el upstream; todo pasa por aqui.

Endpoints del upstream que usamos:
    POST /upload                 -> un archivo (campo "image")
    POST /bulk-upload            -> varios archivos (campo repetido "files[]")
    GET  /bulk-status/{batchId}  -> progreso de un lote

Autenticacion: header "x-api-key" con la credencial de la aplicacion.

Respuestas con forma dinamica
-----------------------------
El upstream casi siempre responde JSON, pero a veces responde texto plano
(ej: "ok" o una pagina de error de un proxy). En vez de asumir JSON y
reventar, cada cuerpo se clasifica como:

    Structured(payload)   -> el cuerpo es un objeto JSON
    Unstructured(raw_text) -> cualquier otra cosa

y el gateway decide que hacer con cada caso.

Concurrencia
------------
Cada llamada abre su propio httpx.AsyncClient con un timeout acotado, asi
un reenvio lento no bloquea a otros callers. Un timeout se reporta como
UpstreamTimeout (distinto de una falla generica). Aqui NO hay reintentos:
cualquier falla sube inmediatamente.

Patron de diseno: Inyeccion de dependencias
-------------------------------------------
El constructor acepta un `transport` opcional de httpx. En produccion es
None (red real); en tests se pasa un httpx.MockTransport que simula el
upstream sin hacer llamadas de red.
"""

# json: para intentar interpretar el cuerpo de la respuesta del upstream.
# No usamos response.json() de httpx porque el upstream a veces responde
# texto plano y queremos conservarlo para los logs.
import json
import logging

# dataclass(frozen=True): objetos inmutables y comparables por valor,
# utiles en los tests (assert parse_body(...) == Structured({...})).
from dataclasses import dataclass
from typing import Any, Union

# httpx: cliente HTTP con soporte async. Se crea un AsyncClient por
# llamada; en los tests se le inyecta un httpx.MockTransport para que
# ninguna peticion salga a la red.
import httpx

from app.config import settings
from app.errors import ConfigurationError, UpstreamFailure, UpstreamTimeout

# Logger del modulo: "app.services.upstream". Aqui se registran los
# detalles de las fallas que el cliente solo ve como un 502 generico.
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Structured:
    payload: dict[str, Any]


@dataclass(frozen=True)
class Unstructured:
    raw_text: str


# Cuerpo "etiquetado": o es un objeto JSON (Structured) o es el texto tal
# cual llego (Unstructured). Quien lo consume decide con isinstance().
UpstreamBody = Union[Structured, Unstructured]


def parse_body(raw: str) -> UpstreamBody:
    """
    Clasifica un cuerpo de respuesta del upstream.

    Intenta primero interpretarlo como un objeto JSON; si no lo es (texto
    plano, JSON invalido, o un JSON que no es objeto), lo envuelve tal cual.
    """
    try:
        payload = json.loads(raw)
    except ValueError:
        return Unstructured(raw)
    if not isinstance(payload, dict):
        return Unstructured(raw)
    return Structured(payload)


@dataclass(frozen=True)
class FilePart:
    """
    Un archivo listo para reenviarse al upstream.

    Atributos:
        filename (str): Nombre original (solo informativo para el upstream).
        content_type (str): Tipo MIME declarado por el cliente.
        data (bytes): Contenido del archivo.
    """
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def as_multipart(self) -> tuple[str, bytes, str]:
        return (self.filename, self.data, self.content_type)


@dataclass(frozen=True)
class UpstreamResponse:
    status_code: int
    body: UpstreamBody

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class UpstreamService:
    """
    Cliente del upstream de imagenes.

    Atributos:
        base_url (str | None): URL base del upstream. Si es None se usa
            settings.UPSTREAM_BASE_URL en cada llamada.
        api_key (str | None): Credencial. Si es None se usa
            settings.UPSTREAM_API_KEY en cada llamada.
        transport (httpx.AsyncBaseTransport | None): Transporte de httpx
            (inyectable para tests).
    """

    def __init__(self, base_url: str | None = None, api_key: str | None = None, transport=None):
        # None significa "leer settings en cada llamada": asi un cambio de
        # configuracion (o un monkeypatch en tests) aplica sin recrear el servicio.
        self.base_url = base_url
        self.api_key = api_key
        # Solo los tests lo pasan (httpx.MockTransport); en produccion es None
        # y httpx usa su transporte HTTP normal.
        self.transport = transport

    def _credentials(self) -> tuple[str, str]:
        base_url = self.base_url if self.base_url is not None else settings.UPSTREAM_BASE_URL
        api_key = self.api_key if self.api_key is not None else settings.UPSTREAM_API_KEY
        if not base_url:
            raise ConfigurationError("UPSTREAM_BASE_URL is not configured")
        if not api_key:
            raise ConfigurationError("UPSTREAM_API_KEY is not configured")
        return base_url.rstrip("/"), api_key

    async def _request(self, method: str, path: str, timeout: float, **kwargs) -> UpstreamResponse:
        base_url, api_key = self._credentials()
        headers = {"x-api-key": api_key, **kwargs.pop("headers", {})}

        try:
            async with httpx.AsyncClient(
                base_url=base_url, timeout=timeout, transport=self.transport
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(f"{method} {path} timed out after {timeout}s") from e
        except httpx.RequestError as e:
            raise UpstreamFailure(f"{method} {path} failed: {e!r}") from e

        logger.info("Upstream %s %s -> %d", method, path, response.status_code)
        return UpstreamResponse(status_code=response.status_code, body=parse_body(response.text))

    async def upload(self, file: FilePart, expiration: int | None = None) -> UpstreamResponse:
        """
        Reenvia un archivo a POST /upload.

        Parametros:
            file (FilePart): Archivo a subir (campo multipart "image").
            expiration (int | None): Timestamp unix ABSOLUTO de expiracion.
        """
        data = {"expiration": str(expiration)} if expiration is not None else None
        return await self._request(
            "POST",
            "/upload",
            settings.UPSTREAM_TIMEOUT,
            files={"image": file.as_multipart()},
            data=data,
        )

    async def bulk_upload(self, files: list[FilePart], expiration: int | None = None) -> UpstreamResponse:
        """Reenvia un lote completo a POST /bulk-upload en una sola peticion."""
        data = {"expiration": str(expiration)} if expiration is not None else None
        return await self._request(
            "POST",
            "/bulk-upload",
            settings.UPSTREAM_BULK_TIMEOUT,
            files=[("files[]", f.as_multipart()) for f in files],
            data=data,
        )

    async def bulk_status(self, batch_id: str) -> UpstreamResponse:
        """Consulta GET /bulk-status/{batch_id} pidiendo que no se use cache."""
        return await self._request(
            "GET",
            f"/bulk-status/{batch_id}",
            settings.UPSTREAM_STATUS_TIMEOUT,
            headers={"Cache-Control": "no-cache"},
        )


# Instancia global del servicio (Singleton implicito), igual que el resto
# de servicios. Las rutas la importan y los tests la reemplazan.
upstream_service = UpstreamService()
