"""
Modulo de esquemas (schemas) de datos de la API.

Este archivo define la estructura de los datos que salen de la API, usando
Pydantic. Es el "contrato" entre el frontend y el backend.

Nota sobre respuestas del upstream
----------------------------------
UploadData y BatchStatus describen lo que el upstream suele responder, pero
el gateway retransmite esos documentos TAL CUAL (sin filtrar campos). Por
eso estos schemas se usan para documentar las rutas en Swagger (/docs) y no
como response_model: un response_model descartaria los campos extra que el
upstream agregue.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadData(BaseModel):
    """
    Datos de una imagen subida, tal como los entrega el upstream.

    Atributos:
        id (str): Identificador de la imagen en el upstream.
        title (str): Titulo (normalmente el nombre del archivo).
        url (str): URL directa de la imagen.
        display_url (str): URL de la pagina para visualizarla.
        size (str | int): Tamano reportado por el upstream.
        timestamp (str | int): Momento de la subida.
        expiration (str | int): Timestamp absoluto de expiracion ("0" = nunca).
    """
    model_config = ConfigDict(extra="allow")

    id: str
    title: Optional[str] = None
    url: str
    display_url: Optional[str] = None
    size: Optional[str | int] = None
    timestamp: Optional[str | int] = None
    expiration: Optional[str | int] = None


class UploadResponse(BaseModel):
    """Respuesta de POST /upload."""
    success: bool = True
    data: UploadData


class BulkUploadResponse(BaseModel):
    """
    Respuesta de POST /bulk-upload.

    batchId es la llave para consultar GET /bulk-status/{batchId}.
    """
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    batch_id: str = Field(alias="batchId")


class BatchItem(BaseModel):
    """Estado de un archivo dentro de un lote."""
    model_config = ConfigDict(extra="allow")

    id: str
    url: Optional[str] = None
    error: Optional[str] = None
    done: bool


class BatchStatus(BaseModel):
    """
    Progreso de un lote, tal como lo calcula el upstream.

    Invariantes: completed + failed <= total; percent == 100 es la UNICA
    senal de que el lote termino.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    batch_id: str = Field(alias="batchId")
    total: int
    completed: int
    failed: int
    percent: float
    items: list[BatchItem]


class UploadTokenResponse(BaseModel):
    """
    Respuesta de GET /upload-token.

    Atributos:
        timestamp (int): Segundos unix en que se firmo el token.
        signature (str): HMAC-SHA256 en base64 URL-safe sin padding.
        endpoint (str): URL del upstream a la que se sube directamente.
    """
    timestamp: int
    signature: str
    endpoint: str


class ErrorResponse(BaseModel):
    """
    Schema estandar para respuestas de error.

    Todas las respuestas de error de la API siguen este formato, venga de
    donde venga el error.
    """
    success: bool = False
    error: str
