"""
Modulo de validacion de subidas contra la politica del caller.

Este servicio es la PRIMERA linea de defensa del gateway. Antes de reenviar
nada al upstream verifica, en orden de costo (de mas barato a mas caro):

1. Que haya algo que subir (NoFile / NoFiles).
2. Que el archivo no exceda el tamano del tier (FileTooLarge), o que el
   lote no exceda el numero de archivos del tier (TooManyFiles) y que
   ninguno de sus archivos exceda el tamano del tier (FileTooLarge).
3. Que la expiracion personalizada solo la pida un caller pro
   (ExpirationRequiresPro).

Cada regla que falla lanza una excepcion de app.errors con un mensaje
accionable para el cliente; el handler de main.py la convierte en 4xx.

Expiracion: dias relativos -> timestamp absoluto
------------------------------------------------
El cliente manda "expiration" como numero de DIAS. El upstream espera un
timestamp unix ABSOLUTO en segundos:

    floor((now_ms + days * 86_400_000) / 1000)

Si se mandaran los dias tal cual (o milisegundos en vez de segundos), la
imagen expiraria en un instante completamente distinto sin ningun error.
"""

# math.floor: redondea hacia abajo los milisegundos de time.time().
import math
import time

from app.errors import (
    ExpirationRequiresPro,
    FileTooLarge,
    NoFile,
    NoFiles,
    TooManyFiles,
    ValidationError,
)
from app.services.quota import QuotaPolicy
from app.services.upstream import FilePart

# Milisegundos en un dia: 24 h * 60 min * 60 s * 1000 ms = 86_400_000.
MS_PER_DAY = 24 * 60 * 60 * 1000


def parse_expiration(raw: str | None) -> int | None:
    """
    Convierte el campo de formulario "expiration" en un numero de dias.

    Retorna None si el campo no vino o vino vacio.

    Raises:
        ValidationError: Si no es un entero positivo.
    """
    if raw is None or raw.strip() == "":
        return None
    try:
        days = int(raw)
    except ValueError:
        raise ValidationError("Expiration must be a whole number of days")
    if days <= 0:
        raise ValidationError("Expiration must be a positive number of days")
    return days


def expiration_timestamp(days: int, now: float | None = None) -> int:
    """
    Convierte `days` dias a partir de `now` en un timestamp unix (segundos).

    Parametros:
        days (int): Dias relativos pedidos por el cliente.
        now (float | None): Instante unix en segundos (por defecto, ahora).
    """
    now_ms = math.floor((time.time() if now is None else now) * 1000)
    return (now_ms + days * MS_PER_DAY) // 1000


def check_expiration(expiration_days: int | None, policy: QuotaPolicy, now: float | None = None) -> int | None:
    """
    Autoriza y convierte la expiracion pedida.

    Retorna el timestamp absoluto, o None si no se pidio expiracion.

    Raises:
        ExpirationRequiresPro: Si se pidio expiracion y el tier no es pro.
    """
    if expiration_days is None:
        return None
    if not policy.is_pro:
        raise ExpirationRequiresPro("Custom expiration requires Pro plan")
    return expiration_timestamp(expiration_days, now)


def validate_file(file: FilePart | None, policy: QuotaPolicy) -> FilePart:
    if file is None:
        raise NoFile("No file provided")
    if file.size > policy.max_file_size_bytes:
        raise FileTooLarge(f"File size exceeds limit of {policy.max_file_size_mb}MB")
    return file


def validate_batch(files: list[FilePart] | None, policy: QuotaPolicy) -> list[FilePart]:
    if not files:
        raise NoFiles("No files provided")
    if len(files) > policy.max_bulk_files:
        raise TooManyFiles(f"Too many files. Limit is {policy.max_bulk_files}")
    for file in files:
        if file.size > policy.max_file_size_bytes:
            raise FileTooLarge(f"File {file.filename!r} exceeds limit of {policy.max_file_size_mb}MB")
    return files
