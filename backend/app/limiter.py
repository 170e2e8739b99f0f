"""
Modulo de limitacion de tasa de peticiones (Rate Limiting).

Este modulo restringe cuantas peticiones de subida puede hacer un mismo
caller por ventana de tiempo. El limite depende del tier del caller
(ver app/services/quota.py), por eso el limite se pasa en cada llamada
en vez de fijarse con un decorador por ruta.

Algoritmo: ventana fija por caller
----------------------------------
Para cada clave (email o IP) guardamos un contador y el instante en que
su ventana termina:

    - Si no hay entrada o la ventana ya vencio (now >= window_reset_at):
      se crea con count = 1 y window_reset_at = now + 60s -> ADMITIDA
    - Si count < limit: count += 1 -> ADMITIDA
    - Si no: RECHAZADA

La ventana empieza con la primera peticion de cada caller; no esta
alineada al minuto del reloj.

Almacenamiento inyectado
------------------------
El contador vive en un backend de la libreria `limits` (la misma que usa
SlowAPI por debajo). En Redis, incr() es un incremento atomico del lado
del servidor, asi dos peticiones simultaneas de la misma clave nunca leen
el mismo contador. El backend en memoria ademas purga las entradas
vencidas con un timer, lo que acota la memoria usada.

Cuidado con memory://: MemoryStorage.incr() primero llama a get(), que
borra la clave si su ventana ya vencio, y eso ocurre FUERA del lock por
clave. Dos peticiones que llegan justo en el borde de la ventana pueden
pisarse y perder un incremento, es decir, admitir una peticion de mas en
esa ventana. Dentro de la ventana el conteo si es exacto. Para limites
estrictos (o varios workers / replicas) usar Redis:
    RATE_LIMIT_STORAGE_URI="redis://localhost:6379"
"""

import logging

from limits.storage import Storage, storage_from_string

from app.config import settings

logger = logging.getLogger(__name__)

# Bucket compartido para todo el trafico anonimo que no trae ninguna
# informacion de origen. Todo ese trafico comparte un mismo presupuesto.
SHARED_ANONYMOUS_KEY = "anonymous"


class RateLimiter:
    """
    Limitador de ventana fija sobre un almacenamiento de `limits`.

    Atributos:
        storage (Storage): Backend de contadores. Se inyecta para poder
            usar memoria en desarrollo y Redis/Memcached en produccion.
        window_seconds (int): Duracion de cada ventana.
    """

    def __init__(self, storage: Storage, window_seconds: int = 60, namespace: str = "upload-admission"):
        self.storage = storage
        self.window_seconds = window_seconds
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}/{key}"

    def admit(self, key: str, limit: int) -> bool:
        """
        Decide si se admite una peticion de `key` con `limit` peticiones
        por ventana.

        incr() crea la entrada con count = 1 y vencimiento now + window si
        no existe (o si vencio), y en otro caso la incrementa; todo de forma
        atomica. Una peticion rechazada tambien incrementa el contador, pero
        eso no cambia ni la decision ni el instante en que la ventana vence.

        Retorna:
            bool: True si la peticion cabe en la ventana actual.
        """
        count = self.storage.incr(self._key(key), self.window_seconds)
        if count <= limit:
            return True
        logger.warning("Rate limit exceeded for %s (%d/%d)", key, count, limit)
        return False

    def reset_at(self, key: str) -> float:
        """Instante (unix seconds) en que vence la ventana actual de `key`."""
        return self.storage.get_expiry(self._key(key))

    def reset(self) -> None:
        """Borra todas las ventanas (util en tests y en despliegues)."""
        self.storage.reset()


def rate_limit_key(email: str | None, forwarded_for: str | None, peer_address: str | None) -> str:
    """
    Elige la clave de rate limiting de un caller.

    Orden de preferencia:
        1. Email de la cuenta (callers autenticados).
        2. Primera IP de X-Forwarded-For (la del cliente real detras del proxy).
        3. IP del socket.
        4. Bucket anonimo compartido.
    """
    if email:
        return email
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if peer_address:
        return peer_address
    return SHARED_ANONYMOUS_KEY


# Instancia global del limitador. Todas las rutas comparten el mismo
# almacenamiento de contadores.
rate_limiter = RateLimiter(
    storage_from_string(settings.RATE_LIMIT_STORAGE_URI),
    window_seconds=settings.RATE_LIMIT_WINDOW,
)
