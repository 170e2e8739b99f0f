"""
Dependencias de FastAPI compartidas por las rutas.

Cadena de admision de una peticion de subida:

    get_caller -> get_policy -> require_admission -> endpoint

- get_caller: identidad del caller a partir de los headers que pone la
  capa de sesion (email, plan pro) y de su direccion de red.
- get_policy: politica de cuota del caller (unica derivacion del tier).
- require_admission: consulta el rate limiter con el limite del tier y
  rechaza con 429 si la ventana esta llena.

Headers de identidad: solo si vienen de la capa de sesion
---------------------------------------------------------
Los headers X-Auth-Email / X-Auth-Pro los escribe la capa de sesion que
esta delante de este servicio, pero un cliente tambien podria enviarlos
directamente. Por eso solo se aceptan cuando la peticion trae ademas el
secreto compartido IDENTITY_PROXY_SECRET (comparado en tiempo constante).
Si el secreto no vino, no coincide, o no esta configurado, el caller se
trata como anonimo: nunca se le da un tier mas alto ni un bucket de rate
limit propio por un header que el mismo eligio.

FastAPI cachea el resultado de cada dependencia durante una peticion, asi
que get_caller se ejecuta una sola vez aunque varias dependencias lo pidan.
Los tests (y otros despliegues) pueden reemplazar get_caller con
app.dependency_overrides.
"""

# hmac.compare_digest: compara el secreto sin filtrar por tiempo de
# respuesta cuantos caracteres coinciden.
import hmac

# math.ceil y time.time: para calcular el header Retry-After.
import math
import time
from dataclasses import dataclass

# Depends: mecanismo de inyeccion de dependencias de FastAPI. Cada
# parametro con Depends(...) se resuelve antes de ejecutar el endpoint.
from fastapi import Depends

# Request de Starlette: de aqui salen los headers y la IP del socket.
from starlette.requests import Request

from app.config import settings
from app.errors import AdmissionDenied, AuthenticationRequired
from app.limiter import rate_limit_key, rate_limiter
from app.services.quota import QuotaPolicy, resolve

# Valores aceptados como "verdadero" en el header del plan pro.
TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Caller:
    """
    Identidad de quien hace la peticion.

    Atributos:
        email (str | None): Email de la cuenta; None si es anonimo.
        is_pro (bool): True si la cuenta tiene plan pro.
        forwarded_for (str | None): Header X-Forwarded-For, si vino.
        address (str | None): IP del socket.
    """
    email: str | None = None
    is_pro: bool = False
    forwarded_for: str | None = None
    address: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.email is not None

    @property
    def rate_limit_key(self) -> str:
        return rate_limit_key(self.email, self.forwarded_for, self.address)


def from_session_layer(request: Request) -> bool:
    """
    True si la peticion trae el secreto de la capa de sesion.

    Sin secreto configurado siempre es False (falla cerrado).
    """
    expected = settings.IDENTITY_PROXY_SECRET
    received = request.headers.get(settings.IDENTITY_SECRET_HEADER)
    if not expected or not received:
        return False
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


def get_caller(request: Request) -> Caller:
    email = None
    is_pro = False
    if from_session_layer(request):
        email = (request.headers.get(settings.IDENTITY_EMAIL_HEADER) or "").strip() or None
        is_pro = (request.headers.get(settings.IDENTITY_PRO_HEADER) or "").strip().lower() in TRUTHY

    return Caller(
        email=email,
        is_pro=is_pro,
        forwarded_for=request.headers.get("x-forwarded-for"),
        address=request.client.host if request.client else None,
    )


def get_policy(caller: Caller = Depends(get_caller)) -> QuotaPolicy:
    return resolve(caller.is_authenticated, caller.is_pro)


def require_admission(
    caller: Caller = Depends(get_caller),
    policy: QuotaPolicy = Depends(get_policy),
) -> QuotaPolicy:
    """
    Admite o rechaza la peticion segun el rate limit del tier del caller.

    Retorna la politica del caller para que el endpoint no tenga que
    pedirla de nuevo.

    Raises:
        AdmissionDenied: Si el caller ya consumio su ventana actual.
    """
    key = caller.rate_limit_key
    if not rate_limiter.admit(key, policy.requests_per_minute):
        retry_after = max(1, math.ceil(rate_limiter.reset_at(key) - time.time()))
        raise AdmissionDenied("Rate limit exceeded", retry_after=retry_after)
    return policy


def require_authenticated(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_authenticated:
        raise AuthenticationRequired("Unauthorized")
    return caller
