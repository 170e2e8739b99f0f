"""
Modulo de errores del gateway de subidas.

Toda falla que el core puede producir es una subclase de GatewayError.
Cada clase sabe su codigo HTTP (status_code) y si su mensaje se puede
mostrar al cliente (public). El handler registrado en main.py traduce
cualquier GatewayError a una respuesta JSON uniforme:

    {"success": false, "error": "<mensaje>"}

Jerarquia:

    GatewayError
     +-- ValidationError          (400) entrada invalida o ausente
     |    +-- NoFile
     |    +-- NoFiles
     +-- QuotaViolation           (400) la entrada excede la politica del tier
     |    +-- FileTooLarge        (413)
     |    +-- TooManyFiles        (400)
     |    +-- ExpirationRequiresPro (403)
     +-- AuthenticationRequired   (401)
     +-- AdmissionDenied          (429) rate limit excedido
     +-- ConfigurationError       (500) falta un secreto o credencial
     +-- UpstreamFailure          (502) upstream caido, no-2xx o ilegible
          +-- UpstreamTimeout     (504)

Los errores de servidor (public = False) responden con un mensaje generico;
el detalle interno solo va al log.
"""


class GatewayError(Exception):
    """Clase base de todos los errores del core."""

    status_code: int = 500
    public: bool = True
    generic_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.generic_message
        super().__init__(self.message)

    @property
    def client_message(self) -> str:
        """Mensaje que se puede enviar al cliente sin filtrar detalles internos."""
        return self.message if self.public else self.generic_message


# ---------- Errores corregibles por el cliente (4xx) ----------


class ValidationError(GatewayError):
    status_code = 400
    generic_message = "Invalid request"


class NoFile(ValidationError):
    generic_message = "No file provided"


class NoFiles(ValidationError):
    generic_message = "No files provided"


class QuotaViolation(GatewayError):
    status_code = 400
    generic_message = "Request exceeds the limits of your plan"


class FileTooLarge(QuotaViolation):
    status_code = 413


class TooManyFiles(QuotaViolation):
    status_code = 400


class ExpirationRequiresPro(QuotaViolation):
    status_code = 403
    generic_message = "Custom expiration requires Pro plan"


class AuthenticationRequired(GatewayError):
    status_code = 401
    generic_message = "Unauthorized"


class AdmissionDenied(GatewayError):
    """
    El limitador rechazo la peticion.

    retry_after (int | None): segundos hasta que se abre la siguiente
        ventana. Se envia en el header Retry-After para que el cliente
        sepa cuanto esperar.
    """

    status_code = 429
    generic_message = "Rate limit exceeded"

    def __init__(self, message: str | None = None, retry_after: int | None = None):
        super().__init__(message)
        self.retry_after = retry_after


# ---------- Errores del lado del servidor (5xx) ----------


class ConfigurationError(GatewayError):
    status_code = 500
    public = False
    generic_message = "Internal server error"


class UpstreamFailure(GatewayError):
    status_code = 502
    public = False
    generic_message = "Upstream upload service failed"


class UpstreamTimeout(UpstreamFailure):
    status_code = 504
    generic_message = "Upstream upload service timed out"
