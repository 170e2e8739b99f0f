"""
Modulo de configuracion centralizada de la aplicacion.

Este archivo define TODAS las constantes y configuraciones que el gateway
de subidas necesita para funcionar. Todo valor sensible o dependiente del
entorno se lee de variables de entorno (os.getenv), asi la misma aplicacion
corre en desarrollo, staging y produccion sin cambiar el codigo fuente.

Valores obligatorios en produccion:
    - UPSTREAM_API_KEY: credencial para hablar con el servicio de imagenes.
    - UPLOAD_SIGNING_SECRET: secreto HMAC para firmar tokens de subida.

Si alguno falta, las operaciones que lo necesitan fallan con
ConfigurationError (nunca se "degradan" a un modo inseguro).

Patron de diseno: **Singleton implicito**
La instancia `settings` se crea UNA sola vez al importar este modulo.
Cada archivo que haga `from app.config import settings` recibe la MISMA
instancia (y los tests pueden parchear sus atributos con monkeypatch).
"""

import os


class Settings:
    """
    Clase que encapsula toda la configuracion de la aplicacion.

    Nota: los limites por tier (tamano maximo, archivos por lote, peticiones
    por minuto) NO viven aqui sino en app/services/quota.py, porque son
    politica de producto y no dependen del entorno.
    """

    # ---------- Servicio upstream de imagenes ----------

    # URL base del servicio externo que almacena y sirve las imagenes.
    # Expone POST /upload, POST /bulk-upload y GET /bulk-status/{batchId}.
    UPSTREAM_BASE_URL: str = os.getenv("UPSTREAM_BASE_URL", "https://i.api.dishis.tech")

    # API key que enviamos en el header "x-api-key" al upstream.
    # Vacia por defecto: sin ella no se reenvia nada (ConfigurationError).
    UPSTREAM_API_KEY: str = os.getenv("UPSTREAM_API_KEY", "")

    # Timeouts en segundos. Los lotes pueden pesar cientos de MB, por eso
    # el reenvio bulk tiene un plazo mucho mas largo que el de un archivo.
    UPSTREAM_TIMEOUT: float = float(os.getenv("UPSTREAM_TIMEOUT", "30"))
    UPSTREAM_BULK_TIMEOUT: float = float(os.getenv("UPSTREAM_BULK_TIMEOUT", "60"))
    UPSTREAM_STATUS_TIMEOUT: float = float(os.getenv("UPSTREAM_STATUS_TIMEOUT", "10"))

    # ---------- Tokens de subida directa ----------

    # Secreto compartido con el upstream para firmar "upload:{timestamp}".
    # El upstream verifica la firma byte a byte con este mismo secreto.
    UPLOAD_SIGNING_SECRET: str = os.getenv("UPLOAD_SIGNING_SECRET", "")

    # ---------- Rate limiting ----------

    # URI del almacenamiento de contadores (formato de la libreria `limits`).
    #   memory://                  -> contadores en memoria del proceso
    #   redis://localhost:6379     -> contadores compartidos entre replicas
    RATE_LIMIT_STORAGE_URI: str = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

    # Duracion de la ventana fija del limitador, en segundos.
    RATE_LIMIT_WINDOW: int = int(os.getenv("RATE_LIMIT_WINDOW", "60"))

    # ---------- Identidad ----------

    # La capa de sesion (OAuth) que esta delante de este servicio autentica
    # al usuario y nos reenvia su identidad en estos headers.
    IDENTITY_EMAIL_HEADER: str = os.getenv("IDENTITY_EMAIL_HEADER", "X-Auth-Email")
    IDENTITY_PRO_HEADER: str = os.getenv("IDENTITY_PRO_HEADER", "X-Auth-Pro")

    # Secreto compartido con la capa de sesion. Los headers de identidad
    # solo se aceptan si la peticion trae este secreto en
    # IDENTITY_SECRET_HEADER; sin el, cualquier cliente podria declararse
    # pro con solo agregar un header.
    # Vacio por defecto: si no se configura, TODOS los callers son anonimos.
    IDENTITY_PROXY_SECRET: str = os.getenv("IDENTITY_PROXY_SECRET", "")
    IDENTITY_SECRET_HEADER: str = os.getenv("IDENTITY_SECRET_HEADER", "X-Auth-Proxy-Secret")

    # ---------- Aplicacion ----------

    # Origenes permitidos por CORS, separados por coma.
    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def bulk_upload_endpoint(self) -> str:
        """URL publica del endpoint bulk del upstream (la que usan los tokens)."""
        return f"{self.UPSTREAM_BASE_URL.rstrip('/')}/bulk-upload"


# Instancia unica de configuracion (patron Singleton implicito).
settings = Settings()
