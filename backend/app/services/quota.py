"""
Modulo de politicas de cuota por tier.

Existen exactamente tres politicas canonicas:

    | tier      | tamano maximo | archivos por lote | peticiones/minuto |
    |-----------|---------------|-------------------|-------------------|
    | anonymous | 5 MB          | 5                 | 10                |
    | user      | 15 MB         | 10                | 30                |
    | pro       | 35 MB         | 50                | 100               |

resolve() es la UNICA funcion que deriva el tier a partir de los flags de
identidad. Ninguna ruta debe revisar is_pro / is_authenticated por su
cuenta; todas piden la politica aqui.
"""

# dataclass(frozen=True): una politica no se puede modificar despues de
# creada, asi ninguna ruta puede "subirle" el limite a un caller.
from dataclasses import dataclass

# Nombres de los tiers, en el mismo orden en que crecen los limites.
ANONYMOUS = "anonymous"
USER = "user"
PRO = "pro"


@dataclass(frozen=True)
class QuotaPolicy:
    """
    Politica inmutable de un tier.

    Atributos:
        tier (str): "anonymous", "user" o "pro".
        max_file_size_bytes (int): Tamano maximo de un archivo individual.
        max_bulk_files (int): Maximo de archivos en una subida por lote.
        requests_per_minute (int): Peticiones admitidas por ventana.
    """
    tier: str
    max_file_size_bytes: int
    max_bulk_files: int
    requests_per_minute: int

    @property
    def is_pro(self) -> bool:
        return self.tier == PRO

    @property
    def max_file_size_mb(self) -> int:
        return self.max_file_size_bytes // (1024 * 1024)


ANONYMOUS_POLICY = QuotaPolicy(
    tier=ANONYMOUS,
    max_file_size_bytes=5 * 1024 * 1024,  # 5 MB
    max_bulk_files=5,
    requests_per_minute=10,
)

USER_POLICY = QuotaPolicy(
    tier=USER,
    max_file_size_bytes=15 * 1024 * 1024,  # 15 MB
    max_bulk_files=10,
    requests_per_minute=30,
)

PRO_POLICY = QuotaPolicy(
    tier=PRO,
    max_file_size_bytes=35 * 1024 * 1024,  # 35 MB
    max_bulk_files=50,
    requests_per_minute=100,
)


def resolve(is_authenticated: bool, is_pro: bool) -> QuotaPolicy:
    """
    Selecciona la politica de cuota de un caller.

    Precedencia: pro > authenticated > anonymous. Un caller pro recibe la
    politica pro aunque is_authenticated sea False.
    """
    if is_pro:
        return PRO_POLICY
    if is_authenticated:
        return USER_POLICY
    return ANONYMOUS_POLICY
