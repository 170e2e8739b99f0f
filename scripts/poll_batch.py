"""
Script que sigue el progreso de un lote subido con POST /bulk-upload.

Reproduce el ciclo de sondeo que hace la pagina de subida del frontend:
consulta GET /bulk-status/{batchId} cada segundo e imprime el progreso
hasta que el lote termina (percent == 100).

percent == 100 es la UNICA senal de fin. Los items pueden completarse en
cualquier orden y varias consultas seguidas pueden devolver el mismo
estado; eso es normal.

No hay reintentos: si una consulta falla, el script termina con error.
Para cancelar el seguimiento basta con interrumpirlo (Ctrl+C); el lote
sigue procesandose en el upstream.

Uso:
    python scripts/poll_batch.py BATCH_ID
    python scripts/poll_batch.py BATCH_ID --base-url http://localhost:8000 --interval 2
"""

import argparse
import sys
import time

import httpx


def poll(batch_id: str, base_url: str, interval: float, client: httpx.Client | None = None) -> dict:
    """
    Consulta el estado del lote hasta que termine.

    Retorna:
        dict: El ultimo BatchStatus recibido (con percent == 100).

    Raises:
        httpx.HTTPStatusError: Si el gateway responde con un error.
    """
    client = client or httpx.Client(base_url=base_url, timeout=10.0)
    with client:
        while True:
            response = client.get(f"/bulk-status/{batch_id}")
            response.raise_for_status()
            status = response.json()

            print(
                f"{status.get('percent', 0):5.1f}%  "
                f"completed={status.get('completed', 0)} "
                f"failed={status.get('failed', 0)} "
                f"total={status.get('total', 0)}"
            )
            if status.get("percent") == 100:
                return status
            time.sleep(interval)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Poll a bulk upload until it completes.")
    parser.add_argument("batch_id")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--interval", type=float, default=1.0, help="seconds between polls")
    args = parser.parse_args(argv)

    try:
        status = poll(args.batch_id, args.base_url, args.interval)
    except httpx.HTTPError as e:
        print(f"Polling failed: {e}", file=sys.stderr)
        return 1

    for item in status.get("items", []):
        if item.get("error"):
            print(f"FAILED  {item.get('id')}: {item['error']}")
        else:
            print(f"OK      {item.get('id')}: {item.get('url')}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
