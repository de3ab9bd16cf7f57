from __future__ import annotations

from pathlib import Path

import requests

from .catalog_parser import ClauseRecord, load_catalog_xlsx, parse_catalog_csv
from .collaborator_errors import CatalogFetchError


def fetch_catalog_text(
    url: str,
    session: requests.Session | None = None,
    timeout: float = 30.0,
) -> str:
    http = session or requests.Session()
    try:
        resp = http.get(url, timeout=timeout)
    except requests.Timeout as exc:
        raise CatalogFetchError(f"timeout while fetching catalog: {exc}") from exc
    except requests.ConnectionError as exc:
        raise CatalogFetchError(f"connection failed while fetching catalog: {exc}") from exc

    if not resp.ok:
        raise CatalogFetchError(f"HTTP {resp.status_code}: {resp.reason}")

    # Catalog endpoint serves UTF-8 regardless of the declared charset.
    resp.encoding = "utf-8"
    return resp.text


def load_catalog(
    source: str | Path,
    session: requests.Session | None = None,
    timeout: float = 30.0,
) -> list[ClauseRecord]:
    """Load clauses from an http(s) endpoint, a .csv file, or a .xlsx workbook."""
    raw = str(source)
    if raw.startswith(("http://", "https://")):
        return parse_catalog_csv(fetch_catalog_text(raw, session=session, timeout=timeout))

    path = Path(source)
    if not path.exists():
        raise CatalogFetchError(f"Catalog file does not exist: {path}")
    if path.suffix.lower() in {".xlsx", ".xlsm"}:
        return load_catalog_xlsx(path)
    return parse_catalog_csv(path.read_text(encoding="utf-8-sig"))
