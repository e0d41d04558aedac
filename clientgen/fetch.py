"""OpenAPI document download for clientgen.

fetch_openapi_spec() downloads the document named by ``openapi-spec-url``
into the working directory and checks it is actually an OpenAPI (3.x) or
Swagger (2.0) document before openapi-generator ever sees it. An HTML error
page served with 200 OK is rejected here with a clear message instead of a
generator stack trace.

The document is written as ``openapi.json`` or ``openapi.yaml`` depending on
which format it parsed as.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
import yaml

from clientgen.constants import SPEC_FETCH_TIMEOUT_S
from clientgen.errors import SpecFetchError
from clientgen.utils.logger import get_logger

logger = get_logger(__name__)

_OPENAPI_ROOT_KEYS = ("openapi", "swagger")


def create_http_client(transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """Create the httpx client used for spec downloads."""
    return httpx.Client(
        timeout=httpx.Timeout(SPEC_FETCH_TIMEOUT_S),
        follow_redirects=True,
        transport=transport,
    )


def _download(url: str, client: Optional[httpx.Client]) -> str:
    parsed = urlparse(url)
    if parsed.scheme == "file":
        path = Path(url2pathname(parsed.path))
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SpecFetchError(url, f"could not read file ({exc.strerror})") from None
        except UnicodeDecodeError:
            raise SpecFetchError(url, "file is not valid UTF-8 text") from None

    owns_client = client is None
    http = client or create_http_client()
    try:
        response = http.get(url)
        response.raise_for_status()
        return response.text
    except httpx.HTTPStatusError as exc:
        raise SpecFetchError(url, f"HTTP {exc.response.status_code}") from None
    except httpx.HTTPError as exc:
        raise SpecFetchError(url, f"{type(exc).__name__}: {exc}") from None
    finally:
        if owns_client:
            http.close()


def parse_openapi_document(text: str) -> tuple[dict[str, Any], str]:
    """Parse a spec body as JSON, falling back to YAML.

    Returns:
        (document, format) where format is "json" or "yaml".

    Raises:
        ValueError: body is neither JSON nor YAML, or is not an OpenAPI/Swagger mapping.
    """
    fmt = "json"
    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        fmt = "yaml"
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError:
            raise ValueError("body is neither valid JSON nor valid YAML") from None

    if not isinstance(document, dict):
        raise ValueError("document root is not a mapping")
    if not any(key in document for key in _OPENAPI_ROOT_KEYS):
        raise ValueError("document has no 'openapi' or 'swagger' version field")
    if not isinstance(document.get("info", {}), dict):
        raise ValueError("document 'info' is not a mapping")
    return document, fmt


def fetch_openapi_spec(
    url: str,
    dest_dir: Union[str, Path],
    client: Optional[httpx.Client] = None,
) -> Path:
    """Download and validate the OpenAPI document. Returns the written file path.

    Raises:
        SpecFetchError: transport error, non-2xx status, unreadable file, or
                        a body that is not an OpenAPI/Swagger document.
    """
    text = _download(url, client)
    try:
        document, fmt = parse_openapi_document(text)
    except ValueError as exc:
        raise SpecFetchError(url, str(exc)) from None

    dest = Path(dest_dir)
    dest.mkdir(parents=True, exist_ok=True)
    spec_path = dest / f"openapi.{fmt}"
    spec_path.write_text(text)

    logger.info(
        "OpenAPI spec fetched",
        url=url,
        path=str(spec_path),
        format=fmt,
        spec_version=document.get("openapi") or document.get("swagger"),
        title=document.get("info", {}).get("title"),
    )
    return spec_path
