"""
Documents feature: certificate PDF download.

ENDPOINTS:
  GET /api/actes/naissances/{id}/pdf
  GET /api/actes/mariages/{id}/pdf
  GET /api/actes/deces/{id}/pdf

A `_=<epoch ms>` query param and no-cache headers defeat intermediate caches.
The fetch can run on the event loop or be offloaded to a worker thread; both
paths return the same bytes and write the same file.
"""

import asyncio
import logging
import time
from datetime import date
from pathlib import Path

import httpx

from etatcivil.config import get_settings
from etatcivil.core.exceptions import FetchFailedError, UnauthenticatedError, UnsupportedActeTypeError

logger = logging.getLogger(__name__)

ACTE_ENDPOINTS = {
    "naissance": "/api/actes/naissances/{id}/pdf",
    "mariage": "/api/actes/mariages/{id}/pdf",
    "deces": "/api/actes/deces/{id}/pdf",
}

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class PdfDownloader:
    """Downloads certificate PDFs and keeps them in an unbounded in-memory cache."""

    def __init__(
        self,
        base_url: str | None = None,
        download_dir: str | Path | None = None,
        offload: bool | None = None,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.download_dir = Path(download_dir or settings.PDF_DOWNLOAD_DIR)
        self.offload = settings.PDF_OFFLOAD if offload is None else offload
        self._timeout = float(settings.API_TIMEOUT)
        self._transport = transport
        self._cache: dict[tuple[str, str], bytes] = {}

    async def download(self, acte_type: str, acte_id: str, auth_token: str | None) -> Path:
        """Fetch (or reuse) the PDF of one certificate and save it.

        Returns:
            Path of the written file: `{type}-{id}-{YYYY-MM-DD}.pdf`.

        Raises:
            ValueError: Missing certificate id.
            UnauthenticatedError: No token.
            UnsupportedActeTypeError: Unknown certificate type.
            FetchFailedError: HTTP failure or empty document.
        """
        if not acte_id:
            raise ValueError("ID d'acte manquant")
        if not auth_token:
            raise UnauthenticatedError()

        content = await self.fetch(acte_type, acte_id, auth_token)

        self.download_dir.mkdir(parents=True, exist_ok=True)
        path = self.download_dir / f"{acte_type}-{acte_id}-{date.today().isoformat()}.pdf"
        path.write_bytes(content)
        logger.info(f"📄 PDF saved: {path} ({len(content)} bytes)")
        return path

    async def fetch(self, acte_type: str, acte_id: str, auth_token: str) -> bytes:
        """PDF bytes of one certificate, served from the cache when present."""
        url = self._url(acte_type, acte_id)
        key = (acte_type, acte_id)
        if key in self._cache:
            return self._cache[key]

        if self.offload:
            content = await asyncio.to_thread(self._fetch_sync, url, auth_token)
        else:
            content = await self._fetch_async(url, auth_token)

        self._cache[key] = content
        return content

    # ── Fetch paths ──────────────────────────────────────

    async def _fetch_async(self, url: str, auth_token: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url, params=self._params(), headers=self._headers(auth_token))
        except httpx.HTTPError as e:
            raise FetchFailedError("Échec du téléchargement du PDF") from e
        return self._check(response)

    def _fetch_sync(self, url: str, auth_token: str) -> bytes:
        """Worker-thread variant of `_fetch_async`."""
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(url, params=self._params(), headers=self._headers(auth_token))
        except httpx.HTTPError as e:
            raise FetchFailedError("Échec du téléchargement du PDF") from e
        return self._check(response)

    # ── Helpers ──────────────────────────────────────────

    def _url(self, acte_type: str, acte_id: str) -> str:
        template = ACTE_ENDPOINTS.get(acte_type)
        if template is None:
            raise UnsupportedActeTypeError(acte_type)
        return f"{self.base_url}{template.format(id=acte_id)}"

    @staticmethod
    def _params() -> dict:
        return {"_": int(time.time() * 1000)}

    @staticmethod
    def _headers(auth_token: str) -> dict:
        return {"Authorization": f"Bearer {auth_token}", **NO_CACHE_HEADERS}

    @staticmethod
    def _check(response: httpx.Response) -> bytes:
        if response.status_code == 401:
            raise UnauthenticatedError()
        if response.is_error:
            message = None
            try:
                body = response.json()
                if isinstance(body, dict):
                    message = body.get("message")
            except ValueError:
                pass
            logger.error(f"❌ PDF download failed ({response.status_code}): {message}")
            raise FetchFailedError(
                message or "Erreur lors du téléchargement du PDF",
                http_status=response.status_code,
            )
        if not response.content:
            raise FetchFailedError("Le fichier PDF est vide")
        return response.content

    def clear_cache(self):
        self._cache.clear()
