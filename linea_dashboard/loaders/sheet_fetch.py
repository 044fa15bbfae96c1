"""
Retrieval of the CSV export from a published Google Sheet.

The sheet must be public (or published to the web) for the export URL to
return CSV. When it is not, Google answers with an HTML sign-in page and a
200 status, so the body is checked as well as the status code.
"""

import asyncio
import logging
import re
from urllib.parse import quote

import httpx

from ..config import EXPORT_URL_TEMPLATE, REQUEST_TIMEOUT_SECONDS
from ..errors import RetrievalCancelled, RetrievalFailure

logger = logging.getLogger(__name__)

_SPREADSHEET_ID = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
_HTML_START = re.compile(r"^\s*<(!doctype|html|head|body)", re.IGNORECASE)


def extract_spreadsheet_id(url: str) -> str:
    """Return the spreadsheet id embedded in a sheet URL, or ""."""
    m = _SPREADSHEET_ID.search(str(url or ""))
    return m.group(1) if m else ""


def build_export_url(spreadsheet_id: str, gid: str = "0") -> str:
    return EXPORT_URL_TEMPLATE.format(
        spreadsheet_id=quote(spreadsheet_id, safe=""),
        gid=quote(str(gid).strip() or "0", safe=""),
    )


def looks_like_html(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    if "text/html" in content_type.lower():
        return True
    return bool(_HTML_START.match(response.text[:512]))


class CancellationToken:
    """Signals an in-flight retrieval that its cycle has been superseded."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RetrievalCancelled("Retrieval superseded by a newer refresh")

    async def wait(self) -> None:
        await self._event.wait()


class SheetClient:
    """HTTP client for sheet CSV exports."""

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={
                "Accept": "text/csv, text/plain;q=0.9, */*;q=0.1",
                "Cache-Control": "no-store",
            },
        )

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self) -> "SheetClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def fetch_csv(
        self,
        spreadsheet_id: str,
        gid: str = "0",
        token: CancellationToken | None = None,
    ) -> str:
        """Download the CSV export of one sheet tab.

        Raises
        ------
        RetrievalFailure on HTTP/transport errors or a non-tabular body.
        RetrievalCancelled if `token` is cancelled before the body arrives.
        """
        if not spreadsheet_id:
            raise RetrievalFailure("No spreadsheet id found in the sheet URL")
        return await self.fetch_url(build_export_url(spreadsheet_id, gid), token=token)

    async def fetch_url(self, url: str, token: CancellationToken | None = None) -> str:
        if token is None:
            response = await self._get(url)
        else:
            token.raise_if_cancelled()
            response = await self._get_cancellable(url, token)

        if response.status_code >= 400:
            raise RetrievalFailure(
                f"Could not download CSV (HTTP {response.status_code}). "
                "Make sure the sheet is published or shared for reading."
            )
        if looks_like_html(response):
            raise RetrievalFailure(
                "The sheet returned an HTML page instead of CSV. "
                "Make sure the sheet is published or shared for reading."
            )

        logger.info("Downloaded %d bytes from %s", len(response.content), url)
        return response.text

    async def _get(self, url: str) -> httpx.Response:
        try:
            return await self.client.get(url)
        except httpx.HTTPError as exc:
            logger.error("Sheet download failed (%s): %s", url, exc)
            raise RetrievalFailure(f"Could not reach the sheet: {exc}") from exc

    async def _get_cancellable(self, url: str, token: CancellationToken) -> httpx.Response:
        request = asyncio.ensure_future(self._get(url))
        cancelled = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait(
                {request, cancelled}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            request.cancel()
            raise
        finally:
            cancelled.cancel()

        if request in done:
            return request.result()

        request.cancel()
        try:
            await request
        except asyncio.CancelledError:
            pass
        logger.info("Sheet download cancelled: %s", url)
        raise RetrievalCancelled("Retrieval superseded by a newer refresh")
