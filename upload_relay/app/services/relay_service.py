import os
from pathlib import Path

import requests
from fastapi.concurrency import run_in_threadpool

from ..config import settings
from ..models.errors import RelayTransportError
from ..models.schemas import RelayOutcome
from ..utils.logging import logger, redact_url

BLOCK_BLOB_HEADERS = {
    "x-ms-blob-type": "BlockBlob",
    "Content-Type": "application/pdf",
}


class RelayService:
    """Streams a staged file to object storage through a pre-signed (SAS) URL.

    One PUT per call, no retries. A 201 means the blob was written; any other
    status comes back as an unsuccessful ``RelayOutcome``. Only network-level
    failures raise.
    """

    def __init__(self, connect_timeout: float, read_timeout: float) -> None:
        self.timeout = (connect_timeout, read_timeout)

    async def transmit(self, local_path: Path, file_name: str, target_url: str) -> RelayOutcome:
        return await run_in_threadpool(self._put, Path(local_path), file_name, target_url)

    def _put(self, local_path: Path, file_name: str, target_url: str) -> RelayOutcome:
        try:
            with local_path.open("rb") as stream:
                size = os.fstat(stream.fileno()).st_size
                headers = dict(BLOCK_BLOB_HEADERS)
                headers["Content-Length"] = str(size)

                logger.log_step("relay_request_sent", {
                    "file_name": file_name,
                    "target_url": redact_url(target_url),
                    "size_bytes": size
                })
                # The SAS token lives in the query string and must reach storage untouched.
                # An empty file object would make requests fall back to chunked framing.
                response = requests.put(
                    target_url,
                    data=stream if size else b"",
                    headers=headers,
                    timeout=self.timeout,
                )
        except requests.exceptions.RequestException as exc:
            logger.log_error("relay_transport_error", {
                "file_name": file_name,
                "target_url": redact_url(target_url),
                "error": str(exc),
                "error_type": type(exc).__name__
            })
            raise RelayTransportError(str(exc)) from exc

        success = response.status_code == 201
        logger.log_relay_result(file_name, target_url, response.status_code, success)
        if success:
            return RelayOutcome(success=True, status_code=201, message="Created")

        logger.log_error("relay_rejected_body", {
            "file_name": file_name,
            "status_code": response.status_code,
            "response": response.text[:1000]
        })
        return RelayOutcome(
            success=False,
            status_code=response.status_code,
            message=response.reason or "",
        )


relay_service = RelayService(settings.RELAY_CONNECT_TIMEOUT, settings.RELAY_READ_TIMEOUT)
