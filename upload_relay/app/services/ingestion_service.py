from pathlib import Path
from typing import BinaryIO, Optional

from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile
from starlette.types import Message, Receive

from ..config import settings
from ..models.errors import InvalidFileFormat, MissingFile, PayloadTooLarge, StorageUnavailable
from ..models.schemas import StagedFile
from ..utils.logging import logger

FILE_FIELD = "arquivo"
ALLOWED_CONTENT_TYPE = "application/pdf"
CHUNK_SIZE = 64 * 1024
# Room for multipart boundaries and the two text fields on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


class IngestionService:
    """Accepts the single PDF part of an upload and copies it into staging."""

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes

    def check_declared_length(self, content_length: Optional[str]) -> None:
        """Reject bodies that announce a size well over the file ceiling before parsing them."""
        if not content_length:
            return
        try:
            declared = int(content_length)
        except ValueError:
            return
        if declared > self.max_bytes + MULTIPART_OVERHEAD_BYTES:
            logger.log_error("payload_too_large", {
                "declared_length": declared,
                "max_bytes": self.max_bytes
            })
            raise PayloadTooLarge(self.max_bytes)

    def bounded_receive(self, receive: Receive) -> Receive:
        """Wrap an ASGI ``receive`` so the raw body stops being read past the ceiling.

        Covers chunked bodies and bodies that lie about or omit ``Content-Length``;
        the multipart parser never spools more than the limit to disk.
        """
        limit = self.max_bytes + MULTIPART_OVERHEAD_BYTES
        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.log_error("payload_too_large", {
                        "received_bytes": received,
                        "max_bytes": self.max_bytes
                    })
                    raise PayloadTooLarge(self.max_bytes)
            return message

        return limited_receive

    def select_upload(self, form: FormData) -> UploadFile:
        files = [(name, value) for name, value in form.multi_items() if isinstance(value, UploadFile)]

        for name, upload in files:
            content_type = (upload.content_type or "").split(";")[0].strip().lower()
            if name != FILE_FIELD or content_type != ALLOWED_CONTENT_TYPE:
                logger.log_error("invalid_file_format", {
                    "field": name,
                    "filename": upload.filename,
                    "content_type": upload.content_type
                })
                raise InvalidFileFormat()

        if len(files) > 1:
            logger.log_error("unexpected_extra_file", {"file_count": len(files)})
            raise InvalidFileFormat(f'Apenas um arquivo é permitido no campo "{FILE_FIELD}".')

        if not files:
            logger.log_error("missing_file", {"fields": list(form.keys())})
            raise MissingFile()

        return files[0][1]

    async def stage(self, upload: UploadFile, destination: Path) -> StagedFile:
        original_name = upload.filename or destination.name
        size_bytes = await run_in_threadpool(self._copy_with_limit, upload.file, destination)

        staged = StagedFile(original_name=original_name, local_path=destination, size_bytes=size_bytes)
        logger.log_step("file_staged", {
            "file_name": staged.original_name,
            "staged_path": str(staged.local_path),
            "size_bytes": staged.size_bytes
        })
        return staged

    def _copy_with_limit(self, source: BinaryIO, destination: Path) -> int:
        total = 0
        try:
            with destination.open("wb") as output:
                while True:
                    chunk = source.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    total += len(chunk)
                    if total > self.max_bytes:
                        break
                    output.write(chunk)
        except OSError as exc:
            logger.log_error("staging_write_failed", {
                "staged_path": str(destination),
                "error": str(exc)
            })
            raise StorageUnavailable(str(exc)) from exc

        if total > self.max_bytes:
            destination.unlink(missing_ok=True)
            logger.log_error("payload_too_large", {
                "staged_path": str(destination),
                "max_bytes": self.max_bytes
            })
            raise PayloadTooLarge(self.max_bytes)
        return total


ingestion_service = IngestionService(settings.max_file_size_bytes)
