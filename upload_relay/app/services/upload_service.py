from typing import Any

from starlette.datastructures import FormData

from ..models.errors import (
    InvalidDocumentType,
    InvalidTargetURL,
    RelayRejected,
    UnexpectedFailure,
    UploadRelayError,
)
from ..models.schemas import DocumentType, RelayOutcome, UploadResponse
from ..utils.logging import logger
from .ingestion_service import IngestionService, ingestion_service
from .relay_service import RelayService, relay_service
from .staging_service import StagingArea, staging_area

SUCCESS_MESSAGE = "Upload de PDF concluído com sucesso para o Azure Blob Storage!"


class UploadRelayService:
    """Runs one upload through ingestion, validation, relay and cleanup.

    The staged file lives only inside ``StagingArea.staged()``, so it is gone
    before this method returns or raises, whatever happened in between.
    """

    def __init__(self, staging: StagingArea, ingestion: IngestionService, relay: RelayService) -> None:
        self.staging = staging
        self.ingestion = ingestion
        self.relay = relay

    async def relay_upload(self, form: FormData) -> UploadResponse:
        upload = self.ingestion.select_upload(form)
        tipo = form.get("tipo")
        url_sas_upload = form.get("urlSasUpload")

        try:
            with self.staging.staged(upload.filename or "") as path:
                staged = await self.ingestion.stage(upload, path)
                document_type = validate_document_type(tipo)
                target_url = validate_target_url(url_sas_upload)

                logger.log_upload_received(
                    staged.original_name, document_type.value, target_url, str(staged.local_path)
                )
                outcome: RelayOutcome = await self.relay.transmit(
                    staged.local_path, staged.original_name, target_url
                )
        except UploadRelayError:
            raise
        except Exception as exc:
            logger.log_error("upload_processing_failed", {
                "file_name": upload.filename,
                "error": str(exc),
                "error_type": type(exc).__name__
            })
            raise UnexpectedFailure(str(exc)) from exc

        if not outcome.success:
            raise RelayRejected(outcome.status_code, staged.original_name, document_type.value)

        return UploadResponse(
            message=SUCCESS_MESSAGE,
            file_name=staged.original_name,
            file_type=document_type,
            uploaded_to_url=target_url,
        )


def validate_document_type(value: Any) -> DocumentType:
    document_type = DocumentType.parse(value)
    if document_type is None:
        logger.log_error("invalid_document_type", {"tipo": value})
        raise InvalidDocumentType()
    return document_type


def validate_target_url(value: Any) -> str:
    if not value or not isinstance(value, str) or not value.startswith("https://"):
        logger.log_error("invalid_target_url", {"has_value": bool(value)})
        raise InvalidTargetURL()
    return value


upload_relay_service = UploadRelayService(staging_area, ingestion_service, relay_service)
