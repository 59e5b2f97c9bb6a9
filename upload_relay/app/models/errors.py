"""Error taxonomy for the upload relay.

Validation errors are raised before anything is sent to object storage and map
to HTTP 400. Transmission and infrastructure errors map to HTTP 500. The app
renders every subclass through ``to_response()``.
"""

from typing import Any, Dict, Optional


class UploadRelayError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationFailure(UploadRelayError):
    """Request rejected before transmission."""

    status_code = 400


class MissingFile(ValidationFailure):
    def __init__(self, message: str = "Nenhum arquivo enviado ou tipo inválido.") -> None:
        super().__init__(message)


class InvalidFileFormat(ValidationFailure):
    def __init__(
        self,
        message: str = 'Formato de arquivo inválido. Apenas PDF é permitido no campo "arquivo".',
    ) -> None:
        super().__init__(message)


class PayloadTooLarge(ValidationFailure):
    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes
        super().__init__(
            f"Arquivo excede o tamanho máximo permitido de {max_bytes // (1024 * 1024)} MB."
        )


class InvalidDocumentType(ValidationFailure):
    def __init__(self, message: str = "Tipo de documento inválido.") -> None:
        super().__init__(message)


class InvalidTargetURL(ValidationFailure):
    def __init__(self, message: str = "URL SAS para upload inválida.") -> None:
        super().__init__(message)


class RelayRejected(UploadRelayError):
    """Object storage answered with something other than 201 Created."""

    def __init__(self, status_code: int, file_name: str, file_type: str) -> None:
        self.remote_status_code = status_code
        self.file_name = file_name
        self.file_type = file_type
        super().__init__("Falha ao fazer upload do PDF para o Azure Blob Storage.")

    def to_response(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "fileName": self.file_name,
            "fileType": self.file_type,
        }


class FailureWithDetail(UploadRelayError):
    """500 error whose body carries a short description of the cause."""

    default_message = "Erro interno no servidor durante o upload."

    def __init__(self, error: str, message: Optional[str] = None) -> None:
        self.error = error
        super().__init__(message or self.default_message)

    def to_response(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.error}


class RelayTransportError(FailureWithDetail):
    """Network-level failure talking to object storage (DNS, TLS, reset, timeout)."""


class StorageUnavailable(FailureWithDetail):
    """The local staging area could not be created or written."""


class UnexpectedFailure(FailureWithDetail):
    pass
