import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ..services.upload_service import UploadRelayService, upload_relay_service
from ..utils.logging import logger

router = APIRouter(tags=["Upload"])


def get_upload_relay_service() -> UploadRelayService:
    return upload_relay_service


@router.post("/upload")
async def upload_document(
    request: Request,
    service: UploadRelayService = Depends(get_upload_relay_service),
):
    """Receive one PDF (``arquivo``) plus ``tipo`` and ``urlSasUpload`` and relay it to storage."""
    start_time = time.time()

    logger.log_step("upload_endpoint_called", {
        "method": request.method,
        "url": str(request.url),
        "client": request.client.host if request.client else "unknown"
    })

    service.ingestion.check_declared_length(request.headers.get("content-length"))
    bounded = Request(request.scope, receive=service.ingestion.bounded_receive(request.receive))

    async with bounded.form() as form:
        result = await service.relay_upload(form)

    logger.log_step("upload_endpoint_completed", {
        "file_name": result.file_name,
        "file_type": result.file_type.value,
        "process_time": time.time() - start_time
    })
    return JSONResponse(status_code=200, content=result.model_dump(mode="json", by_alias=True))


@router.get("/api/v1/health")
async def health_check():
    return {
        "status": "healthy",
        "agent": "upload_relay_agent"
    }


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "Hello World - test start !"
