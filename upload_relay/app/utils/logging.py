"""Structured logging for the upload relay service"""

import logging
import json
from datetime import datetime, timezone
from typing import Dict, Any
from urllib.parse import urlsplit

from ..config import settings


def redact_url(url: str) -> str:
    """Strip the query string (signature) from a capability URL before logging."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<unparseable-url>"
    if not parts.scheme or not parts.netloc:
        return "<invalid-url>"
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


class StructuredLogger:
    """Structured logger for Upload Relay agent"""

    def __init__(self):
        self.logger = logging.getLogger("upload_relay_agent")
        self.logger.setLevel(logging.INFO)

        if not self.logger.handlers:
            self._configure_handlers()

    def _configure_handlers(self) -> None:
        """Configure logger handlers for console and file outputs."""
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        log_dir = settings.log_dir_path
        log_dir.mkdir(parents=True, exist_ok=True)

        info_handler = logging.FileHandler(log_dir / "upload_relay.log", encoding="utf-8")
        info_handler.setLevel(logging.INFO)
        info_handler.setFormatter(formatter)

        error_handler = logging.FileHandler(log_dir / "upload_relay_error.log", encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)

        self.logger.addHandler(info_handler)
        self.logger.addHandler(error_handler)
        self.logger.propagate = False

    def log_step(self, step: str, data: Dict[str, Any] = None):
        """Log a processing step"""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "step": step,
            "agent": "upload_relay_agent"
        }
        if data:
            log_data.update(data)

        self.logger.info(f"STEP: {json.dumps(log_data, default=str)}")

    def log_error(self, error_type: str, data: Dict[str, Any] = None):
        """Log an error"""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": error_type,
            "agent": "upload_relay_agent"
        }
        if data:
            log_data.update(data)

        self.logger.error(f"ERROR: {json.dumps(log_data, default=str)}")

    def log_upload_received(self, file_name: str, document_type: str, target_url: str, staged_path: str):
        self.log_step("upload_request_received", {
            "file_name": file_name,
            "document_type": document_type,
            "target_url": redact_url(target_url),
            "staged_path": staged_path
        })

    def log_relay_result(self, file_name: str, target_url: str, status_code: int, success: bool):
        data = {
            "file_name": file_name,
            "target_url": redact_url(target_url),
            "status_code": status_code
        }
        if success:
            self.log_step("relay_completed", data)
        else:
            self.log_error("relay_rejected", data)

    def log_staged_file_removed(self, path: str):
        self.log_step("staged_file_removed", {"staged_path": path})


# Global logger instance
logger = StructuredLogger()
