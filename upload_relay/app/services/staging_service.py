import uuid
from contextlib import contextmanager
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Iterator

from ..config import settings
from ..models.errors import StorageUnavailable
from ..utils.logging import logger


class StagingArea:
    """Local directory holding uploads between ingestion and relay.

    Each request gets a random token that prefixes its staged filename, so two
    requests uploading ``doc.pdf`` at the same time never share a path.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def ensure_directory(self) -> Path:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.log_error("staging_directory_unavailable", {
                "staging_root": str(self.root),
                "error": str(exc)
            })
            raise StorageUnavailable(str(exc)) from exc
        return self.root

    def stage_path(self, original_name: str, token: str) -> Path:
        return self.root / f"{token}_{self._safe_name(original_name)}"

    def remove(self, path: Path) -> None:
        """Delete a staged file. Missing files are ignored and errors are only logged."""
        path = Path(path)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.log_error("staged_file_cleanup_failed", {
                "staged_path": str(path),
                "error": str(exc)
            })
            return
        logger.log_staged_file_removed(str(path))

    @contextmanager
    def staged(self, original_name: str) -> Iterator[Path]:
        """Yield a fresh staging path and remove whatever lands there on exit."""
        self.ensure_directory()
        path = self.stage_path(original_name, uuid.uuid4().hex)
        try:
            yield path
        finally:
            self.remove(path)

    @staticmethod
    def _safe_name(original_name: str) -> str:
        # Browsers may send full client paths; keep only the last component.
        name = PureWindowsPath(PurePosixPath(original_name or "").name).name
        name = name.strip().lstrip(".")
        return name or "upload.pdf"


staging_area = StagingArea(settings.staging_dir_path)
