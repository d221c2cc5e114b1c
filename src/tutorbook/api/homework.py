"""
Homework file endpoints.

Uploads are checked locally (size and MIME type) before they are sent,
so the backend's 10MB limit never has to reject a large body.
"""

import logging
import mimetypes
from pathlib import Path
from typing import Any, List, Optional, Union

from .client import CancelToken, ResourceAPI
from ..models.payment import (
    ALLOWED_HOMEWORK_MIME_TYPES,
    MAX_HOMEWORK_FILE_SIZE,
    HomeworkFile,
)


logger = logging.getLogger(__name__)


DOWNLOAD_CHUNK_SIZE = 64 * 1024


def guess_mime_type(path: Path) -> Optional[str]:
    """MIME type from the file extension (``.docx`` is not known everywhere)."""
    if path.suffix.lower() == ".docx":
        return "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type


def check_homework_file(path: Path) -> Optional[str]:
    """
    Check a file before upload.

    Returns:
        Error message, or None when the file may be uploaded
    """
    if not path.is_file():
        return f"File not found: {path}"

    size = path.stat().st_size
    if size <= 0 or size > MAX_HOMEWORK_FILE_SIZE:
        return "File size must be between 1 byte and 10MB"

    mime_type = guess_mime_type(path)
    if mime_type not in ALLOWED_HOMEWORK_MIME_TYPES:
        return f"File type {mime_type or 'unknown'} is not allowed (PDF, DOCX, JPEG, PNG, GIF, WebP)"

    return None


class HomeworkAPI(ResourceAPI):
    """Wrapper for ``/lessons/{id}/homework``."""

    def list_homework(self, lesson_id: str,
                      cancel_token: Optional[CancelToken] = None) -> List[HomeworkFile]:
        return self.client.get(f"/lessons/{lesson_id}/homework", cancel_token=cancel_token) or []

    def upload_homework(self, lesson_id: str, path: Union[str, Path],
                        text_content: Optional[str] = None) -> HomeworkFile:
        """
        Upload a homework file.

        Raises:
            ValueError: If the file is missing, empty, too large or of a
                disallowed type
        """
        path = Path(path)
        error = check_homework_file(path)
        if error:
            raise ValueError(error)

        form = {"text_content": text_content} if text_content else None
        with path.open("rb") as fh:
            files = {"file": (path.name, fh, guess_mime_type(path))}
            result = self.client.request("POST", f"/lessons/{lesson_id}/homework",
                                         files=files, form=form)

        logger.info(f"Homework uploaded to lesson {lesson_id}: {path.name}")
        return result

    def update_homework_text(self, lesson_id: str, file_id: str, text_content: str) -> HomeworkFile:
        return self.client.patch(f"/lessons/{lesson_id}/homework/{file_id}",
                                 {"text_content": text_content})

    def delete_homework(self, lesson_id: str, file_id: str) -> Any:
        return self.client.delete(f"/lessons/{lesson_id}/homework/{file_id}")

    def download_homework(self, lesson_id: str, file_id: str,
                          destination: Union[str, Path]) -> Path:
        """
        Download a homework file.

        Args:
            destination: Target file, or a directory to save into under
                the server-provided file name

        Returns:
            Path of the written file
        """
        response = self.client.request_raw("GET",
                                           f"/lessons/{lesson_id}/homework/{file_id}/download")
        destination = Path(destination)

        if destination.is_dir():
            filename = _filename_from_disposition(
                response.headers.get("Content-Disposition", "")
            ) or file_id
            destination = destination / filename

        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("wb") as fh:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if chunk:
                    fh.write(chunk)

        logger.info(f"Homework downloaded: {destination}")
        return destination


def _filename_from_disposition(header: str) -> Optional[str]:
    for part in header.split(";"):
        key, _, value = part.strip().partition("=")
        if key.lower() == "filename" and value:
            return Path(value.strip('"')).name
    return None
