from __future__ import annotations
import logging
import mimetypes
import os
from typing import IO, Any, Dict, Optional

from ..errors import ArgumentError, TransportError
from ..services.http import Transport, parse_body

log = logging.getLogger(__name__)


def guess_mime_type(path: Optional[str]) -> str:
    if not path:
        return "application/octet-stream"
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


def _file_path(name: str) -> str:
    return name if name.startswith("files/") else f"files/{name}"


class Files:
    """Gemini File API: resumable upload plus get/list/delete."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def upload(self, file: IO[bytes], display_name: Optional[str] = None,
               mime_type: Optional[str] = None) -> Dict[str, Any]:
        if file is None:
            raise ArgumentError("No file given to upload", code="missing_file")

        path = getattr(file, "name", None)
        path = path if isinstance(path, str) else None
        mime_type = mime_type or guess_mime_type(path)
        display_name = display_name or (os.path.basename(path) if path else "uploaded_file")

        file.seek(0)
        data = file.read()
        config = self._transport.config

        start = self._transport.raw_request(
            "POST",
            f"{config.upload_uri_base}/files",
            json_body={"file": {"display_name": display_name}},
            headers={
                "X-Goog-Upload-Protocol": "resumable",
                "X-Goog-Upload-Command": "start",
                "X-Goog-Upload-Header-Content-Length": str(len(data)),
                "X-Goog-Upload-Header-Content-Type": mime_type,
                "Content-Type": "application/json",
            },
        )
        upload_url = start.headers.get("x-goog-upload-url")
        if not upload_url:
            raise TransportError("Upload URL missing from resumable upload response",
                                 status=start.status_code, body=parse_body(start.text),
                                 code="upload_url_missing")

        log.info("Uploading %s (%d bytes, %s)", display_name, len(data), mime_type)
        finished = self._transport.raw_request(
            "POST",
            upload_url,
            data=data,
            headers={
                "Content-Length": str(len(data)),
                "X-Goog-Upload-Offset": "0",
                "X-Goog-Upload-Command": "upload, finalize",
            },
            with_key=False,
        )
        result = parse_body(finished.text)
        if not isinstance(result, dict):
            raise TransportError("Unexpected upload response", status=finished.status_code,
                                 body=result, code="bad_upload_response")
        return result

    def upload_path(self, path: str, display_name: Optional[str] = None) -> Dict[str, str]:
        """Upload a local file; returns ``{"file_uri", "file_name"}``."""
        with open(path, "rb") as fh:
            result = self.upload(fh, display_name=display_name)
        info = result.get("file", {})
        return {"file_uri": info.get("uri"), "file_name": info.get("name")}

    def get(self, name: str) -> Any:
        return self._transport.get(_file_path(name))

    def list(self, page_size: Optional[int] = None, page_token: Optional[str] = None) -> Any:
        params: Dict[str, Any] = {}
        if page_size:
            params["pageSize"] = page_size
        if page_token:
            params["pageToken"] = page_token
        return self._transport.get("files", params=params)

    def delete(self, name: str) -> Any:
        return self._transport.delete(_file_path(name))
