"""Multipart upload reading shared by the video and image routers."""

from fastapi import UploadFile

from interior_api.services.media_service import UploadedFile


async def read_upload(file: UploadFile, max_bytes: int) -> UploadedFile:
    """
    Read at most max_bytes + 1 bytes, so oversize files are detected by
    validate_upload() without buffering the whole body.
    """
    try:
        content = await file.read(max_bytes + 1)
    finally:
        await file.close()
    return UploadedFile(
        filename=file.filename or "upload",
        content_type=(file.content_type or "application/octet-stream").lower(),
        content=content,
    )
