import logging
from typing import Annotated

from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from werkzeug.utils import secure_filename
from formapi.models.form import ALLOWED_UPLOAD_TYPES
from formapi.storage import ObjectStorage, get_storage

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/upload", status_code=201)
async def upload_file(
    storage: Annotated[ObjectStorage, Depends(get_storage)],
    file: UploadFile = File(...),
):
    if not file or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file provided"
        )

    if file.content_type not in ALLOWED_UPLOAD_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only JPEG, PNG images, and PDF files are allowed"
        )

    filename = secure_filename(file.filename)

    try:
        file_content = await file.read()
        url = await run_in_threadpool(
            storage.upload, filename, file_content, file.content_type
        )
    except Exception as e:
        logger.error(f"MinIO upload failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="File upload failed"
        ) from e

    return {
        "message": "File uploaded successfully",
        "success": True,
        "data": {
            "url": url,
            "filename": filename,
            "content_type": file.content_type,
            "size": len(file_content),
        },
    }
