# File: app/routers/upload.py
from typing import List
from fastapi import APIRouter, Request, UploadFile, File
from app.core.config import settings
from app.core.errors import ValidationError
from app.core.ratelimit import limiter
from app.models.issue import MAX_IMAGES
from app.schemas.issue import UploadOut
from app.services.storage import ALLOWED, upload_image, make_object_key

router = APIRouter(prefix="/upload", tags=["upload"])

@router.post("", response_model=UploadOut)
@limiter.limit("30/minute")
def upload(request: Request, files: List[UploadFile] = File(...)):
    if len(files) > MAX_IMAGES:
        raise ValidationError(f"Max {MAX_IMAGES} images")
    urls = []
    for f in files:
        if f.content_type not in ALLOWED:
            raise ValidationError("Unsupported image type")
        data = f.file.read()
        if len(data) > settings.upload_max_bytes:
            raise ValidationError(f"Image exceeds {settings.upload_max_bytes // (1024 * 1024)}MB")
        key = make_object_key(f.filename or "upload.jpg")
        urls.append(upload_image(data, f.content_type, key))
    return UploadOut(urls=urls)
