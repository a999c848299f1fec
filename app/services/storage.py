# File: app/services/storage.py
import base64, logging, uuid
import requests
from app.core.config import settings
from app.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)

ALLOWED = {"image/jpeg", "image/png", "image/webp", "image/gif"}

def upload_image(data: bytes, content_type: str, path: str) -> str:
    """Uploads to Supabase Storage via REST; returns public URL (bucket must be public)."""
    if not (settings.supabase_url and settings.supabase_service_role):
        # no bucket configured (local dev, tests): inline the image as a data URL
        b64 = base64.b64encode(data).decode("utf-8")
        return f"data:{content_type};base64,{b64}"
    url = f"{settings.supabase_url}/storage/v1/object/{settings.supabase_bucket}/{path}"
    try:
        r = requests.post(url, headers={
            "Authorization": f"Bearer {settings.supabase_service_role}",
            "Content-Type": content_type,
            "x-upsert": "true",
        }, data=data, timeout=30)
        r.raise_for_status()
    except requests.RequestException as e:
        logger.error("image upload to %s failed: %s", settings.supabase_bucket, e)
        raise StoreUnavailable("Image storage is temporarily unavailable") from e
    # public URL pattern:
    return f"{settings.supabase_url}/storage/v1/object/public/{settings.supabase_bucket}/{path}"

def make_object_key(filename: str) -> str:
    ext = (filename.rsplit(".", 1)[-1] if "." in filename else "jpg").lower()
    return f"issues/{uuid.uuid4().hex}.{ext}"
