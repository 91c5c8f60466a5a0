# storefront/core/storage_utils.py
import uuid

from fastapi import HTTPException, status

from storefront.core.config import get_settings
from storefront.core.supabase_client import supabase_admin

settings = get_settings()

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def _bucket():
    # Client is created lazily so that importing this module needs no keys.
    return supabase_admin().storage.from_(settings.STORAGE_BUCKET)


def upload_to_storage(path: str, file_bytes: bytes, content_type: str | None = None) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    If a file already exists at this path, it will be overwritten
    thanks to the 'upsert' option.

    Args:
        path: Full object path inside the bucket.
              Example: "products/<uuid>/featured.png"
        file_bytes: File content in bytes.

    Returns:
        Public URL to the uploaded file.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    options = {"upsert": "true"}
    if content_type:
        options["content-type"] = content_type
    _bucket().upload(path, file_bytes, options)
    return _bucket().get_public_url(path)


def delete_from_storage(path: str) -> None:
    """
    Delete a file from Supabase Storage by its object path.
    """
    _bucket().remove([path])


def extract_path_from_public_url(url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/assets/banners/b.png
        -> 'banners/b.png'
    """
    marker = f"/storage/v1/object/public/{settings.STORAGE_BUCKET}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


def delete_public_url(url: str) -> None:
    """
    Convenience helper: delete a file by its public URL.
    No-op if the URL does not belong to this bucket.
    """
    path = extract_path_from_public_url(url)
    if path:
        delete_from_storage(path)


def generate_filename(ext: str) -> str:
    """
    Generate a random filename like "<uuid4>.png".
    """
    return f"{uuid.uuid4()}.{ext}"


def validate_image(
    content_type: str | None,
    file_bytes: bytes,
    allowed: dict[str, str] = ALLOWED_IMAGE_CONTENT_TYPES,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> str:
    """
    Check type and size of an uploaded image and return its extension.

    Raises:
        HTTPException(400): unsupported content type.
        HTTPException(413): file larger than `max_bytes`.
    """
    if content_type not in allowed:
        names = ", ".join(sorted({ext.upper() for ext in allowed.values()}))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported image type. Allowed: {names}.",
        )

    if len(file_bytes) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Image too large (max {max_bytes // (1024 * 1024)}MB).",
        )

    return allowed[content_type]
