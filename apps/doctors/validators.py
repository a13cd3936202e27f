# apps/doctors/validators.py

from django.conf import settings
from django.core.exceptions import ValidationError

ALLOWED_PHOTO_TYPES = ('image/jpeg', 'image/png', 'image/gif', 'image/webp')


def validate_doctor_photo(upload):
    """Images only, at most DOCTOR_PHOTO_MAX_BYTES (5MB by default)"""
    max_bytes = getattr(settings, 'DOCTOR_PHOTO_MAX_BYTES', 5 * 1024 * 1024)
    if upload.size > max_bytes:
        raise ValidationError(f"Photo must be {max_bytes // (1024 * 1024)}MB or smaller.")

    # Only fresh uploads carry a content type; stored files were checked on the way in
    content_type = getattr(upload, 'content_type', None)
    if content_type is None:
        content_type = getattr(getattr(upload, 'file', None), 'content_type', None)
    if content_type is not None and content_type not in ALLOWED_PHOTO_TYPES:
        raise ValidationError("Only image files (JPEG, PNG, GIF, WEBP) are allowed.")
