"""Profile picture services package."""

from expense_tracker.services.image.cloudinary_service import (
    ImageUploadError,
    InvalidImageError,
    ProfilePictureError,
    ProfilePictureService,
)

__all__ = [
    "ImageUploadError",
    "InvalidImageError",
    "ProfilePictureError",
    "ProfilePictureService",
]
