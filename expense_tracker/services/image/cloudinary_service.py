"""
Profile Picture Service using Cloudinary

DESIGN DECISION: Clients send profile pictures inline as data URIs.
Storing those in the user record works but bloats every user read,
so when Cloudinary is configured we upload the image and store only
its URL. Without Cloudinary the data URI is stored as given.

This service handles:
1. Sanity-checking the image with Pillow (size, decodable, format)
2. Uploading to Cloudinary with a square thumbnail transformation
3. Returning the URL to store

Plain http(s) URLs (e.g. the Google profile picture) pass through untouched.
"""

import base64
import binascii
from io import BytesIO
from typing import Optional
from uuid import UUID

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import structlog
from PIL import Image, UnidentifiedImageError
from tenacity import retry, stop_after_attempt, wait_exponential

from expense_tracker.config import AppSettings, CloudinarySettings


logger = structlog.get_logger("expense_tracker.services.image")

ALLOWED_FORMATS = {"PNG", "JPEG", "GIF", "WEBP"}
MIN_DIMENSION = 16
AVATAR_SIZE = 256


class ProfilePictureError(Exception):
    """Base exception for profile picture handling."""
    pass


class InvalidImageError(ProfilePictureError):
    """The submitted picture is not a usable image."""
    pass


class ImageUploadError(ProfilePictureError):
    """Failed to upload image to Cloudinary."""
    pass


def is_data_uri(value: Optional[str]) -> bool:
    return bool(value) and value.startswith("data:")


def decode_data_uri(uri: str) -> bytes:
    """
    Decode a base64 `data:image/...;base64,` URI.

    Raises:
        InvalidImageError: If the URI is not a base64 image
    """
    header, _, payload = uri.partition(",")
    if not payload or not header.startswith("data:image/") or ";base64" not in header:
        raise InvalidImageError("Profile picture must be a base64-encoded image")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidImageError("Profile picture data is corrupted")


class ProfilePictureService:
    """
    Turns a submitted profile picture into the value to store.

    Flow:
    1. Nothing submitted -> None (clears the picture)
    2. URL -> stored as is
    3. Data URI -> checked with Pillow, then uploaded if Cloudinary is
       configured, else stored as is
    """

    def __init__(
        self,
        app_settings: AppSettings,
        cloudinary_settings: Optional[CloudinarySettings] = None,
    ):
        self._app_settings = app_settings
        self._settings = cloudinary_settings
        self._configured = False

    @property
    def upload_enabled(self) -> bool:
        return self._settings is not None

    def _configure(self):
        """Configure Cloudinary SDK."""
        if not self._configured:
            cloudinary.config(
                cloud_name=self._settings.cloud_name,
                api_key=self._settings.api_key,
                api_secret=self._settings.api_secret,
                secure=True,
            )
            self._configured = True

    def check_image(self, image_bytes: bytes) -> tuple[int, int]:
        """
        Make sure the bytes are a reasonable image.

        Returns: (width, height)

        Raises:
            InvalidImageError: If too large, undecodable, an unsupported
                format or too small
        """
        max_bytes = self._app_settings.max_profile_picture_bytes
        if len(image_bytes) > max_bytes:
            raise InvalidImageError(
                f"Profile picture must be smaller than {self._app_settings.max_profile_picture_mb} MB"
            )

        try:
            img = Image.open(BytesIO(image_bytes))
            img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError):
            raise InvalidImageError("Profile picture is not a valid image")

        if img.format not in ALLOWED_FORMATS:
            raise InvalidImageError(
                f"Unsupported image format: {img.format or 'unknown'}"
            )

        width, height = img.size
        if min(width, height) < MIN_DIMENSION:
            raise InvalidImageError("Profile picture is too small")

        return width, height

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _upload(self, image_bytes: bytes, user_id: UUID) -> str:
        self._configure()
        try:
            result = cloudinary.uploader.upload(
                image_bytes,
                public_id=str(user_id),
                folder=self._settings.folder,
                overwrite=True,
                resource_type="image",
                transformation=[
                    {
                        "width": AVATAR_SIZE,
                        "height": AVATAR_SIZE,
                        "crop": "thumb",
                        "gravity": "face",
                    },
                    {"quality": "auto"},
                    {"fetch_format": "auto"},
                ],
            )
        except cloudinary.exceptions.Error as e:
            raise ImageUploadError(f"Cloudinary error: {e}")

        url = result.get("secure_url", result.get("url", ""))
        if not url:
            raise ImageUploadError("No URL returned from Cloudinary")
        return url

    def process(self, picture: Optional[str], user_id: UUID) -> Optional[str]:
        """
        Return the value to store for a submitted picture.

        Raises:
            InvalidImageError: If a data URI is not an acceptable image
            ImageUploadError: If Cloudinary is configured but the upload fails
        """
        if not picture:
            return None
        if not is_data_uri(picture):
            return picture

        image_bytes = decode_data_uri(picture)
        width, height = self.check_image(image_bytes)

        if not self.upload_enabled:
            return picture

        url = self._upload(image_bytes, user_id)
        logger.info(
            "profile_picture_uploaded",
            user_id=str(user_id),
            width=width,
            height=height,
            size_bytes=len(image_bytes),
        )
        return url
