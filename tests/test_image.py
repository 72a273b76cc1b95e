"""Tests for the profile picture service (no Cloudinary calls)."""

import base64
from io import BytesIO
from uuid import uuid4

import pytest
from PIL import Image

from expense_tracker.config import AppSettings
from expense_tracker.services.image import InvalidImageError, ProfilePictureService
from expense_tracker.services.image.cloudinary_service import decode_data_uri, is_data_uri


def _image_bytes(size=(32, 32), fmt="PNG"):
    buffer = BytesIO()
    Image.new("RGB", size, color=(200, 100, 50)).save(buffer, format=fmt)
    return buffer.getvalue()


def _data_uri(data, mime="image/png"):
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


@pytest.fixture
def service():
    return ProfilePictureService(AppSettings())


class TestDataUris:
    def test_is_data_uri(self):
        assert is_data_uri("data:image/png;base64,AAAA")
        assert not is_data_uri("https://example.com/a.png")
        assert not is_data_uri(None)

    def test_decode(self):
        data = _image_bytes()
        assert decode_data_uri(_data_uri(data)) == data

    @pytest.mark.parametrize("uri", [
        "data:text/plain;base64,aGVsbG8=",
        "data:image/png,rawdata",
        "data:image/png;base64,!!!not-base64!!!",
    ])
    def test_decode_rejects(self, uri):
        with pytest.raises(InvalidImageError):
            decode_data_uri(uri)


class TestProfilePictureService:
    def test_check_image(self, service):
        assert service.check_image(_image_bytes((40, 20))) == (40, 20)

    def test_rejects_non_image(self, service):
        with pytest.raises(InvalidImageError, match="not a valid image"):
            service.check_image(b"definitely not an image")

    def test_rejects_tiny_image(self, service):
        with pytest.raises(InvalidImageError, match="too small"):
            service.check_image(_image_bytes((8, 8)))

    def test_rejects_unsupported_format(self, service):
        with pytest.raises(InvalidImageError, match="Unsupported image format"):
            service.check_image(_image_bytes(fmt="BMP"))

    def test_rejects_oversized(self, service):
        too_big = b"\0" * (service._app_settings.max_profile_picture_bytes + 1)
        with pytest.raises(InvalidImageError, match="smaller than"):
            service.check_image(too_big)

    def test_process_without_cloudinary_keeps_data_uri(self, service):
        assert service.upload_enabled is False
        uri = _data_uri(_image_bytes())
        assert service.process(uri, uuid4()) == uri

    def test_process_passes_urls_through(self, service):
        assert service.process("https://example.com/me.png", uuid4()) == "https://example.com/me.png"

    def test_process_clears(self, service):
        assert service.process(None, uuid4()) is None
        assert service.process("", uuid4()) is None

    def test_process_rejects_bad_data_uri(self, service):
        with pytest.raises(InvalidImageError):
            service.process(_data_uri(b"garbage"), uuid4())
