import hashlib
import hmac
import io
import json
import time

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from terrin.common.exceptions import BadRequestError, NotConfiguredError, PayloadTooLargeError
from terrin.common.uploads import decode_image_data_url, read_upload, validate_image_data_url
from terrin.config import settings
from terrin.integrations.storage import StorageClient, safe_filename
from terrin.integrations.stripe_client import StripeClient, platform_fee_cents


def _sign(payload: str, secret: str, timestamp: int) -> str:
    digest = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256)
    return f"t={timestamp},v1={digest.hexdigest()}"


def test_platform_fee_cents():
    assert platform_fee_cents(1000) == 5000
    assert platform_fee_cents(19.99) == 100
    assert platform_fee_cents(100, percent=2.5) == 250


def test_webhook_without_secret_trusts_payload():
    event = StripeClient().verify_webhook_signature(b'{"type": "ping"}', None)
    assert event == {"type": "ping"}


def test_webhook_signature(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_abc")
    payload = json.dumps({"type": "payment_intent.succeeded"})
    client = StripeClient()

    now = int(time.time())
    assert client.verify_webhook_signature(payload.encode(), _sign(payload, "whsec_abc", now))

    with pytest.raises(ValueError):
        client.verify_webhook_signature(payload.encode(), _sign(payload, "wrong", now))
    with pytest.raises(ValueError):
        client.verify_webhook_signature(payload.encode(), _sign(payload, "whsec_abc", now - 3600))
    with pytest.raises(ValueError):
        client.verify_webhook_signature(payload.encode(), "garbage")
    with pytest.raises(ValueError):
        client.verify_webhook_signature(payload.encode(), None)


def test_stripe_not_configured(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "")
    with pytest.raises(NotConfiguredError):
        StripeClient().ensure_configured()


def test_safe_filename():
    assert safe_filename("../../etc/passwd") == "passwd"
    assert safe_filename("my photo (1).jpg") == "my_photo__1_.jpg"
    assert safe_filename("...") == "file"


@pytest.mark.asyncio
async def test_storage_rejects_traversal():
    with pytest.raises(BadRequestError):
        await StorageClient().put_object("../escape.txt", b"x")


@pytest.mark.asyncio
async def test_storage_round_trip(tmp_path):
    storage = StorageClient()
    record = await storage.upload_file(b"hello", "note.txt", "text/plain", folder="docs")
    assert record["url"].startswith("/uploads/docs/")
    assert await storage.exists(record["file_key"])
    assert await storage.delete_file(record["file_key"]) is True
    assert await storage.delete_file(record["file_key"]) is False


def test_data_url_validation():
    with pytest.raises(BadRequestError):
        validate_image_data_url("data:text/plain;base64,aGk=")
    assert validate_image_data_url("data:image/png;base64,AAAA") == 3

    content_type, data = decode_image_data_url("data:image/jpeg;base64,aGVsbG8=")
    assert content_type == "image/jpeg"
    assert data == b"hello"

    with pytest.raises(BadRequestError):
        decode_image_data_url("data:image/png;base64,@@@")


def _upload(data: bytes, size: int | None = None) -> UploadFile:
    return UploadFile(
        io.BytesIO(data),
        size=size,
        filename="notes.txt",
        headers=Headers({"content-type": "text/plain"}),
    )


@pytest.mark.asyncio
async def test_read_upload_enforces_limit():
    content, content_type = await read_upload(_upload(b"0123456789"), max_bytes=10)
    assert (content, content_type) == (b"0123456789", "text/plain")

    with pytest.raises(PayloadTooLargeError):
        await read_upload(_upload(b"0123456789abc"), max_bytes=10)


@pytest.mark.asyncio
async def test_read_upload_trusts_declared_size():
    # Declared size alone rejects the file without reading the body
    with pytest.raises(PayloadTooLargeError):
        await read_upload(_upload(b"tiny", size=50), max_bytes=10)
