import pytest
from botocore.exceptions import ClientError

from portal.exceptions import DependencyFailureError
from portal.services.storage import ObjectStore, check_public_base

ENDPOINT = "https://acc.r2.cloudflarestorage.com"


def test_public_url_and_key_roundtrip(storage):
    url = storage.public_url("/covers/a.webp")
    assert url == "https://cdn.example.com/covers/a.webp"
    assert storage.key_for_url(url) == "covers/a.webp"
    assert storage.key_for_url("https://other.example.com/covers/a.webp") is None
    assert storage.key_for_url(None) is None


def test_public_url_without_base_uses_endpoint(s3):
    store = ObjectStore(s3, "bucket", "", ENDPOINT + "/")
    assert store.public_url("thumbs/b.webp") == f"{ENDPOINT}/bucket/thumbs/b.webp"


def test_discard_urls_skips_failures(storage, s3, monkeypatch):
    def broken_delete(Bucket, Key):
        if Key.startswith("thumbs/"):
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "DeleteObject")
        s3.deleted.append(Key)

    monkeypatch.setattr(s3, "delete_object", broken_delete)
    deleted = storage.discard_urls(
        "https://cdn.example.com/covers/a.webp",
        "https://cdn.example.com/thumbs/a.webp",
        None,
    )
    assert deleted == ["covers/a.webp"]


def test_check_public_base():
    assert check_public_base("https://cdn.example.com", ENDPOINT) == []
    assert len(check_public_base("", ENDPOINT)) == 1
    assert len(check_public_base(f"{ENDPOINT}/bucket", "")) == 1
    assert len(check_public_base("https://s3.example.net/bucket", "https://s3.example.net")) == 1


def test_put_failure_hides_key_from_message(storage, s3):
    s3.fail_on.add("covers/")
    with pytest.raises(DependencyFailureError) as exc:
        storage.put("covers/secret-name.webp", b"x", "image/webp")
    assert exc.value.message == "Object storage error: upload failed"
    assert exc.value.status_code == 502
