import pytest

from conftest import upload

from crm_backend.api.errors import ObjectNotFoundError, StorageError
from crm_backend.storage.folders import folder_for, is_allowed
from crm_backend.storage.lifecycle import UploadedFile


def test_folder_routing_is_case_insensitive():
    assert folder_for("photo.JPG") == "images"
    assert folder_for("clip.mov") == "videos"
    assert folder_for("notes.docx") == "documents"
    assert folder_for("mock.ai") == "designs"
    assert folder_for("archive.zip") == "others"


def test_psd_is_allowed_but_has_no_folder():
    assert is_allowed("cover.psd")
    assert folder_for("cover.psd") == "others"


def test_upload_filter_reports_every_problem():
    too_big = UploadedFile("huge.png", "image/png", b"x" * (1024 * 1024 + 1))
    rejected = UploadedFile("run.exe", "application/octet-stream", b"MZ")
    assert rejected.errors() == ["File type .exe is not supported"]
    assert too_big.errors() == ["File huge.png exceeds the 1MB upload limit"]


def test_store_all_discards_earlier_objects_when_one_fails(storage, bucket, monkeypatch):
    put = bucket.put

    def failing_put(key, data, content_type):
        if key.endswith("-second.pdf"):
            raise RuntimeError("put failed")
        put(key, data, content_type)

    monkeypatch.setattr(bucket, "put", failing_put)
    with pytest.raises(StorageError):
        storage.store_all([upload("first.pdf"), upload("second.pdf"), upload("third.pdf")])
    assert bucket.objects == {}


def test_store_all_keeps_upload_order(storage):
    urls = storage.store_all([upload("a.png"), upload("b.txt", b"b", "text/plain")])
    assert [url.rsplit("-", 1)[-1] for url in urls] == ["a.png", "b.txt"]
    assert all(storage.exists(url) for url in urls)


def test_store_returns_public_url_under_folder(storage, bucket):
    url = storage.store(upload("logo.png"))
    key = url[len("https://bucket.test/crm-test/"):]
    assert url.startswith("https://bucket.test/crm-test/images/")
    assert key.endswith("-logo.png")
    assert key in bucket.objects and key in bucket.public


def test_store_without_buffer_fails(storage):
    with pytest.raises(StorageError):
        storage.store(UploadedFile("logo.png", "image/png", None))


def test_failed_make_public_is_a_failed_store(storage, bucket):
    bucket.fail_on.add("make_public")
    with pytest.raises(StorageError):
        storage.store(upload())
    assert bucket.objects == {}


@pytest.mark.parametrize(
    "ref",
    [
        "https://bucket.test/crm-test/images/1-logo.png",
        "images/1-logo.png",
        "1-logo.png",
    ],
)
def test_key_for_accepts_url_key_and_filename(storage, ref):
    assert storage.key_for(ref) == "images/1-logo.png"


def test_remove_absent_object_raises_not_found(storage):
    with pytest.raises(ObjectNotFoundError):
        storage.remove("images/missing.png")


def test_replace_stores_then_removes(storage, bucket):
    old = storage.store(upload("old.png"))
    new = storage.replace(old, upload("new.png"))
    assert new != old
    assert list(bucket.objects) == [storage.key_for(new)]


def test_replace_keeps_old_object_when_store_fails(storage, bucket):
    old = storage.store(upload("old.png"))
    bucket.fail_on.add("put")
    with pytest.raises(StorageError):
        storage.replace(old, upload("new.png"))
    assert storage.exists(old)


def test_replace_tolerates_failed_remove(storage, bucket):
    old = storage.store(upload("old.png"))
    bucket.fail_on.add("delete")
    new = storage.replace(old, upload("new.png"))
    assert storage.exists(new) and storage.exists(old)


def test_replace_without_old_is_plain_store(storage, bucket):
    url = storage.replace(None, upload())
    assert storage.exists(url)


def test_discard_never_raises(storage):
    assert storage.discard("images/missing.png") is False
    assert storage.discard(None) is False


def test_fetch_streams_in_chunks(storage):
    url = storage.store(upload("doc.txt", b"hello world", "text/plain"))
    filename, stream = storage.fetch(url)
    assert filename.endswith("-doc.txt")
    assert b"".join(stream) == b"hello world"


def test_fetch_errors_surface_while_streaming(storage, bucket):
    url = storage.store(upload("doc.txt", b"hello", "text/plain"))
    bucket.fail_on.add("read")
    _, stream = storage.fetch(url)
    with pytest.raises(StorageError):
        list(stream)


def test_usage_report_groups_by_folder(storage):
    objects = [
        {"key": "images/2-b.png", "size": 5, "created_at": None},
        {"key": "documents/1-a.pdf", "size": 7, "created_at": None},
        {"key": "images/1-a.png", "size": 3, "created_at": None},
        {"key": "loose.bin", "size": 1, "created_at": None},
    ]
    report = storage.usage_report(objects)
    assert list(report) == ["documents", "images", "others"]
    assert report["images"]["size"] == 8
    assert [f["file"] for f in report["images"]["files"]] == [
        "https://bucket.test/crm-test/images/1-a.png",
        "https://bucket.test/crm-test/images/2-b.png",
    ]
    assert storage.usage_report(reversed(objects)) == report
