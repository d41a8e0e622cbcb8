import pytest

from relay.services.storage import StorageService, file_extension, sanitize_user_segment


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("a.png", ".png"),
        ("Photo.JPG", ".jpg"),
        ("archive.tar.gz", ".gz"),
        ("README", ""),
        (".env", ""),
        ("dir/report.PDF", ".pdf"),
        ("odd.p n*g", ".png"),
    ],
)
def test_file_extension(filename, expected):
    assert file_extension(filename) == expected


@pytest.mark.parametrize(
    ("user_id", "expected"),
    [
        ("alice", "alice"),
        ("bob_smith-2", "bob_smith-2"),
        ("../../etc", "etc"),
        ("a b/c", "abc"),
        ("", "demo"),
        (None, "demo"),
        ("!!!", "demo"),
    ],
)
def test_sanitize_user_segment(user_id, expected):
    assert sanitize_user_segment(user_id, "demo") == expected


def test_generate_upload_key_layout(failing_s3):
    storage = StorageService(client=failing_s3(RuntimeError("unused")))
    key = storage.generate_upload_key("alice", "clip.MP4")

    prefix, user, name = key.split("/")
    millis, rest = name.split("_", 1)
    assert prefix == "chat_uploads"
    assert user == "alice"
    assert millis.isdigit()
    assert rest.endswith(".mp4")
    assert len(rest) == 36 + len(".mp4")
