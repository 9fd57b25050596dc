import pytest

from cvfs.core.modules.vfs.utils import MAX_NAME_LENGTH, guess_media_type, is_text_name, sanitize_name
from cvfs.errors import ValidationError


class TestSanitizeName:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("report.txt", "report.txt"),
            ("  padded  ", "padded"),
            ('a<b>c:d"e|f?g*h', "abcdefgh"),
            ("dir/sub\\file", "dirsubfile"),
            ("tab\there\x00\x7f", "tabhere"),
            ("документ ✓.md", "документ ✓.md"),
            ("...", "..."),
        ],
    )
    def test_cleans_name(self, name, expected):
        assert sanitize_name(name) == expected

    @pytest.mark.parametrize("name", ["", "   ", "???", ".", "..", " .. ", "/", "\x01\x02"])
    def test_rejects_unusable_name(self, name):
        with pytest.raises(ValidationError):
            sanitize_name(name)

    def test_length_limit_is_in_bytes(self):
        assert sanitize_name("a" * MAX_NAME_LENGTH) == "a" * MAX_NAME_LENGTH
        with pytest.raises(ValidationError):
            sanitize_name("a" * (MAX_NAME_LENGTH + 1))
        # Two bytes per character in UTF-8
        with pytest.raises(ValidationError):
            sanitize_name("é" * 128)


class TestMediaTypes:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("photo.png", "image/png"),
            ("page.html", "text/html"),
            ("data.json", "application/json"),
            ("no_extension", "application/octet-stream"),
        ],
    )
    def test_guess_media_type(self, name, expected):
        assert guess_media_type(name) == expected

    @pytest.mark.parametrize("name", ["notes.txt", "index.html", "style.css", "data.json", "README", "config.xml"])
    def test_text_names(self, name):
        assert is_text_name(name)

    @pytest.mark.parametrize("name", ["photo.png", "song.mp3", "archive.zip", "doc.pdf"])
    def test_binary_names(self, name):
        assert not is_text_name(name)
