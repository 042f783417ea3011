"""Tests for download link entities and errors."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest

from linkgate.domain.entities import (
    ConfigurationError,
    DownloadLink,
    DownloadLinkError,
    MediaFile,
    MediaMessage,
    PathContainmentError,
    UnreachableScriptError,
)


def _link(script_url: str = "https://dl.example.com/linkgate/abc", **kw) -> DownloadLink:
    fields = {
        "script_url": script_url,
        "file_id": "photos/cat.jpg",
        "name": "cat.jpg",
        "mime": "image/jpeg",
        "size": 1234,
    }
    fields.update(kw)
    return DownloadLink(**fields)


class TestDownloadLink:
    def test_query_params(self) -> None:
        assert _link().query_params() == {
            "f": "photos/cat.jpg",
            "n": "cat.jpg",
            "m": "image/jpeg",
            "s": "1234",
        }

    def test_url_starts_with_script_url(self) -> None:
        url = _link().to_url()
        assert url.startswith("https://dl.example.com/linkgate/abc?")

    def test_url_round_trips_attributes(self) -> None:
        link = _link(name="Größe & more.jpg", mime="image/jpeg; q=1", size=0)
        query = parse_qs(urlsplit(link.to_url()).query)
        assert query == {
            "f": ["photos/cat.jpg"],
            "n": ["Größe & more.jpg"],
            "m": ["image/jpeg; q=1"],
            "s": ["0"],
        }

    def test_existing_query_uses_ampersand(self) -> None:
        url = _link(script_url="https://dl.example.com/run?token=x").to_url()
        assert url.startswith("https://dl.example.com/run?token=x&f=")
        query = parse_qs(urlsplit(url).query)
        assert query["token"] == ["x"]
        assert query["f"] == ["photos/cat.jpg"]

    def test_frozen(self) -> None:
        link = _link()
        with pytest.raises(AttributeError):
            link.size = 1  # type: ignore[misc]


class TestMediaMessage:
    def test_wraps_media(self, media_file: MediaFile) -> None:
        msg = MediaMessage(media=media_file, text="look")
        assert msg.media is media_file
        assert msg.text == "look"

    def test_text_defaults_to_empty(self, media_file: MediaFile) -> None:
        assert MediaMessage(media=media_file).text == ""


class TestErrors:
    def test_unreachable_names_url(self) -> None:
        err = UnreachableScriptError("https://x.test/s")
        assert str(err) == "https://x.test/s is not a valid download script!"
        assert err.url == "https://x.test/s"

    def test_unreachable_with_reason(self) -> None:
        err = UnreachableScriptError("https://x.test/s", reason="ConnectError")
        assert str(err).endswith("(ConnectError)")

    def test_configuration_error_keeps_attempted_paths(self) -> None:
        err = ConfigurationError("missing", attempted=["/a", "/b"])
        assert err.attempted == ["/a", "/b"]

    def test_configuration_error_attempted_defaults_empty(self) -> None:
        assert ConfigurationError("missing").attempted == []

    def test_containment_error_message(self) -> None:
        err = PathContainmentError(Path("/srv/private/x"), Path("/srv/public"))
        assert "not within readable document root" in str(err)
        assert "/srv/private/x" in str(err)
        assert err.root == Path("/srv/public")

    @pytest.mark.parametrize(
        "exc",
        [
            ConfigurationError("x"),
            UnreachableScriptError("u"),
            PathContainmentError(Path("a"), Path("b")),
        ],
    )
    def test_all_derive_from_base(self, exc: Exception) -> None:
        assert isinstance(exc, DownloadLinkError)
