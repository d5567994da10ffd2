"""Tests for warbler.errors — exception hierarchy and messages."""

import pytest

from warbler.errors import (
    ConfigurationError,
    DiscoveryError,
    HTTPError,
    LoadFailure,
    NotFound,
    RenderError,
    WarblerError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [ConfigurationError, DiscoveryError, RenderError, LoadFailure, HTTPError, NotFound],
    )
    def test_all_are_warbler_errors(self, cls: type) -> None:
        assert issubclass(cls, WarblerError)

    def test_not_found_is_http_error(self) -> None:
        assert issubclass(NotFound, HTTPError)


class TestRenderError:
    def test_carries_filename_and_page(self) -> None:
        err = RenderError("Template not found", filename="src/a.html", page="a")
        assert err.filename == "src/a.html"
        assert err.page == "a"

    def test_str_names_page_and_template(self) -> None:
        err = RenderError("Template not found", filename="src/a.html", page="a")
        assert str(err) == "Template not found (page 'a', template 'src/a.html')"

    def test_str_without_page(self) -> None:
        err = RenderError("boom", filename="index.html")
        assert str(err) == "boom ('index.html')"


class TestLoadFailure:
    def test_message_names_file(self) -> None:
        err = LoadFailure("about.html")
        assert err.filename == "about.html"
        assert "about.html" in str(err)


class TestHTTPError:
    def test_str_with_detail(self) -> None:
        assert str(HTTPError(status=400, detail="Bad")) == "400: Bad"

    def test_str_without_detail(self) -> None:
        assert str(HTTPError(status=500)) == "500"

    def test_not_found_defaults(self) -> None:
        err = NotFound()
        assert err.status == 404
        assert err.detail == "Not Found"
