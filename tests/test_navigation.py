"""
Tests for URL parameter helpers and the in-memory history.
"""
import pytest

from passwordlock.models import Page
from passwordlock.navigation import (
    HistoryNavigation,
    page_for_path,
    read_params,
    strip_params,
)


class TestParams:

    def test_read_merges_query_and_fragment(self):
        params = read_params("/?a=1&b=#b=2&c=3")
        assert params == {"a": "1", "b": "2", "c": "3"}

    def test_query_has_priority(self):
        assert read_params("/?a=q#a=f")["a"] == "q"

    def test_first_non_empty_value_wins(self):
        assert read_params("/?a=&a=2&a=3")["a"] == "2"

    def test_strip_keeps_other_params(self):
        url = strip_params("/reset?type=recovery&lang=en#access_token=A", ["type", "access_token"])
        assert url == "/reset?lang=en"

    def test_strip_is_idempotent(self):
        once = strip_params("/?type=recovery&x=1", ["type"], path="/login")
        assert once == "/login?x=1"
        assert strip_params(once, ["type"], path="/login") == once

    def test_strip_keeps_raw_fragment(self):
        assert strip_params("/page?type=recovery#top", ["type"]) == "/page#top"
        assert strip_params("/?a=%20b&type=x#k=v&type=y", ["type"]) == "/?a=%20b#k=v"

    def test_strip_full_url(self):
        url = strip_params(
            "https://app.test/?type=recovery&access_token=A&refresh_token=B",
            ["type", "access_token", "refresh_token"],
            path="/login",
        )
        assert url == "https://app.test/login"


class TestPages:

    @pytest.mark.parametrize("path, page", [
        ("", Page.LANDING),
        ("/", Page.LANDING),
        ("/login", Page.LOGIN),
        ("/signup", Page.SIGNUP),
        ("/verification", Page.VERIFICATION),
        ("/vault/", Page.VAULT),
        ("/unknown", None),
    ])
    def test_page_for_path(self, path, page):
        assert page_for_path(path) is page


class TestHistoryNavigation:

    def test_push_replace_and_pop_state(self):
        history = HistoryNavigation("/")
        paths = []
        dispose = history.on_pop_state(paths.append)
        history.push("/login")
        history.push("/signup?x=1")
        history.replace("/signup")
        assert history.entries == ["/", "/login", "/signup"]
        history.back()
        history.back()
        history.back()  # already at the start
        history.forward()
        assert paths == ["/login", "/", "/login"]
        dispose()
        history.forward()
        assert paths == ["/login", "/", "/login"]

    def test_push_truncates_forward_entries(self):
        history = HistoryNavigation("/")
        history.push("/login")
        history.back()
        history.push("/signup")
        assert history.entries == ["/", "/signup"]
