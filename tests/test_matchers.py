"""Tests for request matchers."""

from __future__ import annotations

import pytest

from guardchain.web.exchange import HttpRequest
from guardchain.web.matchers import (
    AntPathRequestMatcher,
    AnyRequestMatcher,
    RegexRequestMatcher,
    RequestMatcher,
)


def _req(path: str, method: str = "GET", query: str = "") -> HttpRequest:
    return HttpRequest(path=path, method=method, query_string=query)


class TestAnyRequestMatcher:
    def test_matches_everything(self):
        matcher = AnyRequestMatcher()
        assert matcher.matches(_req("/"))
        assert matcher.matches(_req("/deep/path", "DELETE"))

    def test_is_a_request_matcher(self):
        assert isinstance(AnyRequestMatcher(), RequestMatcher)

    def test_equality(self):
        assert AnyRequestMatcher() == AnyRequestMatcher()


class TestAntPathRequestMatcher:
    @pytest.mark.parametrize(
        "pattern,path,expected",
        [
            ("/login", "/login", True),
            ("/login", "/login/", False),
            ("/admin/**", "/admin", True),
            ("/admin/**", "/admin/users/1", True),
            ("/admin/**", "/administrator", False),
            ("/static/*.css", "/static/site.css", True),
            ("/static/*.css", "/static/css/site.css", False),
            ("/item/?", "/item/7", True),
            ("/item/?", "/item/77", False),
            ("/**", "/anything/at/all", True),
            ("/**/edit", "/a/b/edit", True),
        ],
    )
    def test_patterns(self, pattern, path, expected):
        assert AntPathRequestMatcher(pattern).matches(_req(path)) is expected

    def test_method_restriction(self):
        matcher = AntPathRequestMatcher("/login", "post")
        assert matcher.method == "POST"
        assert matcher.matches(_req("/login", "POST"))
        assert not matcher.matches(_req("/login", "GET"))

    def test_query_string_ignored(self):
        assert AntPathRequestMatcher("/search").matches(_req("/search", query="q=1"))

    def test_case_insensitive(self):
        matcher = AntPathRequestMatcher("/Admin/**", case_sensitive=False)
        assert matcher.matches(_req("/admin/x"))
        assert not AntPathRequestMatcher("/Admin/**").matches(_req("/admin/x"))

    def test_empty_pattern_rejected(self):
        with pytest.raises(ValueError):
            AntPathRequestMatcher("")


class TestRegexRequestMatcher:
    def test_full_match_on_path_and_query(self):
        matcher = RegexRequestMatcher(r"/reports\?year=\d{4}")
        assert matcher.matches(_req("/reports", query="year=2024"))
        assert not matcher.matches(_req("/reports", query="year=24"))

    def test_partial_match_is_not_enough(self):
        assert not RegexRequestMatcher(r"/api").matches(_req("/api/v1"))

    def test_method_and_case(self):
        matcher = RegexRequestMatcher(r"/API/.*", method="PUT", case_insensitive=True)
        assert matcher.matches(_req("/api/x", "PUT"))
        assert not matcher.matches(_req("/api/x", "GET"))
