"""Unit tests for creatorindex.sources."""

from __future__ import annotations

import pytest

from creatorindex.config import SourcesSettings
from creatorindex.errors import CreatorIndexError, ErrorCode
from creatorindex.sources import (
    ApiSource,
    cache_key,
    index_url,
    is_valid_domain,
    normalize_base_url,
)


class TestNormalizeBaseUrl:
    def test_bare_domain_gets_https(self) -> None:
        assert normalize_base_url("kemono.cr") == "https://kemono.cr"

    def test_trailing_slash_and_case(self) -> None:
        assert normalize_base_url("  HTTPS://Kemono.CR/ ") == "https://kemono.cr"

    def test_http_scheme_kept(self) -> None:
        assert normalize_base_url("http://coomer.st") == "http://coomer.st"

    def test_port_kept(self) -> None:
        assert normalize_base_url("https://kemono.test:8443/") == "https://kemono.test:8443"

    def test_api_source_default(self) -> None:
        assert normalize_base_url(ApiSource.COOMER) == "https://coomer.st"
        assert normalize_base_url(ApiSource.KEMONO) == "https://kemono.cr"

    def test_api_source_from_settings(self) -> None:
        sources = SourcesSettings(kemono="kemono.su")
        assert normalize_base_url(ApiSource.KEMONO, sources) == "https://kemono.su"

    @pytest.mark.parametrize("value", ["", "   ", "ftp://kemono.cr", "not a domain", "localhost"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(CreatorIndexError) as exc_info:
            normalize_base_url(value)
        assert exc_info.value.code == ErrorCode.INVALID_IDENTITY


class TestHelpers:
    def test_is_valid_domain(self) -> None:
        assert is_valid_domain("kemono.cr")
        assert is_valid_domain("n4.coomer.st")
        assert not is_valid_domain("")
        assert not is_valid_domain("kemono")

    def test_index_url(self) -> None:
        assert index_url("https://kemono.cr") == "https://kemono.cr/api/v1/creators.txt"

    def test_cache_key_distinct_per_backend(self) -> None:
        assert cache_key("https://kemono.cr") != cache_key("https://coomer.st")
        assert cache_key("https://kemono.cr") == cache_key("https://kemono.cr")
        assert len(cache_key("https://kemono.cr")) == 64
