"""
Unit tests for name sanitizers.
"""

import pytest

from metricpush.sanitize import (
    SanitizerKind,
    noop_sanitizer,
    opentsdb_sanitizer,
    prometheus_sanitizer,
)


class TestSanitizers:
    """Each sanitizer maps arbitrary input without raising."""

    def test_prometheus(self):
        assert prometheus_sanitizer("http.requests/total") == "http_requests_total"
        assert prometheus_sanitizer("a..b--c") == "a_b_c"

    def test_opentsdb_keeps_separators(self):
        assert opentsdb_sanitizer("http.requests/total-x") == "http.requests/total-x"
        assert opentsdb_sanitizer("a b  c") == "a_b_c"

    def test_opentsdb_keeps_unicode_letters(self):
        assert opentsdb_sanitizer("température") == "température"

    def test_noop(self):
        assert noop_sanitizer("a b") == "a b"

    @pytest.mark.parametrize(
        "sanitizer", [prometheus_sanitizer, opentsdb_sanitizer, noop_sanitizer]
    )
    @pytest.mark.parametrize("raw", ["", None, 12, "∑€ \n\t", "[]{}=,"])
    def test_never_raises(self, sanitizer, raw):
        assert isinstance(sanitizer(raw), str)

    def test_kind_lookup(self):
        assert SanitizerKind("opentsdb").function is opentsdb_sanitizer
        assert SanitizerKind.PROMETHEUS.function is prometheus_sanitizer
