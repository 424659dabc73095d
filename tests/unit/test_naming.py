"""
Unit tests for tag-encoded metric names.
"""

import pytest

from metricpush.naming import MetricName, tagged


class TestDecode:
    """Parsing registry names."""

    def test_plain_name(self):
        """Names without a tag block have no tags."""
        name = MetricName.decode("jvm.memory.used")
        assert name.name == "jvm.memory.used"
        assert dict(name.tags) == {}

    def test_tagged_name(self):
        """Bracket block is split into tags."""
        name = MetricName.decode("http.requests[method=GET, status=200]")
        assert name.name == "http.requests"
        assert dict(name.tags) == {"method": "GET", "status": "200"}

    def test_empty_tag_block(self):
        """An empty block yields no tags."""
        name = MetricName.decode("queue[]")
        assert name.name == "queue"
        assert dict(name.tags) == {}

    @pytest.mark.parametrize("encoded", ["odd[name", "arr[0][env=prod]", "a]b"])
    def test_malformed_name_rejected(self, encoded):
        """Stray brackets cannot be decoded unambiguously."""
        with pytest.raises(ValueError):
            MetricName.decode(encoded)

    def test_value_may_contain_equals(self):
        """Only the first '=' separates key and value."""
        name = MetricName.decode("q[expr=a=b]")
        assert dict(name.tags) == {"expr": "a=b"}

    def test_slash_delimited_base(self):
        """Slash-delimited names decode untouched."""
        name = MetricName.decode("api/v1/users[env=prod]")
        assert name.name == "api/v1/users"


class TestEncode:
    """Serializing identities."""

    def test_tags_sorted(self):
        """Tags serialize sorted by key."""
        name = MetricName("db.query", {"z": "1", "a": "2"})
        assert name.encode() == "db.query[a=2,z=1]"
        assert str(name) == "db.query[a=2,z=1]"

    def test_roundtrip_ignores_insertion_order(self):
        """Encode then decode is lossless regardless of tag order."""
        first = MetricName("svc", {"env": "prod", "host": "a-1"})
        second = MetricName("svc", {"host": "a-1", "env": "prod"})

        assert MetricName.decode(first.encode()) == first
        assert MetricName.decode(second.encode()) == first
        assert first.encode() == second.encode()
        assert hash(first) == hash(second)

    def test_inequality(self):
        """Differing base or tags compare unequal."""
        assert MetricName("a", {"k": "v"}) != MetricName("a", {"k": "w"})
        assert MetricName("a") != MetricName("b")


class TestReservedCharacters:
    """Identities that would not survive a round trip are refused up front."""

    @pytest.mark.parametrize(
        "tags",
        [
            {"route": "/a,b"},
            {"note": " padded "},
            {"note": "trailing "},
            {"expr": "x[0]"},
            {"k=1": "v"},
            {"a,b": "v"},
            {" key": "v"},
            {"": "v"},
        ],
    )
    def test_bad_tags_rejected(self, tags):
        with pytest.raises(ValueError):
            MetricName("svc", tags)
        with pytest.raises(ValueError):
            MetricName("svc").with_tags(tags)

    @pytest.mark.parametrize("base", ["arr[0]", "x]", " svc", "svc\t"])
    def test_bad_base_rejected(self, base):
        with pytest.raises(ValueError):
            MetricName(base, {"env": "prod"})

    def test_bad_submetric_segment_rejected(self):
        with pytest.raises(ValueError):
            MetricName("svc").submetric("p[99]")

    def test_tagged_helper_rejects_separator_in_value(self):
        """A comma inside a value would otherwise split into a spurious tag."""
        with pytest.raises(ValueError):
            tagged("http", "route", "/a,b")

    @pytest.mark.parametrize(
        "original",
        [
            MetricName("svc", {"route": "/a/b", "expr": "a=b=c"}),
            MetricName("svc", {"note": "inner space", "empty": ""}),
            MetricName("api/v1 users", {"host": "a-1"}),
            MetricName("", {"only": "tags"}),
            MetricName("plain"),
        ],
    )
    def test_accepted_names_roundtrip(self, original):
        assert MetricName.decode(original.encode()) == original

    def test_non_string_tags_coerced(self):
        name = MetricName("svc", {"status": 200})  # type: ignore[dict-item]
        assert dict(name.tags) == {"status": "200"}


class TestDerivation:
    """Submetrics and tag additions."""

    def test_submetric_appends_segment(self):
        root = MetricName.decode("req.latency[host=a]")
        child = root.submetric("count")
        assert child.name == "req.latency.count"
        assert dict(child.tags) == {"host": "a"}

    def test_empty_submetric_is_noop(self):
        root = MetricName("req.latency")
        assert root.submetric("") is root

    def test_parent_not_mutated(self):
        """Derivation always produces a new value."""
        root = MetricName("req")
        root.submetric("rate").with_tags("window", "1m")
        assert root.name == "req"
        assert dict(root.tags) == {}

    def test_with_tags_pairs(self):
        name = MetricName("req").with_tags("a", "1", "b", 2)
        assert dict(name.tags) == {"a": "1", "b": "2"}

    def test_with_tags_mapping_and_kwargs(self):
        name = MetricName("req").with_tags({"a": "1"}, b="2")
        assert dict(name.tags) == {"a": "1", "b": "2"}

    def test_with_tags_overwrites(self):
        name = MetricName("req", {"a": "1"}).with_tags("a", "9")
        assert dict(name.tags) == {"a": "9"}

    def test_with_tags_rejects_odd_pairs(self):
        with pytest.raises(ValueError):
            MetricName("req").with_tags("a", "1", "b")

    def test_tags_are_read_only(self):
        name = MetricName("req", {"a": "1"})
        with pytest.raises(TypeError):
            name.tags["b"] = "2"  # type: ignore[index]


def test_tagged_helper():
    """tagged() builds encoded registry names."""
    assert tagged("http.requests", "status", 200, method="GET") == (
        "http.requests[method=GET,status=200]"
    )
