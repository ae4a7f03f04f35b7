"""Tests for the tag-based cache and cache key building."""

from datetime import datetime
from decimal import Decimal

import fakeredis
import pytest
import redis
from shared import cache
from shared.cache import TaggedCache, get_cache, make_key


@pytest.fixture()
def tagged():
    return TaggedCache(fakeredis.FakeRedis(decode_responses=True), prefix="test:")


class TestTaggedCache:
    def test_put_and_get(self, tagged):
        tagged.put("a", {"x": 1}, ttl=60)
        assert tagged.get("a") == {"x": 1}

    def test_serializes_decimals_and_datetimes(self, tagged):
        tagged.put("a", {"price": Decimal("1.50"), "at": datetime(2024, 1, 2, 3, 4, 5)}, ttl=60)
        assert tagged.get("a") == {"price": 1.5, "at": "2024-01-02T03:04:05"}

    def test_remember_calls_loader_once(self, tagged):
        calls = []

        def load():
            calls.append(1)
            return ["value"]

        assert tagged.remember("k", 60, load) == ["value"]
        assert tagged.remember("k", 60, load) == ["value"]
        assert len(calls) == 1

    def test_clear_by_tags_removes_only_tagged_keys(self, tagged):
        tagged.put("p1", 1, ttl=60, tags=["products"])
        tagged.put("p2", 2, ttl=60, tags=["products", "search"])
        tagged.put("o1", 3, ttl=60, tags=["orders"])

        removed = tagged.clear_by_tags(["products"])

        assert removed == 2
        assert tagged.get("p1") is None
        assert tagged.get("p2") is None
        assert tagged.get("o1") == 3

    def test_flush_only_touches_prefix(self, tagged):
        tagged.put("a", 1, ttl=60, tags=["products"])
        tagged.client.set("other:key", "kept")

        tagged.flush()

        assert tagged.count() == 0
        assert tagged.client.get("other:key") == "kept"

    def test_remember_falls_back_when_redis_is_down(self, tagged, monkeypatch):
        def broken(*args, **kwargs):
            raise redis.ConnectionError("down")

        monkeypatch.setattr(tagged.client, "get", broken)

        assert tagged.remember("k", 60, lambda: "fresh") == "fresh"


class TestMakeKey:
    def test_is_deterministic_and_ignores_none(self):
        assert make_key("products", {"page": 1, "name": None}) == make_key("products", {"page": 1})

    def test_differs_by_params(self):
        assert make_key("products", {"page": 1}) != make_key("products", {"page": 2})

    def test_user_scoped_keys(self):
        key = make_key("orders", {"view": "list"}, user_id=7)
        assert key.startswith("orders:user:7:")


class TestStatistics:
    def test_counts_keys_per_group(self):
        cache.remember("products", make_key("products", {"view": "a"}), lambda: [1])
        cache.remember("search", make_key("search", {"q": "mug"}), lambda: [2])

        stats = get_cache().statistics()

        assert stats["products_cache_keys"] == 1
        assert stats["search_cache_keys"] == 1
        assert stats["orders_cache_keys"] == 0
        assert stats["tag_sets"] >= 2

    def test_info_reports_memory_driver(self):
        info = get_cache().info()
        assert info["connected"] is True
        assert info["driver"] == "memory"
        assert set(info["groups"]) == {"products", "search", "orders"}

    def test_info_keeps_driver_when_redis_info_fails(self, monkeypatch):
        client = fakeredis.FakeRedis(decode_responses=True)

        def refuse(*args, **kwargs):
            raise redis.ResponseError("unknown command 'INFO'")

        monkeypatch.setattr(client, "info", refuse)
        tagged = TaggedCache(client, prefix="test:", driver="redis")
        info = tagged.info()
        assert info["driver"] == "redis"
        assert info["connected"] is True
        assert "error" in info

    def test_info_reports_disconnected_server(self):
        server = fakeredis.FakeServer()
        server.connected = False
        tagged = TaggedCache(fakeredis.FakeRedis(server=server, decode_responses=True), driver="memory")
        info = tagged.info()
        assert info == {"driver": "memory", "prefix": "", "connected": False, "error": info["error"]}
