from limits_monitor import DEFAULT_TTL_SECONDS, TTLCache


def test_default_ttl_is_five_minutes():
    assert DEFAULT_TTL_SECONDS == 300
    assert TTLCache().ttl_seconds == 300


def test_get_on_empty_cache_is_a_miss(cache: TTLCache):
    assert cache.get("augment") == (None, False)


def test_entry_is_fresh_until_ttl_elapses(cache: TTLCache, clock):
    cache.set("zai", "record")

    clock.advance(299)
    assert cache.get("zai") == ("record", True)

    # now - fetched_at >= ttl is already stale
    clock.advance(1)
    assert cache.get("zai") == (None, False)


def test_set_overwrites_and_restamps(cache: TTLCache, clock):
    cache.set("openai", "first")
    clock.advance(200)
    cache.set("openai", "second")
    clock.advance(200)

    assert cache.get("openai") == ("second", True)


def test_future_fetched_at_extends_lifetime(cache: TTLCache, clock):
    cache.set("claude", "pushed", fetched_at=clock() + 1800)

    clock.advance(1800 + 299)
    assert cache.get("claude") == ("pushed", True)

    clock.advance(1)
    assert cache.get("claude") == (None, False)


def test_clear_drops_everything(cache: TTLCache):
    cache.set("augment", 1)
    cache.set("zai", 2)
    assert len(cache) == 2

    cache.clear()

    assert len(cache) == 0
    assert cache.get("augment") == (None, False)


def test_shorter_ttl_applies_to_existing_entries(cache: TTLCache, clock):
    cache.set("augment", "record")
    clock.advance(90)

    cache.set_ttl(60)

    assert cache.get("augment") == (None, False)


def test_expired_entries_are_not_deleted_on_read(cache: TTLCache, clock):
    cache.set("augment", "record")
    clock.advance(1000)

    cache.get("augment")

    assert len(cache) == 1
