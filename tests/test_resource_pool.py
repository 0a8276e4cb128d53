import threading
import time

import pytest

from xiaozhi_util.resource_pool import (
    PoolConfig,
    PoolError,
    Resource,
    ResourceFactory,
    ResourcePool,
    default_config,
)


class FakeResource(Resource):
    def __init__(self, ident):
        self.ident = ident
        self.closed = False
        self.valid = True

    def close(self):
        self.closed = True

    def is_valid(self):
        return self.valid and not self.closed


class FakeFactory(ResourceFactory):
    def __init__(self, fail_after=None):
        self.created = []
        self.fail_after = fail_after
        self.accept = True
        self.reset_error = False
        self._lock = threading.Lock()

    def create(self):
        with self._lock:
            if self.fail_after is not None and len(self.created) >= self.fail_after:
                raise RuntimeError("cannot create")
            resource = FakeResource(len(self.created))
            self.created.append(resource)
            return resource

    def validate(self, resource):
        return self.accept

    def reset(self, resource):
        if self.reset_error:
            raise RuntimeError("reset failed")


def make_pool(factory=None, **overrides):
    options = dict(max_size=3, min_size=1, max_idle=2, acquire_timeout=1.0, idle_timeout=0)
    options.update(overrides)
    return ResourcePool(PoolConfig(**options), factory or FakeFactory())


def test_default_config_values():
    config = default_config()
    assert (config.max_size, config.min_size, config.max_idle) == (10, 1, 5)
    assert config.acquire_timeout == 30.0
    assert config.idle_timeout == 300.0
    assert config.validate_on_borrow is True
    assert config.validate_on_return is False


def test_none_config_uses_defaults():
    factory = FakeFactory()
    with ResourcePool(None, factory) as pool:
        stats = pool.stats()
        assert stats["max_size"] == 10
        assert stats["min_size"] == 1
        assert stats["max_idle"] == 5
        assert stats["total_resources"] == 1
    assert len(factory.created) == 1


@pytest.mark.parametrize(
    "overrides",
    [{"max_size": 0}, {"min_size": -1}, {"min_size": 4, "max_size": 3}],
)
def test_invalid_config_rejected(overrides):
    with pytest.raises(ValueError):
        make_pool(**overrides)


def test_missing_factory_rejected():
    with pytest.raises(ValueError):
        ResourcePool(PoolConfig(idle_timeout=0), None)


def test_pre_creates_min_size():
    factory = FakeFactory()
    pool = make_pool(factory, min_size=3, max_idle=3)
    stats = pool.stats()
    assert stats["total_resources"] == 3
    assert stats["available_resources"] == 3
    assert stats["in_use_resources"] == 0
    assert len(factory.created) == 3
    pool.close()


def test_pre_create_failure_raises_and_closes():
    factory = FakeFactory(fail_after=1)
    with pytest.raises(PoolError):
        make_pool(factory, min_size=2)
    assert len(factory.created) == 1
    assert factory.created[0].closed


def test_acquire_and_release_reuses_resource():
    factory = FakeFactory()
    pool = make_pool(factory)
    first = pool.acquire()
    assert first is factory.created[0]
    stats = pool.stats()
    assert stats["in_use_resources"] == 1
    assert stats["available_resources"] == 0

    pool.release(first)
    assert pool.stats()["available_resources"] == 1
    assert pool.stats()["in_use_resources"] == 0
    assert pool.acquire() is first
    pool.close()


def test_acquire_creates_until_full_then_times_out():
    factory = FakeFactory()
    pool = make_pool(factory, max_size=2, min_size=0)
    a = pool.acquire()
    b = pool.acquire()
    assert a is not b
    assert pool.stats()["total_resources"] == 2
    with pytest.raises(TimeoutError):
        pool.acquire_with_timeout(0.05)
    pool.close()


def test_acquire_waits_for_release():
    pool = make_pool(max_size=1, min_size=0)
    held = pool.acquire()

    def give_back():
        time.sleep(0.05)
        pool.release(held)

    thread = threading.Thread(target=give_back)
    thread.start()
    got = pool.acquire_with_timeout(2.0)
    thread.join()
    assert got is held
    pool.close()


def test_release_errors():
    pool = make_pool()
    with pytest.raises(ValueError):
        pool.release(None)
    with pytest.raises(PoolError):
        pool.release(FakeResource(99))
    resource = pool.acquire()
    pool.release(resource)
    with pytest.raises(PoolError):
        pool.release(resource)
    pool.close()


def test_release_beyond_max_idle_destroys():
    factory = FakeFactory()
    pool = make_pool(factory, max_idle=1, min_size=0)
    a = pool.acquire()
    b = pool.acquire()
    pool.release(a)
    pool.release(b)
    assert not a.closed
    assert b.closed
    stats = pool.stats()
    assert stats["total_resources"] == 1
    assert stats["available_resources"] == 1
    pool.close()


def test_invalid_resource_replaced_on_borrow():
    factory = FakeFactory()
    pool = make_pool(factory)
    original = factory.created[0]
    original.valid = False
    got = pool.acquire()
    assert got is not original
    assert original.closed
    assert pool.stats()["total_resources"] == 1
    pool.close()


def test_factory_rejection_replaced_on_borrow():
    factory = FakeFactory()
    pool = make_pool(factory)
    original = factory.created[0]
    factory.accept = False
    got = pool.acquire()
    assert got is not original
    assert original.closed
    pool.close()


def test_reset_failure_discards_resource():
    factory = FakeFactory()
    pool = make_pool(factory)
    original = factory.created[0]
    factory.reset_error = True
    got = pool.acquire()
    assert got is not original
    assert original.closed
    assert pool.stats()["in_use_resources"] == 1
    pool.close()


def test_validate_on_return_destroys_invalid():
    factory = FakeFactory()
    pool = make_pool(factory, validate_on_return=True)
    resource = pool.acquire()
    resource.valid = False
    pool.release(resource)
    assert resource.closed
    assert pool.stats()["total_resources"] == 0
    pool.close()


def test_resize_shrinks_idle_resources():
    factory = FakeFactory()
    pool = make_pool(factory, max_size=3, min_size=3, max_idle=3)
    pool.resize(1)
    stats = pool.stats()
    assert stats["max_size"] == 1
    assert stats["total_resources"] == 1
    assert sum(resource.closed for resource in factory.created) == 2
    pool.close()


def test_resize_rejects_non_positive():
    pool = make_pool()
    with pytest.raises(ValueError):
        pool.resize(0)
    pool.close()


def test_close_closes_everything_and_blocks_use():
    factory = FakeFactory()
    pool = make_pool(factory, min_size=2)
    held = pool.acquire()
    pool.close()
    assert all(resource.closed for resource in factory.created)
    stats = pool.stats()
    assert stats["is_closed"] is True
    assert stats["total_resources"] == 0
    with pytest.raises(PoolError):
        pool.acquire()
    with pytest.raises(PoolError):
        pool.release(held)
    with pytest.raises(PoolError):
        pool.resize(5)
    pool.close()
    assert pool.stats()["is_closed"] is True


def test_context_manager_closes_pool():
    factory = FakeFactory()
    with make_pool(factory) as pool:
        assert pool.stats()["is_closed"] is False
    assert pool.stats()["is_closed"] is True
    assert factory.created[0].closed


def test_idle_resources_are_cleaned_up():
    factory = FakeFactory()
    pool = make_pool(factory, min_size=2, idle_timeout=0.05)
    deadline = time.monotonic() + 3.0
    while pool.stats()["total_resources"] and time.monotonic() < deadline:
        time.sleep(0.02)
    assert pool.stats()["total_resources"] == 0
    assert all(resource.closed for resource in factory.created)
    pool.close()


def test_concurrent_use_respects_max_size():
    factory = FakeFactory()
    pool = make_pool(factory, max_size=3, min_size=0, max_idle=3, acquire_timeout=5.0)
    errors = []

    def work():
        for _ in range(20):
            resource = pool.acquire()
            if pool.stats()["total_resources"] > 3:
                errors.append("over limit")
            pool.release(resource)

    threads = [threading.Thread(target=work) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert errors == []
    assert len(factory.created) <= 3
    assert pool.stats()["in_use_resources"] == 0
    pool.close()