"""
Tests for the tenant registry
"""

import threading
from unittest.mock import Mock

import pytest

from globalstore import (
    ALLOW_ALL,
    PLATFORM,
    DispatchFailure,
    DuplicateTenantError,
    ReducerReplacementError,
    UnknownTenantError,
    create_container,
)
from globalstore.container import REPLACE_ACTION_TYPE
from globalstore.registry import (
    EVENT_REDUCER_REPLACED,
    EVENT_REGISTERED,
    EVENT_REPLACED,
    EVENT_UNREGISTERED,
    TenantRegistry,
)

from tests.factories import ProtocolOnlyStore, cart_reducer, counter_reducer, rejecting_reducer


class TestTenantRegistry:
    """Test registration, replacement and ordering"""

    def test_register_and_lookup(self):
        registry = TenantRegistry()
        container = create_container(counter_reducer)

        returned = registry.register("Checkout", container, ["ADD_ITEM"])

        assert returned is container
        entry = registry.lookup("Checkout")
        assert entry.container is container
        assert entry.global_actions == frozenset({"ADD_ITEM"})

    def test_lookup_missing_returns_none(self):
        assert TenantRegistry().lookup("Nope") is None

    def test_duplicate_without_flag_keeps_original(self):
        registry = TenantRegistry()
        original = create_container(counter_reducer)
        registry.register("Checkout", original)

        with pytest.raises(DuplicateTenantError) as exc_info:
            registry.register("Checkout", create_container(cart_reducer))

        assert exc_info.value.tenant == "Checkout"
        assert registry.lookup("Checkout").container is original

    def test_replace_container_keeps_position_and_allow_list(self):
        registry = TenantRegistry()
        registry.register("A", create_container(counter_reducer), ["X"])
        registry.register("B", create_container(counter_reducer))
        replacement = create_container(cart_reducer)

        registry.register("A", replacement, replace_container=True)

        assert registry.names() == ["A", "B"]
        assert registry.lookup("A").container is replacement
        assert registry.lookup("A").global_actions == frozenset({"X"})

    def test_replace_container_with_new_allow_list(self):
        registry = TenantRegistry()
        registry.register("A", create_container(counter_reducer), ["X"])
        registry.register("A", create_container(counter_reducer), ["Y"], replace_container=True)
        assert registry.lookup("A").global_actions == frozenset({"Y"})

    def test_replace_reducer_only_keeps_container(self):
        registry = TenantRegistry()
        container = create_container(counter_reducer)
        registry.register("A", container, ["X"])

        returned = registry.register("A", None, replace_reducer_only=True, reducer=cart_reducer)

        assert returned is container
        assert registry.lookup("A").container is container
        assert registry.lookup("A").global_actions == frozenset({"X"})

    def test_replace_reducer_only_requires_reducer(self):
        registry = TenantRegistry()
        registry.register("A", create_container(counter_reducer))
        with pytest.raises(ValueError):
            registry.register("A", None, replace_reducer_only=True)

    def test_replace_reducer_on_protocol_only_store(self):
        registry = TenantRegistry()
        store = ProtocolOnlyStore()
        registry.register("Foreign", store, ["X"])

        with pytest.raises(ReducerReplacementError) as exc_info:
            registry.register("Foreign", None, replace_reducer_only=True, reducer=cart_reducer)

        assert exc_info.value.tenant == "Foreign"
        assert registry.lookup("Foreign").container is store

    def test_failed_replace_reducer_raises_dispatch_failure(self):
        registry = TenantRegistry()
        handler = Mock()
        registry.register("A", create_container(counter_reducer), ["X"])
        registry.add_event_handler(handler)

        with pytest.raises(DispatchFailure) as exc_info:
            registry.register("A", None, ["Y"], replace_reducer_only=True, reducer=rejecting_reducer)

        assert exc_info.value.tenant == "A"
        assert exc_info.value.action_type == REPLACE_ACTION_TYPE
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert registry.lookup("A").global_actions == frozenset({"X"})
        handler.assert_not_called()

    def test_replace_reducer_notifies_outside_lock(self):
        lock = threading.RLock()
        registry = TenantRegistry(lock)
        container = create_container(counter_reducer)
        registry.register("A", container)
        lock_free = []

        def try_acquire():
            acquired = lock.acquire(blocking=False)
            if acquired:
                lock.release()
            lock_free.append(acquired)

        def check_lock():
            # an RLock is reentrant for its owner, so test it from another thread
            worker = threading.Thread(target=try_acquire)
            worker.start()
            worker.join()

        container.subscribe(check_lock)
        registry.register("A", None, replace_reducer_only=True, reducer=counter_reducer)

        assert lock_free == [True]

    def test_platform_always_first(self):
        registry = TenantRegistry()
        registry.register("Checkout", create_container(counter_reducer))
        registry.register("Search", create_container(counter_reducer))
        registry.register(PLATFORM, create_container(counter_reducer))

        assert registry.names() == [PLATFORM, "Checkout", "Search"]

    def test_register_global_actions(self):
        registry = TenantRegistry()
        registry.register("A", create_container(counter_reducer), ["X"])

        registry.register_global_actions("A", [ALLOW_ALL])
        assert registry.is_action_allowed("A", "ANYTHING")

        registry.register_global_actions("A")
        assert registry.lookup("A").global_actions == frozenset()
        assert not registry.is_action_allowed("A", "X")

    def test_register_global_actions_unknown_tenant(self):
        with pytest.raises(UnknownTenantError):
            TenantRegistry().register_global_actions("Ghost", ["X"])

    def test_unregister(self):
        registry = TenantRegistry()
        registry.register("A", create_container(counter_reducer))

        assert registry.unregister("A").name == "A"
        assert registry.unregister("A") is None
        assert "A" not in registry
        assert len(registry) == 0

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            TenantRegistry().register("", create_container(counter_reducer))


class TestRegistryEvents:
    """Test event handlers used to keep subscriptions in sync"""

    def test_events_emitted_in_lifecycle_order(self):
        registry = TenantRegistry()
        handler = Mock()
        registry.add_event_handler(handler)

        registry.register("A", create_container(counter_reducer))
        registry.register("A", create_container(counter_reducer), replace_container=True)
        registry.register("A", None, replace_reducer_only=True, reducer=counter_reducer)
        registry.unregister("A")

        events = [call.args[0] for call in handler.call_args_list]
        assert events == [EVENT_REGISTERED, EVENT_REPLACED, EVENT_REDUCER_REPLACED, EVENT_UNREGISTERED]

    def test_replaced_event_carries_old_and_new_entries(self):
        registry = TenantRegistry()
        old_container = create_container(counter_reducer)
        new_container = create_container(counter_reducer)
        registry.register("A", old_container)
        handler = Mock()
        registry.add_event_handler(handler)

        registry.register("A", new_container, replace_container=True)

        event, name, old, new = handler.call_args.args
        assert (event, name) == (EVENT_REPLACED, "A")
        assert old.container is old_container
        assert new.container is new_container

    def test_no_event_on_duplicate(self):
        registry = TenantRegistry()
        registry.register("A", create_container(counter_reducer))
        handler = Mock()
        registry.add_event_handler(handler)

        with pytest.raises(DuplicateTenantError):
            registry.register("A", create_container(counter_reducer))
        handler.assert_not_called()

    def test_removed_handler_not_called(self):
        registry = TenantRegistry()
        handler = Mock()
        registry.add_event_handler(handler)
        registry.remove_event_handler(handler)

        registry.register("A", create_container(counter_reducer))
        handler.assert_not_called()
