"""Tests for FieldRegistry registration, aggregation and effectors."""
import asyncio

import pytest

from formstate import FieldEffectors, FieldNotFoundError, FieldRegistry

from helpers import run


class TestRegistration:

    def test_register_then_read_back(self, registry):
        registry.register('name', 'Ann')
        assert registry.get_values() == {'name': 'Ann'}

    def test_unregister_removes_value_and_baseline(self, registry):
        handle = registry.register('address.street', 'Main')
        assert registry.unregister(handle) is True
        assert registry.get_values() == {}
        assert registry.initial_values == {}

    def test_unregister_stale_handle_is_noop(self, registry):
        """A remount at the same path must survive the old owner's teardown."""
        old = registry.register('name', 'Ann')
        new = registry.register('name', 'Bob')

        assert registry.unregister(old) is False
        assert registry.get('name').handle == new
        assert registry.get_values() == {'name': 'Bob'}

    def test_unregister_unknown_handle(self, registry):
        assert registry.unregister('nope') is False

    def test_caller_supplied_handle(self, registry):
        assert registry.register('name', 'Ann', handle='h-1') == 'h-1'
        assert registry.find_by_handle('h-1').path == 'name'

    def test_initial_value_defaults_from_seed(self):
        registry = FieldRegistry(defaults={'profile': {'age': 30}})
        registry.register('profile.age')
        registry.register('profile.nickname')
        assert registry.get_values() == {'profile': {'age': 30, 'nickname': None}}

    def test_iteration_follows_registration_order(self, registry):
        for path in ('b', 'a', 'c'):
            registry.register(path, 0)
        registry.register('a', 1)
        assert registry.paths() == ['b', 'a', 'c']

    def test_require_raises_for_unknown_path(self, registry):
        with pytest.raises(FieldNotFoundError) as excinfo:
            registry.require('missing')
        assert excinfo.value.path == 'missing'

    def test_change_callbacks(self, registry):
        events = []
        registry.add_change_callback(lambda reason, path: events.append((reason, path)))
        handle = registry.register('name', 'Ann')
        registry.unregister(handle)
        assert events == [('register', 'name'), ('unregister', 'name')]

    def test_failing_change_callback_does_not_abort(self, registry):
        def boom(reason, path):
            raise RuntimeError("listener failed")

        registry.add_change_callback(boom)
        registry.register('name', 'Ann')
        assert 'name' in registry


class TestAggregation:

    def test_nested_values_and_touched(self, registry):
        registry.register('address.street', 'Main', initial_touched=True)
        registry.register('address.city', 'Oslo')
        assert registry.get_values() == {'address': {'street': 'Main', 'city': 'Oslo'}}
        assert registry.get_touched() == {'address': {'street': True, 'city': False}}

    def test_errors_omit_none(self, registry):
        registry.register('email', '', initial_error='required')
        registry.register('age', 30, initial_error=None)
        assert registry.get_errors() == {'email': 'required'}

    def test_is_dirty_after_unregister_of_changed_field(self, registry):
        registry.register('name', 'Ann')
        handle = registry.register('age', 30)
        run(registry.set_value, 'age', 31)
        assert registry.is_dirty() is True

        registry.unregister(handle)
        assert registry.is_dirty() is False

    def test_bool_replacing_number_is_dirty(self, registry):
        registry.register('subscribed', 1)
        registry.set_value('subscribed', True)
        assert registry.is_dirty() is True

    def test_removed_change_callback_is_not_called(self, registry):
        events = []

        def record(reason, path):
            events.append(reason)

        registry.add_change_callback(record)
        registry.register('name', 'Ann')
        registry.remove_change_callback(record)
        registry.register('age', 30)
        assert events == ['register']


class TestEffectors:

    def test_set_value_with_validation(self, registry):
        registry.register('email', 'x', validator=lambda v: None if v else 'required')
        run(registry.set_value, 'email', '', should_validate=True)
        assert registry.get('email').error == 'required'

    def test_set_value_with_async_validation(self, registry):
        async def check(value):
            await asyncio.sleep(0)
            return 'taken' if value == 'ann' else None

        registry.register('username', '', validator=check)
        run(registry.set_value, 'username', 'ann', should_validate=True)
        assert registry.get_errors() == {'username': 'taken'}

    def test_set_error_with_touch(self, registry):
        registry.register('email', '')
        run(registry.set_error, 'email', 'bad', should_touch=True)
        field = registry.get('email')
        assert (field.error, field.touched) == ('bad', True)

    def test_set_error_without_touch_keeps_touched(self, registry):
        registry.register('email', '')
        run(registry.set_error, 'email', 'bad')
        assert registry.get('email').touched is False

    def test_reset_restores_initial_state(self, registry):
        registry.register('name', 'Ann', initial_touched=False)

        async def scenario():
            await registry.set_value('name', 'Bob')
            await registry.set_touched('name', True)
            await registry.set_error('name', 'bad')
            await registry.reset('name')

        asyncio.run(scenario())
        field = registry.get('name')
        assert (field.value, field.touched, field.error) == ('Ann', False, None)

    def test_reset_with_value_moves_baseline(self, registry):
        registry.register('name', 'Ann')
        run(registry.reset, 'name', 'Cat')
        assert registry.get_values() == {'name': 'Cat'}
        assert registry.initial_values == {'name': 'Cat'}
        assert registry.is_dirty() is False

    def test_effector_on_unregistered_path_is_skipped(self, registry):
        run(registry.set_value, 'ghost', 1)
        assert registry.get_values() == {}

    def test_owner_hooks_see_applied_state(self, registry):
        seen = []

        async def on_value(field):
            await asyncio.sleep(0)
            seen.append(('value', field.value))

        effectors = FieldEffectors(
            on_value=on_value,
            on_touched=lambda field: seen.append(('touched', field.touched)),
        )
        registry.register('name', 'Ann', effectors=effectors)

        async def scenario():
            await registry.set_value('name', 'Bob')
            await registry.set_touched('name', True)

        asyncio.run(scenario())
        assert seen == [('value', 'Bob'), ('touched', True)]

    def test_effectors_apply_without_an_event_loop(self, registry):
        registry.register('name', 'Ann')
        completion = registry.set_value('name', 'Bob')
        registry.set_touched('name', True)
        assert completion.done
        assert registry.get_values() == {'name': 'Bob'}
        assert registry.get_touched() == {'name': True}

    def test_value_lands_before_async_validation_settles(self, registry):
        async def check(value):
            await asyncio.sleep(0)
            return 'too short'

        registry.register('name', '', validator=check)

        async def scenario():
            completion = registry.set_value('name', 'A', should_validate=True)
            assert registry.get('name').value == 'A'
            assert registry.get('name').error is None
            await completion

        asyncio.run(scenario())
        assert registry.get('name').error == 'too short'
