import pytest
from unittest.mock import MagicMock, call

from scene_glue.core.exceptions import InvalidPatternError
from scene_glue.glue.definitions import HookDefinition, StepDefinition
from scene_glue.glue.registry import Bound, DefinitionRegistry, Unbound


def noop(context, *args):
    return context


def other(context, *args):
    return context


class TestRegistryBuffering:
    """Registrations made before an engine is attached"""

    @pytest.fixture
    def registry(self):
        return DefinitionRegistry()

    @pytest.fixture
    def glue(self):
        return MagicMock()

    def test_starts_unbound(self, registry):
        assert isinstance(registry.state, Unbound)
        assert not registry.is_bound
        assert registry.glue is None

    def test_steps_are_queued_until_bind(self, registry, glue):
        """Nothing reaches the glue before bind"""
        registry.register_step("I have {int} cukes", noop)
        registry.register_step("I eat {int} cukes", other)

        assert glue.method_calls == []
        assert [d.pattern for d in registry.state.pending_steps] == [
            "I have {int} cukes",
            "I eat {int} cukes",
        ]

    def test_bind_flushes_in_registration_order(self, registry, glue):
        """Each queued registration is forwarded exactly once, in order"""
        first = registry.register_step("first", noop)
        before = registry.register_before_scenario_hook("@db", noop)
        second = registry.register_step("second", other)
        after = registry.register_after_scenario_hook(None, other)

        registry.bind(glue)

        assert glue.method_calls == [
            call.add_step_definition(first),
            call.add_step_definition(second),
            call.add_before_hook(before),
            call.add_after_hook(after),
        ]

    def test_bind_moves_to_bound_and_clears_queues(self, registry, glue):
        registry.register_step("first", noop)
        pending = registry.state

        registry.bind(glue)

        assert registry.state == Bound(glue)
        assert registry.glue is glue
        assert pending.pending_steps == []
        assert pending.pending_before == []
        assert pending.pending_after == []

    def test_step_hooks_are_never_queued(self, registry, glue):
        """Step hooks are stored directly and never forwarded"""
        registry.register_before_step_hook(noop)
        registry.register_after_step_hook(other)

        assert [h.body for h in registry.before_step_hooks] == [noop]
        assert [h.body for h in registry.after_step_hooks] == [other]

        registry.bind(glue)

        assert glue.method_calls == []

    def test_malformed_pattern_rejected_at_registration(self, registry, glue):
        """A bad pattern raises where it is registered and never reaches bind"""
        with pytest.raises(InvalidPatternError) as raised:
            registry.register_step("I have {int cukes", noop)
        assert raised.value.pattern == "I have {int cukes"

        step = registry.register_step("I have {int} cukes", noop)
        hook = registry.register_before_scenario_hook(None, other)
        assert [d.pattern for d in registry.state.pending_steps] == ["I have {int} cukes"]

        registry.bind(glue)

        glue.add_step_definition.assert_called_once_with(step)
        glue.add_before_hook.assert_called_once_with(hook)

    def test_glue_may_register_while_bind_flushes(self, registry, glue):
        """Registering from inside the glue during bind does not deadlock"""

        def add_step_definition(definition):
            if definition.pattern == "I wait":
                registry.register_step("registered by glue", other)
                registry.register_after_step_hook(other)

        glue.add_step_definition.side_effect = add_step_definition
        registry.register_step("I wait", noop)

        registry.bind(glue)

        assert [c.args[0].pattern for c in glue.add_step_definition.call_args_list] == [
            "I wait",
            "registered by glue",
        ]
        assert [h.body for h in registry.after_step_hooks] == [other]


class TestRegistryBound:
    """Registrations made after an engine is attached"""

    @pytest.fixture
    def glue(self):
        return MagicMock()

    @pytest.fixture
    def registry(self, glue):
        registry = DefinitionRegistry()
        registry.bind(glue)
        return registry

    def test_step_forwarded_immediately(self, registry, glue):
        definition = registry.register_step("I have {int} cukes", noop)

        glue.add_step_definition.assert_called_once_with(definition)
        assert isinstance(definition, StepDefinition)

    def test_hooks_forwarded_immediately(self, registry, glue):
        before = registry.register_before_scenario_hook("@web", noop)
        after = registry.register_after_scenario_hook("@web", noop)

        glue.add_before_hook.assert_called_once_with(before)
        glue.add_after_hook.assert_called_once_with(after)
        assert isinstance(before, HookDefinition)

    def test_duplicates_are_not_deduplicated(self, registry, glue):
        """The same pattern and body registered twice is forwarded twice"""
        registry.register_step("I wait", noop)
        registry.register_step("I wait", noop)

        assert glue.add_step_definition.call_count == 2

    def test_rebind_replaces_glue_without_replaying(self, registry, glue):
        """A second bind swaps the glue reference and forwards nothing"""
        registry.register_step("already forwarded", noop)
        registry.register_after_step_hook(other)
        new_glue = MagicMock()

        registry.bind(new_glue)

        assert registry.state == Bound(new_glue)
        assert new_glue.method_calls == []
        assert [h.body for h in registry.after_step_hooks] == [other]

        registry.register_step("after rebind", noop)
        assert new_glue.add_step_definition.call_count == 1
        assert glue.add_step_definition.call_count == 1


class TestRegistryDefinitions:
    """Definition construction"""

    def test_adapters_shape_forwarded_objects(self):
        glue = MagicMock()
        registry = DefinitionRegistry(
            step_adapter=lambda d: ("step", d.pattern),
            hook_adapter=lambda d: ("hook", d.location.line),
        )

        registry.register_step("I have {int} cukes", noop)
        hook = registry.register_before_scenario_hook(None, noop)
        registry.bind(glue)

        glue.add_step_definition.assert_called_once_with(("step", "I have {int} cukes"))
        glue.add_before_hook.assert_called_once_with(("hook", hook.location.line))

    def test_location_defaults_to_body_source(self):
        registry = DefinitionRegistry()
        definition = registry.register_step("I wait", noop)

        assert definition.location.file == __file__
        assert definition.location.line == noop.__code__.co_firstlineno

    def test_hook_tags_are_compiled(self):
        registry = DefinitionRegistry()
        definition = registry.register_before_scenario_hook("@db and not @slow", noop)

        assert definition.tag_filter.matches(["@db"])
        assert not definition.tag_filter.matches(["@db", "@slow"])
        assert not definition.tag_filter.matches([])

    def test_hook_without_tags_matches_everything(self):
        registry = DefinitionRegistry()
        definition = registry.register_after_scenario_hook(None, noop)

        assert definition.tag_filter.matches([])
        assert definition.tag_filter.matches(["@anything"])

    def test_definitions_are_immutable(self):
        registry = DefinitionRegistry()
        definition = registry.register_step("I wait", noop)

        with pytest.raises(AttributeError):
            definition.pattern = "changed"
