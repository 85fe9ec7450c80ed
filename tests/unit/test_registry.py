"""Tests for the task registry."""

import pytest

from lily.core.errors import InvalidTaskContractError, UnknownTaskTypeError
from lily.core.registry import TaskRegistry, resolve_task_reference
from lily.core.schema.task import Task
from lily.tasks.replace import Replace


class Upper(Task):
    NAME = "upper"

    def run(self, file):
        file.set_modified_content(file.get_modified_content().upper())
        return True


class Lower(Task):
    NAME = "lower"
    OPTIONAL_PARAMS = ("locale",)

    def run(self, file):
        file.set_modified_content(file.get_modified_content().lower())
        return True


class Incomplete(Task):
    NAME = "incomplete"


class NotATask:
    NAME = "nope"

    def apply(self, file):
        return True


class TestRegister:
    """Tests for TaskRegistry.register()."""

    def test_register_class(self):
        """Test registering a Task subclass."""
        registry = TaskRegistry()

        registry.register("upper", Upper)

        assert registry.lookup("upper") is Upper
        assert "upper" in registry
        assert len(registry) == 1

    def test_register_colon_reference(self):
        """Test registering with a module:Class reference."""
        registry = TaskRegistry()

        registry.register("replace", "lily.tasks.replace:Replace")

        assert registry.lookup("replace") is Replace

    def test_register_dotted_reference(self):
        """Test registering with a module.Class reference."""
        registry = TaskRegistry()

        registry.register("replace", "lily.tasks.replace.Replace")

        assert registry.lookup("replace") is Replace

    def test_unknown_module(self):
        """Test that a missing module raises UnknownTaskTypeError."""
        registry = TaskRegistry()

        with pytest.raises(UnknownTaskTypeError) as exc_info:
            registry.register("ghost", "lily.tasks.does_not_exist:Ghost")

        assert exc_info.value.reference == "lily.tasks.does_not_exist:Ghost"

    def test_unknown_attribute(self):
        """Test that a missing class raises UnknownTaskTypeError."""
        registry = TaskRegistry()

        with pytest.raises(UnknownTaskTypeError):
            registry.register("ghost", "lily.tasks.replace:Ghost")

    def test_malformed_reference(self):
        """Test that a bare name is not resolvable."""
        registry = TaskRegistry()

        with pytest.raises(UnknownTaskTypeError):
            registry.register("ghost", "Ghost")

    def test_not_a_task_subclass(self):
        """Test that duck-typed classes are rejected."""
        registry = TaskRegistry()

        with pytest.raises(InvalidTaskContractError) as exc_info:
            registry.register("nope", NotATask)

        assert exc_info.value.implementation is NotATask
        assert "nope" not in registry

    def test_not_a_class(self):
        """Test that non-class objects are rejected."""
        registry = TaskRegistry()

        with pytest.raises(InvalidTaskContractError):
            registry.register("nope", "collections:OrderedDict")
        with pytest.raises(InvalidTaskContractError):
            registry.register("nope", Upper())  # type: ignore[arg-type]

    def test_abstract_task_rejected(self):
        """Test that a Task without run() is rejected."""
        registry = TaskRegistry()

        with pytest.raises(InvalidTaskContractError):
            registry.register("incomplete", Incomplete)

    def test_reregistration_replaces(self):
        """Test that the last registration for a name wins."""
        registry = TaskRegistry()
        registry.register("case", Upper)

        registry.register("case", Lower)

        assert registry.lookup("case") is Lower
        assert registry.names == ["case"]


class TestLookup:
    """Tests for TaskRegistry.lookup()."""

    def test_missing_name_returns_none(self):
        """Test that lookup never raises."""
        assert TaskRegistry().lookup("missing") is None


class TestParamsAndGrammar:
    """Tests for parameter tracking and grammar regeneration."""

    def test_grammar_regenerated_on_register(self):
        """Test that registering a task adds its params to the grammar."""
        registry = TaskRegistry()
        before = registry.grammar

        registry.register("replace", Replace)

        assert registry.grammar is not before
        assert "search" in registry.grammar.keywords
        assert "replace" in registry.grammar.keywords
        assert not before.matches(" @search x")
        assert registry.grammar.matches(" @search x")

    def test_params_survive_replacement(self):
        """Test that params of a replaced task stay registered."""
        registry = TaskRegistry()
        registry.register("case", Lower)

        registry.register("case", Upper)

        assert registry.params == ("locale",)

    def test_params_deduplicated(self):
        """Test that shared params are listed once."""
        registry = TaskRegistry()
        registry.register("replace", Replace)
        registry.register("replace2", Replace)

        assert registry.params == tuple(Replace.get_params())


class TestResolveTaskReference:
    """Tests for resolve_task_reference()."""

    def test_class_passes_through(self):
        """Test that class objects are returned unchanged."""
        assert resolve_task_reference(Upper) is Upper
