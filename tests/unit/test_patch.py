"""Tests for Patch parsing."""

import tempfile
from pathlib import Path

import pytest

from lily.core.errors import MissingRequiredParameterError, UnknownTaskTypeError
from lily.core.grammar import build_grammar
from lily.core.patch import INLINE_PATCH_NAME, Patch, split_files
from lily.core.registry import TaskRegistry
from lily.core.schema.task import Task
from lily.tasks.append import Append
from lily.tasks.replace import Replace


class Upper(Task):
    NAME = "Upper"

    def run(self, file):
        file.set_modified_content(file.get_modified_content().upper())
        return True


def make_registry():
    registry = TaskRegistry()
    registry.register("Upper", Upper)
    registry.register("replace", Replace)
    registry.register("append", Append)
    return registry


class TestPatchDetection:
    """Tests for recognizing patch sources."""

    def test_no_lily_directive(self):
        """Test that sources without @lily are not patches."""
        registry = make_registry()

        assert Patch.from_string("/* @task Upper */", registry) is None
        assert Patch.from_string("plain text", registry) is None

    def test_minimal_patch(self):
        """Test the single-line Upper patch."""
        patch = Patch.from_string("/* @lily @task Upper */", make_registry())

        tasks = patch.get_tasks()
        assert len(tasks) == 1
        assert isinstance(tasks[0], Upper)
        assert patch.name == INLINE_PATCH_NAME

    def test_lily_without_tasks(self):
        """Test that a bare @lily is an empty patch."""
        patch = Patch.from_string("# @lily empty", make_registry())

        assert patch is not None
        assert patch.name == "empty"
        assert patch.get_tasks() == []


class TestTaskBlocks:
    """Tests for task blocks and parameter binding."""

    def test_params_bound_to_task(self):
        """Test multi-line param binding."""
        source = (
            "/**\n"
            " * @lily rename\n"
            " * @task replace\n"
            " * @search foo\n"
            " * @replace bar\n"
            " * @count 2\n"
            " */\n"
        )

        patch = Patch.from_string(source, make_registry())

        task = patch.get_tasks()[0]
        assert isinstance(task, Replace)
        assert task.params == {"search": "foo", "replace": "bar", "count": "2"}
        assert patch.name == "rename"

    def test_undeclared_param_is_recorded_and_ignored(self):
        """Test that a param of another task does not bind."""
        source = "/* @lily\n * @task append\n * @text hi\n * @search nope\n */"

        task = Patch.from_string(source, make_registry()).get_tasks()[0]

        assert task.params == {"text": "hi"}
        assert task.extra_params == {"search": "nope"}

    def test_param_outside_block_is_ignored(self):
        """Test params before any @task."""
        source = "/* @lily @search x */\n/* @task Upper */"

        tasks = Patch.from_string(source, make_registry()).get_tasks()

        assert len(tasks) == 1
        assert tasks[0].extra_params == {}

    def test_block_ends_with_comment(self):
        """Test that a task block does not extend into the next comment."""
        source = (
            "/* @lily */\n"
            "/* @task append\n * @text one */\n"
            "/* @text two */\n"
        )

        tasks = Patch.from_string(source, make_registry()).get_tasks()

        assert len(tasks) == 1
        assert tasks[0].get_param("text") == "one"

    def test_hash_in_code_before_doc_block(self):
        """Test that a # in a string literal does not drop the tasks of a later block."""
        source = '$color = "#fff"; /* @lily demo\n * @task Upper\n */'

        patch = Patch.from_string(source, make_registry())

        assert patch.name == "demo"
        assert [t.get_name() for t in patch.get_tasks()] == ["Upper"]

    def test_line_comment_block(self):
        """Test a task block spread over consecutive # lines."""
        source = "# @lily\n# @task append\n# @text one\nx: 1\n# @text two\n"

        tasks = Patch.from_string(source, make_registry()).get_tasks()

        assert len(tasks) == 1
        assert tasks[0].get_param("text") == "one"

    def test_last_value_wins(self):
        """Test repeated params in one block."""
        source = "/* @lily @task append @text a @text b */"

        task = Patch.from_string(source, make_registry()).get_tasks()[0]

        assert task.get_param("text") == "b"

    def test_task_arguments(self):
        """Test text after the task name."""
        source = "/* @lily @task Upper  first second */"

        task = Patch.from_string(source, make_registry()).get_tasks()[0]

        assert task.arguments == "first second"

    def test_directive_order_kept(self):
        """Test that tasks are neither reordered nor deduplicated."""
        source = (
            "/* @lily\n"
            " * @task append\n * @text B\n"
            " * @task Upper\n"
            " * @task append\n * @text B\n"
            " */"
        )

        tasks = Patch.from_string(source, make_registry()).get_tasks()

        assert [t.get_name() for t in tasks] == ["append", "Upper", "append"]
        assert tasks[0] is not tasks[2]

    def test_missing_required_param(self):
        """Test that a missing required param fails at parse time."""
        source = "/* @lily @task replace @replace bar */"

        with pytest.raises(MissingRequiredParameterError) as exc_info:
            Patch.from_string(source, make_registry())

        assert exc_info.value.task_name == "replace"
        assert exc_info.value.param == "search"

    def test_unknown_task(self):
        """Test that an unregistered task name fails at parse time."""
        with pytest.raises(UnknownTaskTypeError) as exc_info:
            Patch.from_string("/* @lily @task nothing */", make_registry())

        assert exc_info.value.reference == "nothing"


class TestFileScope:
    """Tests for @files."""

    def test_split_files(self):
        """Test the @files argument format."""
        assert split_files("a.txt, b/c.txt,,  d.txt ") == ["a.txt", "b/c.txt", "d.txt"]

    def test_patch_scope(self):
        """Test @files before any task scopes the patch."""
        source = "/* @lily @files a.txt, b.txt */\n/* @task Upper */"

        patch = Patch.from_string(source, make_registry())

        assert patch.has_files()
        assert patch.get_files() == ["a.txt", "b.txt"]
        assert not patch.get_tasks()[0].has_files()

    def test_task_scope(self):
        """Test @files inside a block scopes the task."""
        source = "/* @lily @task Upper @files b.txt */"

        patch = Patch.from_string(source, make_registry())

        assert not patch.has_files()
        assert patch.get_tasks()[0].get_files() == ["b.txt"]


class TestGrammarAtParseTime:
    """Tests for grammar selection."""

    def test_uses_registry_grammar_at_call_time(self):
        """Test that tasks registered after the source was written are recognized."""
        registry = TaskRegistry()
        source = "/* @lily @task append @text late */"

        registry.register("append", Append)
        patch = Patch.from_string(source, registry)

        assert patch.get_tasks()[0].get_param("text") == "late"

    def test_explicit_grammar(self):
        """Test that an explicit grammar without the param leaves it unbound."""
        registry = make_registry()
        source = "/* @lily @task Upper @text x */"

        patch = Patch.from_string(source, registry, grammar=build_grammar())

        assert patch.get_tasks()[0].arguments == "@text x"


class TestFromSource:
    """Tests for path vs inline sources."""

    def test_from_file_path(self):
        """Test that an existing path is read and names the patch."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "upper.patch"
            path.write_text("// @lily\n// @task Upper\n", encoding="utf-8")

            by_path = Patch.from_source(path, make_registry())
            by_string = Patch.from_source(str(path), make_registry())

            assert by_path.name == "upper.patch"
            assert by_path.source == path
            assert by_string.name == "upper.patch"

    def test_inline_string(self):
        """Test that other strings are parsed as content."""
        patch = Patch.from_source("/* @lily inline-one @task Upper */", make_registry())

        assert patch.name == "inline-one"
        assert patch.source is None
