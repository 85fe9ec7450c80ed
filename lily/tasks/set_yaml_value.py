"""SetYamlValue task: format-preserving edits of YAML files.

Uses ruamel.yaml round-tripping so comments, quoting and key order of the
rest of the document are kept.
"""

from io import StringIO

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from lily.core.file import FileBuffer
from lily.core.schema.task import Task, TaskResult


def _create_yaml_instance() -> YAML:
    """Create configured ruamel.yaml instance for round-trip editing.

    Returns:
        YAML instance configured to:
        - Preserve quotes and formatting
        - Not wrap long strings
        - Use block style (not flow style)
    """
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.width = 4096
    yaml.default_flow_style = False
    yaml.allow_unicode = True
    return yaml


def parse_scalar(value: str):
    """Parse a directive argument as a YAML scalar ("3" -> 3, "true" -> True)."""
    return YAML(typ="safe").load(value)


class SetYamlValue(Task):
    """Set ``@key`` (a dot path such as ``spec.replicas``) to ``@value``.

    Intermediate mappings are created when missing.

    Example::

        # @task set_yaml_value
        # @key spec.replicas
        # @value 3
    """

    NAME = "set_yaml_value"
    REQUIRED_PARAMS = ("key", "value")

    def run(self, file: FileBuffer) -> TaskResult:
        keys = [k for k in self.get_param("key").split(".") if k]
        if not keys:
            return TaskResult.failure("Empty YAML key")

        yaml = _create_yaml_instance()
        document = yaml.load(file.get_modified_content())
        if document is None:
            document = CommentedMap()
        if not isinstance(document, dict):
            return TaskResult.failure(f"{file.name or '<content>'} is not a YAML mapping")

        node = document
        for key in keys[:-1]:
            if node.get(key) is None:
                node[key] = CommentedMap()
            node = node[key]
            if not isinstance(node, dict):
                return TaskResult.failure(f"'{key}' is not a mapping in {file.name or '<content>'}")

        node[keys[-1]] = parse_scalar(self.get_param("value"))

        stream = StringIO()
        yaml.dump(document, stream)
        file.set_modified_content(stream.getvalue())
        return TaskResult.success()
