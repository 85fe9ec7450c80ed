"""Append task: add text at the end of a file."""

from lily.core.file import FileBuffer
from lily.core.schema.task import Task
from lily.core.utils import unescape


class Append(Task):
    """Append ``@text`` to the content, on a new line if ``@newline`` is set."""

    NAME = "append"
    REQUIRED_PARAMS = ("text",)
    OPTIONAL_PARAMS = ("newline",)

    def run(self, file: FileBuffer) -> bool:
        content = file.get_modified_content()
        text = unescape(self.get_param("text"))

        if self.get_flag("newline") and content and not content.endswith("\n"):
            content += "\n"

        file.set_modified_content(content + text)
        return True
