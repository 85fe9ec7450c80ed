"""Prepend task: add text at the start of a file."""

from lily.core.file import FileBuffer
from lily.core.schema.task import Task
from lily.core.utils import unescape


class Prepend(Task):
    """Prepend ``@text`` to the content, followed by a newline if ``@newline`` is set."""

    NAME = "prepend"
    REQUIRED_PARAMS = ("text",)
    OPTIONAL_PARAMS = ("newline",)

    def run(self, file: FileBuffer) -> bool:
        text = unescape(self.get_param("text"))

        if self.get_flag("newline") and not text.endswith("\n"):
            text += "\n"

        file.set_modified_content(text + file.get_modified_content())
        return True
