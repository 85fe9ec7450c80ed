"""Stop task: end the run early once a condition is met."""

import re

from lily.core.file import FileBuffer
from lily.core.schema.task import Task


class Stop(Task):
    """Ask the patcher to stop; with ``@pattern``, only when the content matches it.

    The stop is cooperative: the patcher checks it after the current file.
    Stopping a run means nothing gets written.
    """

    NAME = "stop"
    OPTIONAL_PARAMS = ("pattern",)

    def run(self, file: FileBuffer) -> bool:
        pattern = self.get_param("pattern")
        if pattern and not re.search(pattern, file.get_modified_content(), re.MULTILINE):
            return True

        if self.patcher is not None:
            self.patcher.stop()
        return True
