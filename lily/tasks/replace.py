"""Replace task: substitute text or regular expression matches."""

import re

from lily.core.file import FileBuffer
from lily.core.schema.task import Task, TaskResult
from lily.core.utils import unescape


class Replace(Task):
    """Replace occurrences of ``@search`` with ``@replace``.

    Parameters:
        search: Text (or pattern with ``@regex``) to look for
        replace: Replacement text, empty by default
        regex: Treat ``search`` as a multi-line regular expression
        count: Maximum number of replacements (0 means all)
        missing_ok: Succeed even when nothing matches

    Example::

        /* @task replace
         * @search DEBUG = true
         * @replace DEBUG = false
         */
    """

    NAME = "replace"
    REQUIRED_PARAMS = ("search",)
    OPTIONAL_PARAMS = ("replace", "regex", "count", "missing_ok")

    def run(self, file: FileBuffer) -> TaskResult:
        search = unescape(self.get_param("search"))
        replacement = unescape(self.get_param("replace", ""))
        count = int(self.get_param("count") or 0)
        content = file.get_modified_content()

        if self.get_flag("regex"):
            content, replaced = re.compile(search, re.MULTILINE).subn(replacement, content, count=count)
        else:
            replaced = content.count(search) if search else 0
            if count:
                replaced = min(replaced, count)
            if replaced:
                content = content.replace(search, replacement, count or -1)

        if not replaced:
            if self.get_flag("missing_ok"):
                return TaskResult.success()
            return TaskResult.failure(f"'{search}' not found in {file.name or '<content>'}")

        file.set_modified_content(content)
        return TaskResult.success()
