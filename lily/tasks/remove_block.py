"""RemoveBlock task: strip marked regions from a file."""

from lily.core.file import FileBuffer
from lily.core.schema.task import Task, TaskResult

DEFAULT_START = "lily:remove-start"
DEFAULT_END = "lily:remove-end"


class RemoveBlock(Task):
    """Remove every line from a ``@start`` marker line through its ``@end`` marker line.

    Markers are matched as substrings, so they can sit in any comment style::

        // lily:remove-start
        debug_dump($request);
        // lily:remove-end
    """

    NAME = "remove_block"
    OPTIONAL_PARAMS = ("start", "end")

    def run(self, file: FileBuffer) -> TaskResult:
        start = self.get_param("start") or DEFAULT_START
        end = self.get_param("end") or DEFAULT_END

        kept = []
        inside = False
        opened_at = 0
        for number, line in enumerate(file.get_modified_content().splitlines(keepends=True), 1):
            if not inside and start in line:
                inside = True
                opened_at = number
                continue
            if inside:
                if end in line:
                    inside = False
                continue
            kept.append(line)

        if inside:
            return TaskResult.failure(
                f"Unterminated block opened at line {opened_at} in {file.name or '<content>'}"
            )

        file.set_modified_content("".join(kept))
        return TaskResult.success()
