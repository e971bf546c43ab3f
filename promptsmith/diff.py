"""Line-based diff between two prompt contents.

The edit script comes from an LCS table (O(m*n) time and space), which is
fine for prompt-sized inputs. Backtracking prefers an insertion over a
deletion whenever lcs[i][j-1] >= lcs[i-1][j], so the output is stable for
a given pair of inputs.

Hunks carry up to CONTEXT_LINES lines of leading and trailing context.
Changes separated by at most 2 * CONTEXT_LINES equal lines share a hunk.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

CONTEXT_LINES = 3


class OpType(str, Enum):
    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


_PREFIX = {
    OpType.EQUAL: " ",
    OpType.INSERT: "+",
    OpType.DELETE: "-",
}


@dataclass
class DiffOp:
    """One line of the edit script.

    old_index/new_index count the old/new lines consumed before this op.
    """
    op: OpType
    line: str
    old_index: int
    new_index: int

    def render(self) -> str:
        return _PREFIX[self.op] + self.line


@dataclass
class Hunk:
    """Contiguous block of a diff. Line numbers are 1-based."""
    old_start: int
    old_count: int = 0
    new_start: int = 0
    new_count: int = 0
    lines: List[str] = field(default_factory=list)

    @property
    def header(self) -> str:
        return f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"

    def add(self, op: DiffOp) -> None:
        self.lines.append(op.render())
        if op.op != OpType.INSERT:
            self.old_count += 1
        if op.op != OpType.DELETE:
            self.new_count += 1

    def to_dict(self) -> dict:
        return {
            "old_start": self.old_start,
            "old_count": self.old_count,
            "new_start": self.new_start,
            "new_count": self.new_count,
            "lines": list(self.lines),
        }


def split_lines(content: str) -> List[str]:
    """Split on newline only. A trailing newline yields a trailing empty line."""
    return content.split("\n")


def edit_script(lines1: List[str], lines2: List[str]) -> List[DiffOp]:
    """Compute the per-line edit script turning lines1 into lines2."""
    m, n = len(lines1), len(lines2)

    # Build LCS table
    lcs = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if lines1[i - 1] == lines2[j - 1]:
                lcs[i][j] = lcs[i - 1][j - 1] + 1
            else:
                lcs[i][j] = max(lcs[i - 1][j], lcs[i][j - 1])

    # Backtrack from (m, n); ops come out in reverse
    reversed_ops = []
    i, j = m, n
    while i > 0 or j > 0:
        if i > 0 and j > 0 and lines1[i - 1] == lines2[j - 1]:
            reversed_ops.append((OpType.EQUAL, lines1[i - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or lcs[i][j - 1] >= lcs[i - 1][j]):
            reversed_ops.append((OpType.INSERT, lines2[j - 1]))
            j -= 1
        else:
            reversed_ops.append((OpType.DELETE, lines1[i - 1]))
            i -= 1

    ops = []
    old_index = new_index = 0
    for op, line in reversed(reversed_ops):
        ops.append(DiffOp(op, line, old_index, new_index))
        if op != OpType.INSERT:
            old_index += 1
        if op != OpType.DELETE:
            new_index += 1
    return ops


def group_hunks(ops: List[DiffOp], context_lines: int = CONTEXT_LINES) -> List[Hunk]:
    """Group an edit script into hunks with surrounding context."""
    hunks = []
    current: Optional[Hunk] = None

    for idx, op in enumerate(ops):
        if op.op != OpType.EQUAL:
            if current is None:
                # Leading context: the equal run right before this change
                start = idx
                while start > 0 and idx - start < context_lines and ops[start - 1].op == OpType.EQUAL:
                    start -= 1
                first = ops[start]
                current = Hunk(old_start=first.old_index + 1, new_start=first.new_index + 1)
                for context in ops[start:idx]:
                    current.add(context)
            current.add(op)
            continue

        if current is None:
            continue

        current.add(op)

        next_change = None
        for k in range(idx + 1, min(len(ops), idx + 2 * context_lines + 1)):
            if ops[k].op != OpType.EQUAL:
                next_change = k
                break
        if next_change is not None:
            continue

        # No change within reach: take the rest of the trailing context and close
        added = 1
        k = idx + 1
        while k < len(ops) and added < context_lines and ops[k].op == OpType.EQUAL:
            current.add(ops[k])
            added += 1
            k += 1
        hunks.append(current)
        current = None

    if current is not None:
        hunks.append(current)

    return hunks


def compute_diff(lines1: List[str], lines2: List[str]) -> List[Hunk]:
    """Diff two line sequences into hunks. Equal sequences yield no hunks."""
    if lines1 == lines2:
        return []
    return group_hunks(edit_script(lines1, lines2))


def diff_contents(content1: str, content2: str) -> List[Hunk]:
    """Diff two content strings. Identical contents yield no hunks."""
    if content1 == content2:
        return []
    return compute_diff(split_lines(content1), split_lines(content2))


def render_unified(label1: str, label2: str, hunks: List[Hunk]) -> str:
    """Plain-text unified rendering. Callers print "No differences." for no hunks."""
    out = [f"--- {label1}", f"+++ {label2}"]
    for hunk in hunks:
        out.append(hunk.header)
        out.extend(hunk.lines)
    return "\n".join(out)
