"""Sinks the decoder reports parsing events to.

Nothing here affects the decoded output: the parser calls into whichever sink
it is given, and the default one throws everything away."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import List


class Diagnostics:
    """Base sink - ignores every event."""

    def record(self, tag: int) -> None:
        pass

    def action(self, opcode: int) -> None:
        pass

    def unknown_opcode(self, opcode: int, offset: int, skipped: int) -> None:
        pass

    def slice_mismatch(self, offset: int, consumed: int, expected: int) -> None:
        pass

    def block_stopped(self, index: int, reason: str) -> None:
        pass


NullDiagnostics = Diagnostics


@dataclass()
class CountingDiagnostics(Diagnostics):
    """Keeps occurrence counts of record tags and action opcodes."""

    records: Counter = field(default_factory=Counter)
    actions: Counter = field(default_factory=Counter)
    warnings: List[str] = field(default_factory=list)

    def record(self, tag: int) -> None:
        self.records[tag] += 1

    def action(self, opcode: int) -> None:
        self.actions[opcode] += 1

    def unknown_opcode(self, opcode: int, offset: int, skipped: int) -> None:
        self.warnings.append(
            f"unknown opcode {opcode:#04x} at {offset:#x}, skipped {skipped} bytes"
        )

    def slice_mismatch(self, offset: int, consumed: int, expected: int) -> None:
        self.warnings.append(
            f"time slice at {offset:#x} consumed {consumed}/{expected} bytes"
        )

    def block_stopped(self, index: int, reason: str) -> None:
        self.warnings.append(f"stopped reading at block {index}: {reason}")
