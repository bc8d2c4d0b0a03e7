# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from lendasm.assembly.diagnostics import Diagnostic

# Reason codes carried by BuildError.
ASSEMBLY_FAILED = "assembly-failed"
DEPENDENCY_CYCLE = "dependency-cycle"
ERROR_CONFLICT = "error-conflict"
IO_FAILURE = "io-failure"


@dataclass(frozen=True, eq=False)
class BuildError(Exception):
	"""
	A structured, serializable build failure.

	Every fatal pipeline error is one of these; the CLI turns it into a
	non-zero exit code.
	"""

	reason_code: str
	message: str
	source_path: str | None = None
	operation: str | None = None
	constant_name: str | None = None
	diagnostics: list[Diagnostic] = field(default_factory=list)

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"source_path": self.source_path,
			"operation": self.operation,
			"constant_name": self.constant_name,
			"diagnostics": [d.to_dict() for d in self.diagnostics],
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.operation:
			parts.append(f"operation={self.operation}")
		if self.source_path:
			parts.append(f"path={self.source_path}")
		if self.constant_name:
			parts.append(f"constant={self.constant_name}")
		text = " ".join(parts)
		if self.diagnostics:
			text += "\n" + "\n".join(d.format_human() for d in self.diagnostics)
		return text


@dataclass(frozen=True)
class MasmError:
	"""
	An error message declared in ASM source (`const.ERR_<NAME>="..."`).

	The generated registry binds one of these to each error name so host
	code can match on the exact message an assertion fails with.
	"""

	message: str

	def __str__(self) -> str:
		return self.message

	def matches(self, text: str) -> bool:
		return self.message in text


__all__ = ["BuildError", "MasmError", "ASSEMBLY_FAILED", "DEPENDENCY_CYCLE", "ERROR_CONFLICT", "IO_FAILURE"]
