# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source spans and diagnostics for the ASM front-end.

A parse or assembly pass collects `Diagnostic`s instead of raising on the
first problem; the caller turns a non-empty list into an `AssemblyError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class Span:
	"""Best-effort source location (file/line/column plus raw parser loc)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	raw: Any = None

	@classmethod
	def from_loc(cls, loc: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a parser location object.

		Lark tokens, tree metas and our own `Located` all expose `line` and
		`column`; anything else is kept in `raw`.
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			return loc
		return cls(
			file=file,
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			raw=loc,
		)

	def format(self) -> str:
		line = "?" if self.line is None else str(self.line)
		col = "?" if self.column is None else str(self.column)
		return f"{self.file or '<source>'}:{line}:{col}"


@dataclass
class Diagnostic:
	"""Represents an assembler diagnostic (error/warning)."""

	message: str
	code: str | None = None
	# "parse" or "assemble"; surfaces in JSON output.
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def format_human(self) -> str:
		return f"{self.span.format()}: {self.severity}: {self.message}"

	def to_dict(self) -> dict[str, Any]:
		return {
			"message": self.message,
			"code": self.code,
			"phase": self.phase,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


class AssemblyError(Exception):
	"""Raised when parsing or assembling a module produced error diagnostics."""

	def __init__(self, diagnostics: Iterable[Diagnostic]) -> None:
		self.diagnostics = list(diagnostics)
		super().__init__("\n".join(d.format_human() for d in self.diagnostics))


def raise_on_errors(diagnostics: list[Diagnostic]) -> None:
	if any(d.severity == "error" for d in diagnostics):
		raise AssemblyError(diagnostics)


__all__ = ["Span", "Diagnostic", "AssemblyError", "raise_on_errors"]
