# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Error-constant registry generation.

Every `const.ERR_<NAME>="<MESSAGE>"` declaration found in the library source
tree becomes a `MasmError` constant in a generated Python module. One name
must always carry one message: a second declaration with the same message is
ignored, a different message fails the build before anything is written.

Declarations are matched at the start of a line only (after optional
indentation), so a commented-out `# const.ERR_...` is not picked up.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from lendasm.assembly.artifacts import write_bytes_atomic
from lendasm.errors import ERROR_CONFLICT, IO_FAILURE, BuildError

from .sources import SourceUnit, walk_masm_files

ERROR_CONST_RE = re.compile(
	r'^[ \t]*const\.ERR_(?P<name>\w+)[ \t]*=[ \t]*"(?P<message>[^"\n]*)"',
	re.MULTILINE,
)

GENERATED_HEADER = (
	"# This file is generated by the lendasm build pipeline, do not modify manually.\n"
	"# It extracts error constants from MASM files in the contracts directory.\n"
)


@dataclass(frozen=True)
class ErrorEntry:
	name: str
	message: str


def extract_errors(text: str) -> list[ErrorEntry]:
	"""All error declarations in `text`, in source order (names without `ERR_`)."""
	return [
		ErrorEntry(name=m.group("name").strip(), message=m.group("message").strip())
		for m in ERROR_CONST_RE.finditer(text)
	]


def merge_errors(registry: Mapping[str, str], entries: Iterable[ErrorEntry], *, source: str | None = None) -> dict[str, str]:
	"""
	Return `registry` extended with `entries`.

	Re-declaring a name with the same message is a no-op; with a different
	message it raises `BuildError(reason_code="error-conflict")`.
	"""
	merged = dict(registry)
	for entry in entries:
		existing = merged.get(entry.name)
		if existing is not None and existing != entry.message:
			raise BuildError(
				reason_code=ERROR_CONFLICT,
				message=(
					f"Error constant ERR_{entry.name} defined with different messages: "
					f"{json.dumps(existing, ensure_ascii=False)} vs {json.dumps(entry.message, ensure_ascii=False)}"
				),
				source_path=source,
				constant_name=f"ERR_{entry.name}",
			)
		merged[entry.name] = entry.message
	return merged


def collect_error_registry(source_dir: Path) -> dict[str, str]:
	"""Walk every ASM file below `source_dir` and build the name -> message map."""
	registry: dict[str, str] = {}
	for path in walk_masm_files(source_dir):
		unit = SourceUnit.read(path)
		registry = merge_errors(registry, extract_errors(unit.text), source=str(path))
	return registry


def render_error_file(errors: Mapping[str, str]) -> str:
	"""Render the generated module; entries are emitted in ascending name order."""
	lines: list[str] = [GENERATED_HEADER, "from lendasm.errors import MasmError", ""]
	for name in sorted(errors):
		message = errors[name]
		lines.append("")
		lines.append(f'# Error Message: "{message}"')
		lines.append(f"ERR_{name} = MasmError({json.dumps(message, ensure_ascii=False)})")
	return "\n".join(lines) + "\n"


def generate_error_constants(source_dir: Path, output_file: Path) -> Path:
	"""
	Generate the error registry for `source_dir` into `output_file`.

	The registry is fully collected (and checked for conflicts) before the
	output is written; the write itself is atomic.
	"""
	content = render_error_file(collect_error_registry(source_dir))
	try:
		write_bytes_atomic(output_file, content.encode("utf-8"))
	except OSError as err:
		raise BuildError(reason_code=IO_FAILURE, message=f"failed to write error registry: {err}", source_path=str(output_file), operation="write") from err
	return output_file


__all__ = [
	"ErrorEntry",
	"ERROR_CONST_RE",
	"extract_errors",
	"merge_errors",
	"collect_error_registry",
	"render_error_file",
	"generate_error_constants",
]
