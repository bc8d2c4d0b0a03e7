# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source collection: copy the ASM tree into the build workspace and enumerate
source units.

Compilation always reads from the copy so the original tree is never touched.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from lendasm.assembly.diagnostics import Diagnostic, Span
from lendasm.errors import ASSEMBLY_FAILED, IO_FAILURE, BuildError

ASM_EXTENSION = "masm"


@dataclass(frozen=True)
class SourceUnit:
	"""One ASM source file; `module_name` is the file stem."""

	path: Path
	module_name: str
	text: str

	@classmethod
	def read(cls, path: Path) -> "SourceUnit":
		try:
			text = path.read_text(encoding="utf-8")
		except (OSError, UnicodeDecodeError) as err:
			raise BuildError(reason_code=IO_FAILURE, message=f"failed to read source: {err}", source_path=str(path), operation="read") from err
		return cls(path=path, module_name=path.stem, text=text)


def copy_directory(src: Path, dst: Path) -> Path:
	"""
	Recursively copy `src` into `dst`, preserving relative structure.

	The copy is a full one: an existing `dst` is removed first so files that
	disappeared from `src` do not survive in the workspace. Returns `dst`.
	`src` and `dst` must be disjoint trees.
	"""
	if not src.is_dir():
		raise BuildError(reason_code=IO_FAILURE, message="source directory does not exist", source_path=str(src), operation="copy")
	src_real = src.resolve()
	dst_real = dst.resolve()
	if dst_real == src_real or src_real in dst_real.parents or dst_real in src_real.parents:
		raise BuildError(
			reason_code=IO_FAILURE,
			message=f"copy destination {dst} overlaps the source tree",
			source_path=str(src),
			operation="copy",
		)
	try:
		if dst.exists():
			shutil.rmtree(dst)
		dst.mkdir(parents=True)
		todo: list[Path] = [src]
		while todo:
			goal = todo.pop()
			for entry in sorted(goal.iterdir()):
				rel = entry.relative_to(src)
				if entry.is_dir():
					(dst / rel).mkdir(parents=True, exist_ok=True)
					todo.append(entry)
				else:
					shutil.copyfile(entry, dst / rel)
	except OSError as err:
		raise BuildError(
			reason_code=IO_FAILURE,
			message=f"failed to copy source tree: {err}",
			source_path=str(getattr(err, "filename", None) or src),
			operation="copy",
		) from err
	return dst


def is_masm_file(path: Path) -> bool:
	"""True for regular files with the ASM extension (case-insensitive)."""
	return path.is_file() and path.suffix[1:].lower() == ASM_EXTENSION


def get_masm_files(dir_path: Path) -> list[Path]:
	"""
	ASM files directly inside `dir_path`, in lexical order.

	Lexical order keeps builds reproducible across filesystems.
	"""
	if not dir_path.is_dir():
		return []
	try:
		return sorted(p for p in dir_path.iterdir() if is_masm_file(p))
	except OSError as err:
		raise BuildError(reason_code=IO_FAILURE, message=f"failed to list directory: {err}", source_path=str(dir_path), operation="list") from err


def walk_masm_files(root: Path) -> list[Path]:
	"""All ASM files below `root` (recursive), in lexical order of their paths."""
	if not root.is_dir():
		return []
	try:
		return sorted(p for p in root.rglob("*") if is_masm_file(p))
	except OSError as err:
		raise BuildError(reason_code=IO_FAILURE, message=f"failed to walk directory: {err}", source_path=str(root), operation="list") from err


def collect_units(dir_path: Path) -> list[SourceUnit]:
	units = [SourceUnit.read(p) for p in get_masm_files(dir_path)]
	check_unique_module_names(units)
	return units


def check_unique_module_names(units: Iterable[SourceUnit]) -> None:
	"""Two files mapping to one module name (e.g. `a.masm` and `a.MASM`) fail the stage."""
	seen: dict[str, SourceUnit] = {}
	diagnostics: list[Diagnostic] = []
	for unit in units:
		first = seen.setdefault(unit.module_name, unit)
		if first is not unit:
			diagnostics.append(
				Diagnostic(
					message=f"module '{unit.module_name}' is defined by both {first.path.name} and {unit.path.name}",
					code="duplicate-module",
					phase="collect",
					span=Span(file=str(unit.path)),
				)
			)
	if diagnostics:
		raise BuildError(
			reason_code=ASSEMBLY_FAILED,
			message="duplicate module names in source directory",
			source_path=diagnostics[0].span.file,
			diagnostics=diagnostics,
		)


def prepare_output_dir(target_dir: Path, extension: str) -> None:
	"""Create `target_dir` and drop `*.<extension>` artifacts left by earlier builds."""
	try:
		target_dir.mkdir(parents=True, exist_ok=True)
		for stale in sorted(target_dir.glob(f"*.{extension}")):
			stale.unlink()
	except OSError as err:
		raise BuildError(reason_code=IO_FAILURE, message=f"failed to prepare output directory: {err}", source_path=str(target_dir), operation="mkdir") from err


__all__ = [
	"ASM_EXTENSION",
	"SourceUnit",
	"copy_directory",
	"is_masm_file",
	"get_masm_files",
	"walk_masm_files",
	"collect_units",
	"check_unique_module_names",
	"prepare_output_dir",
]
