# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Program compilation ("note scripts").

Programs never register anything back into the context, so units are
independent of each other. All units are assembled before any artifact is
written: one failing unit leaves no sibling output behind.
"""

from __future__ import annotations

from pathlib import Path

from lendasm.assembly.artifacts import PROGRAM_EXTENSION, Program
from lendasm.assembly.assembler import AssemblerContext, assemble_program
from lendasm.assembly.ast import EXECUTABLE
from lendasm.assembly.diagnostics import AssemblyError
from lendasm.assembly.parser import parse_module
from lendasm.errors import ASSEMBLY_FAILED, IO_FAILURE, BuildError

from .sources import SourceUnit, collect_units, prepare_output_dir


def compile_note_script(context: AssemblerContext, unit: SourceUnit) -> Program:
	try:
		module = parse_module(unit.text, path=unit.module_name, kind=EXECUTABLE, source_file=str(unit.path))
		return assemble_program(context, module)
	except AssemblyError as err:
		raise BuildError(
			reason_code=ASSEMBLY_FAILED,
			message=f"failed to assemble note script '{unit.module_name}'",
			source_path=str(unit.path),
			diagnostics=list(err.diagnostics),
		) from err


def compile_note_scripts(source_dir: Path, target_dir: Path, context: AssemblerContext) -> list[Path]:
	"""Compile every program unit in `source_dir` into `<target_dir>/<name>.masb`."""
	prepare_output_dir(target_dir, PROGRAM_EXTENSION)
	programs = [(unit.module_name, compile_note_script(context, unit)) for unit in collect_units(source_dir)]

	written: list[Path] = []
	for name, program in programs:
		artifact_path = target_dir / f"{name}.{PROGRAM_EXTENSION}"
		try:
			program.write_to_file(artifact_path)
		except OSError as err:
			raise BuildError(reason_code=IO_FAILURE, message=f"failed to write program: {err}", source_path=str(artifact_path), operation="write") from err
		written.append(artifact_path)
	return written


__all__ = ["compile_note_script", "compile_note_scripts"]
