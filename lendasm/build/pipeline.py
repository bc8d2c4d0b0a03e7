# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Build pipeline.

Stages run strictly in sequence and the first fatal error aborts the build:

	copy asm/ -> <out>/asm
	contracts/    -> <out>/assets/contracts/*.masl   (libraries, chained)
	note_scripts/ -> <out>/assets/note_scripts/*.masb (programs)
	contracts/    -> generated error registry

Missing inputs are not errors: the affected stages are skipped and a
warning is recorded in the report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lendasm.assembly.kernel import base_context
from lendasm.config import ASM_CONTRACTS_DIR, ASM_NOTE_SCRIPTS_DIR, BuildConfig

from .contracts import compile_contracts
from .error_registry import generate_error_constants
from .note_scripts import compile_note_scripts
from .sources import copy_directory
from .stamp import clear_stamp, load_stamp, save_stamp, source_fingerprint, stamp_outputs


@dataclass
class BuildReport:
	libraries: list[Path] = field(default_factory=list)
	programs: list[Path] = field(default_factory=list)
	errors_file: Path | None = None
	warnings: list[str] = field(default_factory=list)
	up_to_date: bool = False

	def to_dict(self) -> dict[str, Any]:
		return {
			"ok": True,
			"up_to_date": self.up_to_date,
			"libraries": [str(p) for p in self.libraries],
			"programs": [str(p) for p in self.programs],
			"errors_file": str(self.errors_file) if self.errors_file is not None else None,
			"warnings": list(self.warnings),
		}


def run_build(config: BuildConfig) -> BuildReport:
	"""Run every stage for `config`; raises `BuildError` on the first failure."""
	report = BuildReport()
	if not config.source_dir.is_dir():
		report.warnings.append(f"No {config.source_dir} directory found, skipping MASM compilation")
		return report

	fingerprint = source_fingerprint(config.source_dir, config.output_settings())
	if not config.force and _is_up_to_date(config, fingerprint):
		report.up_to_date = True
		return report
	clear_stamp(config.out_dir)

	source_dir = copy_directory(config.source_dir, config.workspace_asm_dir)
	contracts_dir = source_dir / ASM_CONTRACTS_DIR
	note_scripts_dir = source_dir / ASM_NOTE_SCRIPTS_DIR
	target_dir = config.assets_dir

	context = base_context()
	if contracts_dir.is_dir():
		context, report.libraries = compile_contracts(
			contracts_dir,
			target_dir / ASM_CONTRACTS_DIR,
			namespace=config.namespace,
			context=context,
		)
	else:
		report.warnings.append(f"No {ASM_CONTRACTS_DIR} directory found, skipping library compilation and error generation")

	if note_scripts_dir.is_dir():
		report.programs = compile_note_scripts(note_scripts_dir, target_dir / ASM_NOTE_SCRIPTS_DIR, context)
	else:
		report.warnings.append(f"No {ASM_NOTE_SCRIPTS_DIR} directory found, skipping note script compilation")

	if contracts_dir.is_dir():
		report.errors_file = generate_error_constants(contracts_dir, config.errors_output_path)

	outputs = report.libraries + report.programs
	if report.errors_file is not None:
		outputs.append(report.errors_file)
	save_stamp(config.out_dir, stamp_outputs(fingerprint, outputs))
	return report


def _is_up_to_date(config: BuildConfig, fingerprint: str) -> bool:
	stamp = load_stamp(config.out_dir)
	if stamp is None or stamp.fingerprint != fingerprint:
		return False
	return config.workspace_asm_dir.is_dir() and stamp.outputs_intact()


def run_error_generation(config: BuildConfig) -> Path | None:
	"""Regenerate only the error registry, straight from the source tree."""
	contracts_dir = config.source_dir / ASM_CONTRACTS_DIR
	if not contracts_dir.is_dir():
		return None
	return generate_error_constants(contracts_dir, config.errors_output_path)


__all__ = ["BuildReport", "run_build", "run_error_generation"]
