# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Build-time compilation of the ASM tree into library/program artifacts and
the generated error registry.
"""

from .contracts import compile_contracts, compile_library_unit, order_library_modules
from .error_registry import collect_error_registry, extract_errors, generate_error_constants, merge_errors, render_error_file
from .note_scripts import compile_note_script, compile_note_scripts
from .pipeline import BuildReport, run_build, run_error_generation
from .sources import SourceUnit, copy_directory, get_masm_files

__all__ = [
	"BuildReport",
	"SourceUnit",
	"collect_error_registry",
	"compile_contracts",
	"compile_library_unit",
	"compile_note_script",
	"compile_note_scripts",
	"copy_directory",
	"extract_errors",
	"generate_error_constants",
	"get_masm_files",
	"merge_errors",
	"order_library_modules",
	"render_error_file",
	"run_build",
	"run_error_generation",
]
