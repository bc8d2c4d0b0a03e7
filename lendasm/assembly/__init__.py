# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
ASM assembler: parser, assembler context and binary artifacts.
"""

from .artifacts import LIBRARY_EXTENSION, PROGRAM_EXTENSION, Library, Procedure, Program, read_artifact
from .assembler import AssemblerContext, assemble_library, assemble_program
from .ast import EXECUTABLE, LIBRARY, Module
from .diagnostics import AssemblyError, Diagnostic, Span
from .kernel import base_context
from .parser import parse_module

__all__ = [
	"LIBRARY",
	"EXECUTABLE",
	"LIBRARY_EXTENSION",
	"PROGRAM_EXTENSION",
	"AssemblerContext",
	"AssemblyError",
	"Diagnostic",
	"Library",
	"Module",
	"Procedure",
	"Program",
	"Span",
	"assemble_library",
	"assemble_program",
	"base_context",
	"parse_module",
	"read_artifact",
]
