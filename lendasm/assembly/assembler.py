# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Assembler: turns a parsed `Module` into a `Library` or `Program`.

Resolution happens against an `AssemblerContext`, an immutable value holding
the libraries registered so far. Registering a library yields a new context;
a module can only import libraries that were registered before it was
assembled, which makes compile order observable:

	ctx = base_context()
	oracle = assemble_library(ctx, oracle_module)
	ctx = ctx.with_library(oracle)
	pool = assemble_library(ctx, pool_module)  # may `use.lending::oracle`

All problems found while assembling one module are collected and raised
together as an `AssemblyError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from .artifacts import Library, Procedure, Program, procedure_digest
from .ast import EXECUTABLE, LIBRARY, IfBlock, Instr, Located, Module, Op, RepeatBlock, WhileBlock
from .diagnostics import AssemblyError, Diagnostic, Span, raise_on_errors
from .instructions import ERR_IMMEDIATE_OPS, INVOCATION_OPS, LOCAL_OPS, is_known_instruction
from .parser import IDENT_RE


@dataclass(frozen=True)
class AssemblerContext:
	"""
	Compilation environment: the ordered, append-only set of libraries a
	module may import.
	"""

	libraries: tuple[Library, ...] = ()

	@property
	def library_paths(self) -> tuple[str, ...]:
		return tuple(lib.path for lib in self.libraries)

	def find_library(self, path: str) -> Library | None:
		for lib in self.libraries:
			if lib.path == path:
				return lib
		return None

	def with_library(self, library: Library) -> "AssemblerContext":
		"""Return a new context with `library` appended; `self` is unchanged."""
		if self.find_library(library.path) is not None:
			raise AssemblyError(
				[Diagnostic(message=f"library '{library.path}' is already registered", code="duplicate-library", phase="assemble")]
			)
		return AssemblerContext(libraries=self.libraries + (library,))

	def with_libraries(self, libraries: Iterable[Library]) -> "AssemblerContext":
		ctx = self
		for lib in libraries:
			ctx = ctx.with_library(lib)
		return ctx


def assemble_library(context: AssemblerContext, module: Module) -> Library:
	"""Assemble a library-kind module against `context`."""
	if module.kind != LIBRARY:
		raise ValueError(f"module '{module.path}' is not a library module")
	asm = _ModuleAssembler(context, module)
	asm.resolve_header()
	for entry in module.entries:
		asm.error("library modules cannot contain a `begin` block", entry.loc, code="unexpected-entry")
	procedures = asm.compile_procs()
	if not any(p.exported for p in procedures):
		asm.error(f"library '{module.path}' does not export any procedures", None, code="no-exports")
	raise_on_errors(asm.diagnostics)
	return Library(path=module.path, procedures=tuple(procedures), dependencies=asm.dependencies())


def assemble_program(context: AssemblerContext, module: Module) -> Program:
	"""Assemble an executable module (exactly one `begin` block) against `context`."""
	if module.kind != EXECUTABLE:
		raise ValueError(f"module '{module.path}' is not an executable module")
	asm = _ModuleAssembler(context, module)
	asm.resolve_header()
	for proc in module.exports:
		asm.error(f"executable modules cannot export procedures ('{proc.name}')", proc.loc, code="unexpected-export")
	procedures = asm.compile_procs()
	body: list[dict[str, Any]] = []
	if not module.entries:
		asm.error("executable module has no `begin` block", None, code="missing-entry")
	else:
		for extra in module.entries[1:]:
			asm.error("executable module has more than one `begin` block", extra.loc, code="duplicate-entry")
		body = asm.compile_body(module.entries[0].body, num_locals=0)
	raise_on_errors(asm.diagnostics)
	return Program(name=module.name, body=body, procedures=tuple(procedures), libraries=asm.dependencies())


class _ModuleAssembler:
	def __init__(self, context: AssemblerContext, module: Module) -> None:
		self.context = context
		self.module = module
		self.diagnostics: list[Diagnostic] = []
		self.imports: dict[str, Library] = {}
		self.consts: dict[str, str] = {}
		self.procs: dict[str, Procedure] = {}
		self._declared_procs = {p.name for p in module.procs}

	def error(self, message: str, loc: Located | None, *, code: str | None = None) -> None:
		self.diagnostics.append(
			Diagnostic(message=message, code=code, phase="assemble", span=Span.from_loc(loc, file=self.module.source_file))
		)

	def dependencies(self) -> tuple[str, ...]:
		return tuple(sorted(lib.path for lib in self.imports.values()))

	def resolve_header(self) -> None:
		for use in self.module.uses:
			if use.alias in self.imports:
				self.error(f"duplicate import alias '{use.alias}'", use.loc, code="duplicate-import")
				continue
			lib = self.context.find_library(use.path)
			if lib is None:
				self.error(f"undefined module '{use.path}'", use.loc, code="unresolved-module")
				continue
			self.imports[use.alias] = lib
		for const in self.module.consts:
			if const.name in self.consts:
				self.error(f"duplicate constant '{const.name}'", const.loc, code="duplicate-constant")
				continue
			self.consts[const.name] = const.value

	def compile_procs(self) -> list[Procedure]:
		out: list[Procedure] = []
		for proc in self.module.procs:
			if proc.name in self.procs:
				self.error(f"duplicate procedure '{proc.name}'", proc.loc, code="duplicate-procedure")
				continue
			body = self.compile_body(proc.body, num_locals=proc.num_locals)
			compiled = Procedure(
				name=proc.name,
				exported=proc.exported,
				num_locals=proc.num_locals,
				digest=procedure_digest(proc.num_locals, body),
				body=body,
			)
			self.procs[proc.name] = compiled
			out.append(compiled)
		return out

	def compile_body(self, ops: list[Op], *, num_locals: int) -> list[dict[str, Any]]:
		nodes: list[dict[str, Any]] = []
		for op in ops:
			if isinstance(op, Instr):
				node = self._compile_instr(op, num_locals)
				if node is not None:
					nodes.append(node)
			elif isinstance(op, IfBlock):
				nodes.append(
					{
						"op": "if",
						"cond": op.cond,
						"then": self.compile_body(op.then_body, num_locals=num_locals),
						"else": self.compile_body(op.else_body, num_locals=num_locals),
					}
				)
			elif isinstance(op, WhileBlock):
				nodes.append({"op": "while", "body": self.compile_body(op.body, num_locals=num_locals)})
			elif isinstance(op, RepeatBlock):
				nodes.append({"op": "repeat", "count": op.count, "body": self.compile_body(op.body, num_locals=num_locals)})
			else:
				raise AssertionError(f"unexpected op {op!r}")
		return nodes

	def _compile_instr(self, instr: Instr, num_locals: int) -> dict[str, Any] | None:
		if not is_known_instruction(instr.op):
			self.error(f"unknown instruction '{instr.op}'", instr.loc, code="unknown-instruction")
			return None
		if instr.op in INVOCATION_OPS:
			return self._compile_invocation(instr)
		if instr.op in LOCAL_OPS:
			return self._compile_local_access(instr, num_locals)
		if instr.op == "push":
			return self._compile_push(instr)
		if instr.op in ERR_IMMEDIATE_OPS and instr.arg is not None:
			return self._compile_assert(instr)
		node: dict[str, Any] = {"op": instr.op}
		if instr.arg is not None:
			node["imm"] = instr.arg
		return node

	def _compile_invocation(self, instr: Instr) -> dict[str, Any] | None:
		ref = instr.arg
		if not ref:
			self.error(f"'{instr.op}' requires a procedure reference", instr.loc, code="missing-immediate")
			return None
		if "::" in ref:
			alias, name = ref.rsplit("::", 1)
			lib = self.imports.get(alias)
			if lib is None:
				self.error(f"unresolved reference '{ref}': module '{alias}' is not imported", instr.loc, code="unresolved-reference")
				return None
			target = lib.get_export(name)
			if target is None:
				self.error(
					f"unresolved reference '{ref}': procedure '{name}' is not exported by '{lib.path}'",
					instr.loc,
					code="unresolved-reference",
				)
				return None
			return {"op": instr.op, "target": target.digest, "ref": f"{lib.path}::{name}"}
		local = self.procs.get(ref)
		if local is None:
			if ref in self._declared_procs:
				self.error(f"procedure '{ref}' is referenced before its definition", instr.loc, code="unresolved-reference")
			else:
				self.error(f"unresolved reference '{ref}': no such procedure", instr.loc, code="unresolved-reference")
			return None
		return {"op": instr.op, "target": local.digest, "ref": ref}

	def _compile_local_access(self, instr: Instr, num_locals: int) -> dict[str, Any] | None:
		if instr.arg is None or not instr.arg.isdigit():
			self.error(f"'{instr.op}' requires a local index", instr.loc, code="missing-immediate")
			return None
		index = int(instr.arg)
		if index >= num_locals:
			self.error(
				f"local index {index} out of range (procedure declares {num_locals} locals)",
				instr.loc,
				code="local-out-of-range",
			)
			return None
		return {"op": instr.op, "imm": str(index)}

	def _compile_push(self, instr: Instr) -> dict[str, Any] | None:
		if not instr.arg:
			self.error("'push' requires an immediate value", instr.loc, code="missing-immediate")
			return None
		values: list[str] = []
		for part in instr.arg.split("."):
			if IDENT_RE.match(part):
				value = self._const(part, instr.loc)
				if value is None:
					return None
				values.append(value)
			else:
				values.append(part)
		return {"op": "push", "imm": ".".join(values)}

	def _compile_assert(self, instr: Instr) -> dict[str, Any] | None:
		arg = instr.arg or ""
		if not arg.startswith("err="):
			self.error(f"invalid immediate '{arg}' for '{instr.op}'", instr.loc, code="invalid-immediate")
			return None
		ref = arg[len("err=") :]
		if ref.startswith('"') and ref.endswith('"') and len(ref) >= 2:
			message = ref[1:-1]
		else:
			message = self._const(ref, instr.loc)
			if message is None:
				return None
		return {"op": instr.op, "error": message}

	def _const(self, name: str, loc: Located) -> str | None:
		value = self.consts.get(name)
		if value is None:
			self.error(f"undefined constant '{name}'", loc, code="undefined-constant")
		return value


__all__ = ["AssemblerContext", "assemble_library", "assemble_program"]
