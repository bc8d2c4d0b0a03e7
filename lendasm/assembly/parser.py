# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
ASM front-end: lark grammar + tree builder.

`parse_module` returns a `Module` AST or raises `AssemblyError` carrying
parser-phase diagnostics. Structural rules that depend on the module kind
(e.g. libraries may not have a `begin` block) are left to the assembler.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from .ast import (
	EXECUTABLE,
	LIBRARY,
	ConstDecl,
	EntryBlock,
	IfBlock,
	Instr,
	Located,
	Module,
	Op,
	ProcDef,
	RepeatBlock,
	UseDecl,
	WhileBlock,
)
from .diagnostics import AssemblyError, Diagnostic, Span, raise_on_errors

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text(encoding="utf-8")

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)

IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DeclError(ValueError):
	"""
	User-facing error for a malformed declaration head (`use.`, `const.`,
	`export.`/`proc.`, `repeat.`).

	Raised by the tree builder and converted into a parser diagnostic.
	"""

	def __init__(self, message: str, *, loc: Located | None) -> None:
		super().__init__(message)
		self.loc = loc


def is_valid_module_path(path: str) -> bool:
	"""A module path is one or more identifiers joined by `::`."""
	parts = path.split("::")
	return bool(parts) and all(IDENT_RE.match(p) for p in parts)


def parse_module(source: str, *, path: str, kind: str = LIBRARY, source_file: Optional[str] = None) -> Module:
	"""
	Parse ASM `source` into a `Module` named `path`.

	`kind` is `LIBRARY` or `EXECUTABLE`; `source_file` only feeds diagnostics.
	"""
	if kind not in (LIBRARY, EXECUTABLE):
		raise ValueError(f"unknown module kind '{kind}'")
	if not is_valid_module_path(path):
		raise AssemblyError(
			[Diagnostic(message=f"invalid module path '{path}'", phase="parse", span=Span(file=source_file))]
		)
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as err:
		span = Span(
			file=source_file,
			line=getattr(err, "line", None),
			column=getattr(err, "column", None),
			raw=err,
		)
		raise AssemblyError([Diagnostic(message=str(err).strip(), phase="parse", span=span)]) from err

	module = Module(path=path, kind=kind, source_file=source_file)
	diagnostics: list[Diagnostic] = []
	for item in tree.children:
		try:
			_build_item(module, item)
		except DeclError as err:
			diagnostics.append(
				Diagnostic(message=str(err), phase="parse", span=Span.from_loc(err.loc, file=source_file))
			)
	raise_on_errors(diagnostics)
	return module


def _build_item(module: Module, item: Tree) -> None:
	kind = _name(item)
	if kind == "use_decl":
		module.uses.append(_build_use_decl(item.children[0]))
	elif kind == "const_decl":
		module.consts.append(_build_const_decl(item.children[0]))
	elif kind == "proc_def":
		module.procs.append(_build_proc_def(item))
	elif kind == "entry_block":
		module.entries.append(EntryBlock(body=_build_body(item.children[0]), loc=_loc(item)))
	else:
		raise AssertionError(f"unexpected top-level node '{kind}'")


def _build_use_decl(tok: Token) -> UseDecl:
	loc = _loc_from_token(tok)
	target = tok.value[len("use.") :]
	alias: str | None = None
	if "->" in target:
		target, alias = target.split("->", 1)
	if not is_valid_module_path(target):
		raise DeclError(f"invalid module path '{target}' in use declaration", loc=loc)
	if alias is None:
		alias = target.rsplit("::", 1)[-1]
	elif not IDENT_RE.match(alias):
		raise DeclError(f"invalid import alias '{alias}'", loc=loc)
	return UseDecl(path=target, alias=alias, loc=loc)


def _build_const_decl(tok: Token) -> ConstDecl:
	loc = _loc_from_token(tok)
	name, value = tok.value[len("const.") :].split("=", 1)
	name = name.strip()
	value = value.strip()
	if value.startswith('"'):
		return ConstDecl(name=name, value=value[1:-1], loc=loc, quoted=True)
	return ConstDecl(name=name, value=value, loc=loc)


def _build_proc_def(tree: Tree) -> ProcDef:
	head: Token = tree.children[0]
	loc = _loc_from_token(head)
	keyword, rest = head.value.split(".", 1)
	parts = rest.split(".")
	name = parts[0]
	if not IDENT_RE.match(name):
		raise DeclError(f"invalid procedure name '{name}'", loc=loc)
	num_locals = 0
	if len(parts) == 2 and parts[1].isdigit():
		num_locals = int(parts[1])
	elif len(parts) > 1:
		raise DeclError(f"invalid procedure header '{head.value}'", loc=loc)
	return ProcDef(
		name=name,
		exported=keyword == "export",
		num_locals=num_locals,
		body=_build_body(tree.children[1]),
		loc=loc,
	)


def _build_body(tree: Tree) -> List[Op]:
	return [_build_op(child) for child in tree.children]


def _build_op(node: Tree) -> Op:
	kind = _name(node)
	if kind == "instr":
		tok: Token = node.children[0]
		op, sep, arg = tok.value.partition(".")
		return Instr(op=op, arg=arg if sep else None, loc=_loc_from_token(tok))
	if kind == "if_block":
		cond_tok: Token = node.children[0]
		then_body = _build_body(node.children[1])
		else_body = _build_body(node.children[2]) if len(node.children) > 2 else []
		return IfBlock(cond=cond_tok.type == "IF_TRUE", then_body=then_body, else_body=else_body, loc=_loc_from_token(cond_tok))
	if kind == "while_block":
		return WhileBlock(body=_build_body(node.children[0]), loc=_loc(node))
	if kind == "repeat_block":
		head: Token = node.children[0]
		count = int(head.value[len("repeat.") :])
		if count < 1:
			raise DeclError("repeat count must be at least 1", loc=_loc_from_token(head))
		return RepeatBlock(count=count, body=_build_body(node.children[1]), loc=_loc_from_token(head))
	raise AssertionError(f"unexpected body node '{kind}'")


def _loc(tree: Tree) -> Located:
	meta = tree.meta
	return Located(line=getattr(meta, "line", 0), column=getattr(meta, "column", 0))


def _loc_from_token(token: Token) -> Located:
	return Located(line=token.line, column=token.column)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return str(data)
	return node.type


__all__ = ["parse_module", "is_valid_module_path", "DeclError", "IDENT_RE"]
