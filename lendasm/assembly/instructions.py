# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Instruction mnemonic table.

The assembler only checks that a mnemonic exists and that its immediate is
well-formed where it has to resolve something (procedure references,
constants, local indices); it does not model stack effects.
"""

from __future__ import annotations

# Field arithmetic and comparisons.
_FIELD_OPS = {
	"add", "sub", "mul", "div", "neg", "inv", "pow2", "exp", "ilog2", "incr",
	"eq", "neq", "lt", "lte", "gt", "gte", "is_odd", "eqw",
	"and", "or", "xor", "not",
}

# Stack manipulation.
_STACK_OPS = {
	"push", "drop", "dropw", "dup", "dupw", "swap", "swapw", "swapdw",
	"movup", "movupw", "movdn", "movdnw", "padw", "pad", "nop",
	"cswap", "cswapw", "cdrop", "cdropw", "reversew",
}

# Assertions.
_ASSERT_OPS = {"assert", "assertz", "assert_eq", "assert_eqw", "u32assert", "u32assert2", "u32assertw"}

# Memory, locals and advice provider.
_MEMORY_OPS = {
	"mem_load", "mem_store", "mem_loadw", "mem_storew", "mem_stream",
	"adv_push", "adv_loadw", "adv_pipe", "adv",
}
LOCAL_OPS = {"loc_load", "loc_store", "loc_loadw", "loc_storew", "locaddr"}

# Cryptographic primitives and misc.
_CRYPTO_OPS = {"hash", "hmerge", "hperm", "mtree_get", "mtree_set", "mtree_merge", "mtree_verify"}
_MISC_OPS = {"clk", "sdepth", "caller", "emit", "trace", "debug", "dynexec", "dyncall"}

# Procedure invocations; the immediate names the callee.
INVOCATION_OPS = {"exec", "call", "procref"}

# Whole families accepted by prefix (u32 arithmetic has dozens of variants).
_PREFIX_FAMILIES = ("u32",)

KNOWN_OPS = frozenset(
	_FIELD_OPS | _STACK_OPS | _ASSERT_OPS | _MEMORY_OPS | LOCAL_OPS | _CRYPTO_OPS | _MISC_OPS | INVOCATION_OPS
)

# Ops whose `err=<NAME>` immediate refers to an error constant.
ERR_IMMEDIATE_OPS = _ASSERT_OPS


def is_known_instruction(op: str) -> bool:
	if op in KNOWN_OPS:
		return True
	return any(op.startswith(prefix) and len(op) > len(prefix) for prefix in _PREFIX_FAMILIES)


__all__ = ["KNOWN_OPS", "LOCAL_OPS", "INVOCATION_OPS", "ERR_IMMEDIATE_OPS", "is_known_instruction"]
