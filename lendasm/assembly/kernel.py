# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Base toolchain: the built-in libraries every build starts from.

These mirror the procedure surface of the transaction kernel and the
standard library that contracts import (`miden::account`, `miden::note`,
`miden::tx`, `std::sys`, `std::math::u64`). Bodies are stubs; only the
exported names and their digests matter for resolution.
"""

from __future__ import annotations

from functools import lru_cache

from .assembler import AssemblerContext, assemble_library
from .ast import LIBRARY
from .parser import parse_module

KERNEL_SOURCES: dict[str, str] = {
	"miden::account": """
export.get_id
	push.0
end

export.get_nonce
	push.0
end

export.incr_nonce
	drop
end

export.get_item
	drop padw
end

export.set_item
	dropw dropw drop padw padw
end

export.get_balance
	drop push.0
end

export.add_asset
	nop
end

export.remove_asset
	nop
end
""",
	"miden::note": """
export.get_inputs
	push.0 swap
end

export.get_assets
	push.0 swap
end

export.get_sender
	push.0
end
""",
	"miden::tx": """
export.create_note
	drop dropw drop drop push.0
end

export.add_asset_to_note
	swap drop
end

export.get_block_number
	push.0
end
""",
	"std::sys": """
export.truncate_stack
	nop
end
""",
	"std::math::u64": """
export.wrapping_add
	u32overflowing_add drop
end

export.wrapping_sub
	u32overflowing_sub drop
end

export.wrapping_mul
	u32overflowing_mul drop
end

export.lt
	u32lt
end

export.gt
	u32gt
end
""",
}


@lru_cache(maxsize=None)
def base_context() -> AssemblerContext:
	"""Assemble the bundled kernel libraries into the initial context."""
	ctx = AssemblerContext()
	for path in sorted(KERNEL_SOURCES):
		module = parse_module(KERNEL_SOURCES[path], path=path, kind=LIBRARY, source_file=f"<kernel:{path}>")
		ctx = ctx.with_library(assemble_library(ctx, module))
	return ctx


__all__ = ["KERNEL_SOURCES", "base_context"]
