# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Sources generated by `lendasm build` from the ASM tree.

`lending_errors` is rewritten on every build; edit the `const.ERR_*`
declarations in asm/contracts instead.
"""

from .lending_errors import *  # noqa: F401,F403
