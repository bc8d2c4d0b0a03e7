# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Small ASM sources shared by the test suite."""

ORACLE_SRC = """
use.miden::account

const.ERR_PRICE_NOT_SET="price not set for asset"

proc.slot_for
	push.0 add
end

export.get_price
	exec.slot_for
	exec.account::get_item
	drop drop drop
	dup neq.0 assert.err=ERR_PRICE_NOT_SET
end
"""

# Lexically before `price_oracle`, but imports it.
POOL_SRC = """
use.lending::price_oracle
use.miden::account

const.ERR_ZERO_AMOUNT="amount must be greater than zero"

export.deposit.1
	loc_store.0
	loc_load.0 neq.0 assert.err=ERR_ZERO_AMOUNT
	push.1 exec.price_oracle::get_price
	drop
end
"""

DEPOSIT_NOTE_SRC = """
use.lending::pool

begin
	push.1.2
	call.pool::deposit
end
"""
