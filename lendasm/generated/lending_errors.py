# This file is generated by the lendasm build pipeline, do not modify manually.
# It extracts error constants from MASM files in the contracts directory.

from lendasm.errors import MasmError


# Error Message: "health factor below liquidation threshold"
ERR_HEALTH_FACTOR_TOO_LOW = MasmError("health factor below liquidation threshold")

# Error Message: "insufficient liquidity in pool"
ERR_INSUFFICIENT_LIQUIDITY = MasmError("insufficient liquidity in pool")

# Error Message: "no collateral deposited"
ERR_NO_COLLATERAL = MasmError("no collateral deposited")

# Error Message: "price not set for asset"
ERR_PRICE_NOT_SET = MasmError("price not set for asset")

# Error Message: "asset is not supported by the oracle"
ERR_UNSUPPORTED_ASSET = MasmError("asset is not supported by the oracle")

# Error Message: "amount must be greater than zero"
ERR_ZERO_AMOUNT = MasmError("amount must be greater than zero")
