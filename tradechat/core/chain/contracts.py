"""Fixed contract ABIs and protocol constants for the supported deployment."""

from __future__ import annotations

from typing import Any, Dict, List

# V3 TickMath bounds
MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

POOL_FEES: Dict[str, int] = {
    "LOWEST": 100,   # 0.01%
    "LOW": 500,      # 0.05%
    "MEDIUM": 3000,  # 0.3%
    "HIGH": 10000,   # 1%
}

NATIVE_TRANSFER_GAS = 21_000
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _fn(
    name: str,
    inputs: List[Dict[str, Any]],
    outputs: List[Dict[str, Any]],
    mutability: str = "nonpayable",
) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs,
        "stateMutability": mutability,
    }


def _arg(name: str, type_: str, **extra: Any) -> Dict[str, Any]:
    return {"name": name, "type": type_, **extra}


ERC20_ABI: List[Dict[str, Any]] = [
    _fn("balanceOf", [_arg("account", "address")], [_arg("", "uint256")], "view"),
    _fn("decimals", [], [_arg("", "uint8")], "view"),
    _fn("symbol", [], [_arg("", "string")], "view"),
    _fn("allowance", [_arg("owner", "address"), _arg("spender", "address")], [_arg("", "uint256")], "view"),
    _fn("approve", [_arg("spender", "address"), _arg("amount", "uint256")], [_arg("", "bool")]),
    _fn("transfer", [_arg("to", "address"), _arg("amount", "uint256")], [_arg("", "bool")]),
]

WRAPPED_NATIVE_ABI: List[Dict[str, Any]] = ERC20_ABI + [
    _fn("deposit", [], [], "payable"),
    _fn("withdraw", [_arg("amount", "uint256")], []),
]

POOL_ABI: List[Dict[str, Any]] = [
    _fn("token0", [], [_arg("", "address")], "view"),
    _fn("token1", [], [_arg("", "address")], "view"),
    _fn("fee", [], [_arg("", "uint24")], "view"),
    _fn(
        "slot0",
        [],
        [
            _arg("sqrtPriceX96", "uint160"),
            _arg("tick", "int24"),
            _arg("observationIndex", "uint16"),
            _arg("observationCardinality", "uint16"),
            _arg("observationCardinalityNext", "uint16"),
            _arg("feeProtocol", "uint8"),
            _arg("unlocked", "bool"),
        ],
        "view",
    ),
    _fn(
        "swap",
        [
            _arg("recipient", "address"),
            _arg("zeroForOne", "bool"),
            _arg("amountSpecified", "int256"),
            _arg("sqrtPriceLimitX96", "uint160"),
            _arg("data", "bytes"),
        ],
        [_arg("amount0", "int256"), _arg("amount1", "int256")],
    ),
]

EXACT_INPUT_SINGLE_PARAMS = _arg(
    "params",
    "tuple",
    components=[
        _arg("tokenIn", "address"),
        _arg("tokenOut", "address"),
        _arg("fee", "uint24"),
        _arg("recipient", "address"),
        _arg("deadline", "uint256"),
        _arg("amountIn", "uint256"),
        _arg("amountOutMinimum", "uint256"),
        _arg("sqrtPriceLimitX96", "uint160"),
    ],
)

SWAP_ROUTER_ABI: List[Dict[str, Any]] = [
    _fn("exactInputSingle", [EXACT_INPUT_SINGLE_PARAMS], [_arg("amountOut", "uint256")], "payable"),
    _fn("multicall", [_arg("data", "bytes[]")], [_arg("results", "bytes[]")], "payable"),
    _fn("refundETH", [], [], "payable"),
    _fn("unwrapWETH9", [_arg("amountMinimum", "uint256"), _arg("recipient", "address")], [], "payable"),
]

FACTORY_ABI: List[Dict[str, Any]] = [
    _fn(
        "getPool",
        [_arg("tokenA", "address"), _arg("tokenB", "address"), _arg("fee", "uint24")],
        [_arg("pool", "address")],
        "view",
    ),
]


__all__ = [
    "MIN_TICK",
    "MAX_TICK",
    "MIN_SQRT_RATIO",
    "MAX_SQRT_RATIO",
    "POOL_FEES",
    "NATIVE_TRANSFER_GAS",
    "ZERO_ADDRESS",
    "ERC20_ABI",
    "WRAPPED_NATIVE_ABI",
    "POOL_ABI",
    "SWAP_ROUTER_ABI",
    "FACTORY_ABI",
]
