"""
Order aggregation.

Reduces a batch of exact-input swap orders to the pool's net two-token flow.
`amount_specified` is negative for exact input, so a zeroForOne order with
amount -a moves +a of token0 into the pool and -a of token1 out of it.
"""

from __future__ import annotations

from typing import Iterable

from batchsettle.protocol.models import NetFlow, SwapOrder


def aggregate_orders(orders: Iterable[SwapOrder]) -> NetFlow:
    token0 = 0
    token1 = 0
    for order in orders:
        amount = order.amount_specified
        if order.zero_for_one:
            token0 += -amount
            token1 += amount
        else:
            token0 += amount
            token1 += -amount
    return NetFlow(token0=token0, token1=token1)
