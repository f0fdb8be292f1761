"""
Shared fixtures for the batch settlement tests.
"""

import pytest

from batchsettle.protocol.models import (
    BatchRequest,
    BatchSettlement,
    CommittedVolume,
    CommittedVolumePair,
    RequestMetadata,
)

from factories import POOL_ID, TIMESTAMP, make_order


@pytest.fixture
def settlement():
    return BatchSettlement(
        pool_id=POOL_ID,
        batch_id="0x01",
        sqrt_price_x96=3549340286645546180296548319232,
        token0_flow=100_000_000_000_000_000,
        token1_flow=-100_000_000_000_000_000,
        deadline=TIMESTAMP + 300,
    )


@pytest.fixture
def volumes():
    return CommittedVolumePair(
        token0=CommittedVolume(ct_hash=0x1234 << 200, security_zone=0, utype=6, signature=b"\x11" * 65),
        token1=CommittedVolume(ct_hash=0x5678 << 200, security_zone=0, utype=6, signature=b"\x22" * 65),
    )


@pytest.fixture
def batch_request():
    return BatchRequest(
        pool_id=POOL_ID,
        batch_id="0x01",
        orders=(make_order(-100_000_000_000_000_000),),
        metadata=RequestMetadata(oracle_price=2000.0, timestamp=TIMESTAMP),
    )


@pytest.fixture
def batch_payload():
    return {
        "poolId": POOL_ID,
        "batchId": "0x01",
        "orders": [
            {
                "sender": "0x" + "22" * 20,
                "zeroForOne": True,
                "amountSpecified": "-100000000000000000",
                "tokenIn": "0x" + "33" * 20,
                "tokenOut": "0x" + "44" * 20,
            }
        ],
    }
