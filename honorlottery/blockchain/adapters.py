"""Token and entropy collaborators backed by :class:`ChainClient`."""

from __future__ import annotations

import logging
import os
from typing import Optional

from .api import ChainClient

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_SYMBOL = "ALD"


class ChainTokenLedger:
    """:class:`~honorlottery.lottery.TokenLedger` over the token service.

    Transfers are issued from the custody wallet the client is logged into.
    """

    def __init__(self, client: ChainClient, token: Optional[str] = None) -> None:
        self.client = client
        self.token = token or os.getenv("LOTTERY_TOKEN_SYMBOL", DEFAULT_TOKEN_SYMBOL)

    def balance_of(self, subject: str) -> int:
        response = self.client.token_balance(subject, self.token)
        if not isinstance(response, dict) or "balance" not in response:
            raise RuntimeError(f"Unexpected token balance response: {response!r}")
        return int(response["balance"])

    def transfer(self, to: str, amount: int) -> None:
        response = self.client.transfer_token(self.token, to, amount)
        status = response.get("status") if isinstance(response, dict) else None
        if status != "success":
            message = response.get("message") if isinstance(response, dict) else None
            raise RuntimeError(
                "Token transfer failed" + (f": {message}" if message else ".")
            )
        logger.debug("Transferred %s %s to %s", amount, self.token, to)


class ChainBlockEntropy:
    """:class:`~honorlottery.lottery.EntropySource` using the latest block hash.

    Block hashes can be influenced by block producers; prefer a verifiable
    randomness source when prizes are valuable.
    """

    def __init__(self, client: ChainClient) -> None:
        self.client = client

    def current_seed(self) -> bytes:
        block = self.client.latest_block()
        block_hash = block.get("hash") if isinstance(block, dict) else None
        if not block_hash:
            raise RuntimeError(f"Unexpected latest block response: {block!r}")
        if block_hash.startswith("0x"):
            block_hash = block_hash[2:]
        return bytes.fromhex(block_hash)
