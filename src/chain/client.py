"""
Chain client adapter
Read-only RPC access plus the single operator account that signs every settlement
"""

import asyncio
from typing import Any, Optional, Sequence

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TimeExhausted
import structlog

from src.errors import ReceiptTimeoutError

logger = structlog.get_logger()


class ChainClient:
    """
    Wraps an RPC connection and one signing account.

    Reads run fully concurrently. Writes are serialized per process behind a
    lock that covers account-nonce lookup, signing and broadcast, so two
    concurrent settlements never race for the same account nonce. The lock is
    released before waiting for the receipt.

    RPC errors propagate unmodified; nothing here retries.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        chain_id: int,
        receipt_timeout: float = 120.0,
    ):
        self.account = Account.from_key(private_key)
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self.w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self._submit_lock = asyncio.Lock()

        logger.info("chain_client_initialized", signer=self.account.address, chain_id=chain_id)

    @property
    def address(self) -> str:
        return self.account.address

    def _contract(self, address: str, abi: list):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def read_contract(
        self,
        address: str,
        abi: list,
        function: str,
        args: Sequence[Any] = (),
    ) -> Any:
        """Call a view function"""
        fn = getattr(self._contract(address, abi).functions, function)
        return await fn(*args).call()

    async def write_contract(
        self,
        address: str,
        abi: list,
        function: str,
        args: Sequence[Any] = (),
    ) -> str:
        """
        Sign and broadcast a state-changing call from the operator account.

        Returns:
            Transaction hash as 0x-prefixed hex
        """
        fn = getattr(self._contract(address, abi).functions, function)(*args)

        async with self._submit_lock:
            nonce = await self.w3.eth.get_transaction_count(self.address, "pending")
            tx = await fn.build_transaction({
                "from": self.address,
                "nonce": nonce,
                "chainId": self.chain_id,
            })
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(
            "transaction_submitted",
            tx_hash=tx_hash_hex,
            contract=address,
            function=function,
            account_nonce=nonce,
        )
        return tx_hash_hex

    async def wait_for_receipt(self, tx_hash: str, timeout: Optional[float] = None) -> Any:
        """
        Block until the transaction is mined.

        Raises:
            ReceiptTimeoutError: not mined within the timeout; the transaction may still land
        """
        timeout = timeout or self.receipt_timeout
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        except TimeExhausted as e:
            logger.error("receipt_timeout", tx_hash=tx_hash, timeout=timeout)
            raise ReceiptTimeoutError(tx_hash, timeout) from e

        logger.info(
            "transaction_mined",
            tx_hash=tx_hash,
            status=receipt["status"],
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )
        return receipt
