"""
Receipt event scan
Decodes the result-bearing event out of a mined transaction's logs
"""

from typing import Any, Dict, List, Optional

from web3 import Web3
from web3.exceptions import LogTopicError, MismatchedABI

# Offline instance, only the ABI codec is used
_codec_w3 = Web3()


def find_event(
    receipt: Dict[str, Any],
    abi: List[dict],
    event_name: str,
    contract_address: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Return the decoded arguments of the first `event_name` log in a receipt.

    Logs that do not decode against the event ABI are skipped. When
    contract_address is given, logs emitted by other contracts are ignored even
    if their signature matches.
    """
    event = getattr(_codec_w3.eth.contract(abi=abi).events, event_name)()
    for log in receipt.get("logs", []):
        if contract_address and str(log.get("address", "")).lower() != contract_address.lower():
            continue
        try:
            decoded = event.process_log(log)
        except (MismatchedABI, LogTopicError):
            continue
        return dict(decoded["args"])
    return None
