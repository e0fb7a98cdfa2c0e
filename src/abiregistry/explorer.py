"""Block explorer (Etherscan V2) ABI fetching for abiregistry library."""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import requests

from .constants import ETHERSCAN_API_KEY_ENV, ETHERSCAN_CHAINS, ETHERSCAN_V2_BASE_URL
from .exceptions import ExplorerError

logger = logging.getLogger(__name__)


def get_chain_name(chain_id: int) -> str:
    """Get the explorer's name for a chain, or the chain id as a string."""
    return ETHERSCAN_CHAINS.get(chain_id, str(chain_id))


def _query(
    chain_id: int,
    params: Dict[str, str],
    api_key: Optional[str],
    session: Optional[requests.Session],
    timeout: float,
) -> Any:
    """Run one Etherscan V2 contract-module query and return its result field."""
    if chain_id not in ETHERSCAN_CHAINS:
        supported = ", ".join(str(c) for c in ETHERSCAN_CHAINS)
        raise ExplorerError(
            f"Unsupported chain ID: {chain_id}. Supported chains: {supported}\n"
            "See https://docs.etherscan.io/getting-started/supported-chains "
            "for all available chains."
        )

    query = {"chainid": str(chain_id), "module": "contract", **params}
    if api_key is None:
        api_key = os.environ.get(ETHERSCAN_API_KEY_ENV)
    if api_key:
        query["apikey"] = api_key

    http = session or requests
    try:
        response = http.get(ETHERSCAN_V2_BASE_URL, params=query, timeout=timeout)
    except requests.RequestException as e:
        raise ExplorerError(f"Network error during Etherscan request: {e}") from e

    if response.status_code != 200:
        raise ExplorerError(
            f"Etherscan API request failed: {response.status_code} {response.reason}"
        )

    try:
        data = response.json()
    except ValueError as e:
        raise ExplorerError("Etherscan returned a non-JSON response") from e

    if str(data.get("status")) != "1":
        message = data.get("message") or ""
        result = data.get("result")
        if "deprecated V1 endpoint" in message or (
            isinstance(result, str) and "deprecated V1 endpoint" in result
        ):
            raise ExplorerError(
                "Etherscan API V1 is deprecated. Please update to V2.\n"
                "See https://docs.etherscan.io/v2-migration for details."
            )
        raise ExplorerError(message or "Failed to fetch ABI from Etherscan")

    return data.get("result")


def fetch_abi_from_etherscan(
    chain_id: int,
    address: str,
    api_key: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: float = 30,
) -> List[Dict[str, Any]]:
    """
    Fetch a verified contract's ABI from Etherscan.

    Args:
        chain_id: Chain the contract is deployed on
        address: Contract address
        api_key: Etherscan API key (defaults to $ETHERSCAN_API_KEY; optional,
                 raises rate limits)
        session: requests session to reuse
        timeout: Request timeout in seconds

    Returns:
        ABI entries

    Raises:
        ExplorerError: If the chain is unsupported, the request fails or the
                       response carries no ABI
    """
    logger.info("Fetching ABI from Etherscan V2 (%s)...", get_chain_name(chain_id))
    result = _query(
        chain_id, {"action": "getabi", "address": address}, api_key, session, timeout
    )

    # The ABI normally arrives as a JSON-encoded string
    if isinstance(result, str):
        try:
            result = json.loads(result)
        except json.JSONDecodeError as e:
            raise ExplorerError(f"Invalid ABI JSON from Etherscan: {e}") from e

    if not isinstance(result, list):
        raise ExplorerError("Unexpected ABI format from Etherscan")
    return result


def fetch_implementation_address(
    chain_id: int,
    address: str,
    api_key: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: float = 30,
) -> Optional[str]:
    """
    Look up the implementation Etherscan recorded for a verified proxy.

    Returns:
        Implementation address, or None if Etherscan knows none
    """
    result = _query(
        chain_id, {"action": "getsourcecode", "address": address}, api_key, session, timeout
    )
    if not isinstance(result, list) or not result or not isinstance(result[0], dict):
        return None
    return result[0].get("Implementation") or None


def fetch_abi_with_proxy_detection(
    chain_id: int,
    address: str,
    is_proxy: bool = False,
    api_key: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch an ABI, following a proxy to its implementation when asked.

    Falls back to the proxy's own ABI if Etherscan has no implementation
    recorded.
    """
    if is_proxy:
        implementation = fetch_implementation_address(chain_id, address, api_key, session)
        if implementation:
            logger.info("Proxy %s -> implementation %s", address, implementation)
            return fetch_abi_from_etherscan(chain_id, implementation, api_key, session)
        logger.warning("No implementation recorded for proxy %s, using its own ABI", address)

    return fetch_abi_from_etherscan(chain_id, address, api_key, session)
