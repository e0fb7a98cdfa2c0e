"""Proxy detection for abiregistry library."""

import logging
from typing import List, Optional, Sequence

from .constants import PROXY_INIT_CODE_THRESHOLD
from .types import NestedCreation, ProxyMapping, TraceTransaction, TransactionKind

logger = logging.getLogger(__name__)


def is_proxy_candidate(
    creation: NestedCreation, init_code_threshold: int = PROXY_INIT_CODE_THRESHOLD
) -> bool:
    """
    Check whether a nested creation looks like a minimal proxy shim.

    Contracts with real logic have far larger init code than an ERC1967
    forwarding proxy, and the broadcast carries no source name for them.
    """
    return not creation.contract_name and len(creation.init_code) < init_code_threshold


def _preceding_implementation(
    transactions: Sequence[TraceTransaction], index: int
) -> Optional[TraceTransaction]:
    """Nearest named CREATE before transactions[index]."""
    for j in range(index - 1, -1, -1):
        tx = transactions[j]
        if tx.kind is TransactionKind.CREATE and tx.contract_name:
            return tx
    return None


def detect_proxies(
    transactions: Sequence[TraceTransaction],
    init_code_threshold: int = PROXY_INIT_CODE_THRESHOLD,
) -> List[ProxyMapping]:
    """
    Detect ERC1967-style proxies in a broadcast transaction list.

    A proxy is recognised when:
    1. A CALL transaction creates additional contracts (factory/deploy helper)
    2. One of those contracts has no name and small init code
    3. A named CREATE precedes the CALL; the nearest one is the implementation

    Every candidate of one CALL maps to the same implementation. A CALL with
    candidates but no preceding named CREATE yields nothing.

    Args:
        transactions: Broadcast transactions in execution order
        init_code_threshold: Init code length (hex chars) below which a nameless
                             nested creation is a proxy candidate

    Returns:
        Proxy mappings in transaction order
    """
    proxies: List[ProxyMapping] = []

    for i, tx in enumerate(transactions):
        if tx.kind is not TransactionKind.CALL or not tx.nested_creations:
            continue

        candidates = [
            creation
            for creation in tx.nested_creations
            if is_proxy_candidate(creation, init_code_threshold)
        ]
        if not candidates:
            continue

        implementation = _preceding_implementation(transactions, i)
        if implementation is None:
            logger.debug(
                "CALL #%d created %d unnamed contract(s) with no preceding named CREATE",
                i,
                len(candidates),
            )
            continue

        for creation in candidates:
            proxies.append(
                ProxyMapping(
                    proxy_address=creation.address,
                    implementation_name=implementation.contract_name,
                    deployment_index=i,
                )
            )
            logger.info(
                "Auto-detected ERC1967 proxy %s -> %s (%s)",
                creation.address,
                implementation.contract_name,
                implementation.address,
            )

    return proxies
