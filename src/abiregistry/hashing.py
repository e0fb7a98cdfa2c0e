"""ABI content hashing for abiregistry library."""

import hashlib
import json
from typing import Any, Dict, List, Tuple


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def _sort_key(entry: Dict[str, Any]) -> Tuple[str, str, str]:
    # Overloads share (type, name); the canonical text orders them stably
    return (str(entry.get("type") or ""), str(entry.get("name") or ""), _canonical(entry))


def calculate_abi_hash(abi: List[Dict[str, Any]]) -> str:
    """
    Calculate the SHA-256 content hash of an ABI.

    Entries are sorted by (type, name) and serialised with sorted keys, so the
    hash does not depend on entry order or key order. Any change to an entry
    (name, parameters, mutability) changes the hash.

    Args:
        abi: ABI entries

    Returns:
        "0x"-prefixed hex digest
    """
    sorted_abi = sorted(abi, key=_sort_key)
    return "0x" + hashlib.sha256(_canonical(sorted_abi).encode("utf-8")).hexdigest()


def abis_equal(abi1: List[Dict[str, Any]], abi2: List[Dict[str, Any]]) -> bool:
    """Check whether two ABIs have the same content hash."""
    return calculate_abi_hash(abi1) == calculate_abi_hash(abi2)
