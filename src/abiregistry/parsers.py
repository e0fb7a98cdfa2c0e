"""Broadcast file parsers for abiregistry library."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import NETWORK_NAMES
from .exceptions import MalformedTraceError
from .types import NestedCreation, Trace, TraceTransaction, TransactionKind

# CREATE2 deployments are recorded as contract creations
_TRANSACTION_TYPES = {
    "CREATE": TransactionKind.CREATE,
    "CREATE2": TransactionKind.CREATE,
    "CALL": TransactionKind.CALL,
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _malformed(field: str, problem: str, source: Optional[Path]) -> MalformedTraceError:
    where = f": {source}" if source is not None else ""
    return MalformedTraceError(
        f"Invalid broadcast file{where}: {problem} ({field})", field=field, path=source
    )


def _optional_str(
    data: Dict[str, Any], key: str, field: str, source: Optional[Path]
) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise _malformed(field, "expected string or null", source)
    return value


def _decode_nested(
    data: Any, field: str, source: Optional[Path]
) -> NestedCreation:
    if not isinstance(data, dict):
        raise _malformed(field, "expected object", source)

    address = data.get("address")
    if not isinstance(address, str):
        raise _malformed(f"{field}.address", "missing contract address", source)

    init_code = data.get("initCode", "")
    if init_code is None:
        init_code = ""
    if not isinstance(init_code, str):
        raise _malformed(f"{field}.initCode", "expected hex string", source)

    return NestedCreation(
        address=address,
        init_code=init_code,
        contract_name=_optional_str(data, "contractName", f"{field}.contractName", source),
    )


def _decode_transaction(
    data: Any, index: int, source: Optional[Path]
) -> TraceTransaction:
    field = f"transactions[{index}]"
    if not isinstance(data, dict):
        raise _malformed(field, "expected object", source)

    transaction_type = data.get("transactionType")
    kind = None
    if isinstance(transaction_type, str):
        kind = _TRANSACTION_TYPES.get(transaction_type)
    if kind is None:
        raise _malformed(
            f"{field}.transactionType",
            f"unsupported transaction type {transaction_type!r}",
            source,
        )

    address = data.get("contractAddress")
    if not isinstance(address, str):
        raise _malformed(f"{field}.contractAddress", "missing contract address", source)

    additional = data.get("additionalContracts") or []
    if not isinstance(additional, list):
        raise _malformed(f"{field}.additionalContracts", "expected array", source)

    nested: tuple = ()
    if kind is TransactionKind.CALL:
        nested = tuple(
            _decode_nested(item, f"{field}.additionalContracts[{i}]", source)
            for i, item in enumerate(additional)
        )

    return TraceTransaction(
        kind=kind,
        address=address,
        contract_name=_optional_str(data, "contractName", f"{field}.contractName", source),
        called_function=_optional_str(data, "function", f"{field}.function", source),
        nested_creations=nested,
    )


def decode_trace(data: Any, source: Optional[Path] = None) -> Trace:
    """
    Validate and decode broadcast JSON data.

    Only structure is checked here; transaction semantics (proxies, which
    deployments to publish) are left to later stages.

    Args:
        data: Decoded JSON document
        source: File the data came from, used in error messages

    Returns:
        Trace with typed transactions

    Raises:
        MalformedTraceError: If transactions or chain are missing or have the
                             wrong type, or a transaction is malformed
    """
    if not isinstance(data, dict):
        raise _malformed("<root>", "expected JSON object", source)

    transactions = data.get("transactions")
    if not isinstance(transactions, list):
        raise _malformed("transactions", "missing transactions array", source)

    chain_id = data.get("chain")
    if not _is_int(chain_id) or chain_id <= 0:
        raise _malformed("chain", "missing chain ID", source)

    timestamp = data.get("timestamp")
    if timestamp is not None:
        if not _is_int(timestamp):
            raise _malformed("timestamp", "expected epoch milliseconds", source)
        try:
            datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
        except (OSError, OverflowError, ValueError) as e:
            raise _malformed("timestamp", "epoch milliseconds out of range", source) from e

    decoded: List[TraceTransaction] = [
        _decode_transaction(tx, i, source) for i, tx in enumerate(transactions)
    ]

    return Trace(
        transactions=tuple(decoded),
        chain_id=chain_id,
        timestamp=timestamp,
        path=source,
    )


def parse_trace(file_path: Path) -> Trace:
    """
    Parse a Foundry broadcast file (e.g. run-latest.json).

    Args:
        file_path: Path to broadcast JSON file

    Returns:
        Parsed Trace

    Raises:
        MalformedTraceError: If the file is not valid JSON or lacks required fields
        FileNotFoundError: If the file does not exist
    """
    file_path = Path(file_path)
    with open(file_path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedTraceError(
                f"Invalid broadcast file: {file_path}: not valid JSON ({e})",
                field="<root>",
                path=file_path,
            ) from e

    return decode_trace(data, source=file_path)


def network_name(chain_id: int) -> str:
    """
    Get the network label for a chain id.

    Args:
        chain_id: EVM chain id

    Returns:
        Known network name (e.g. "sepolia"), otherwise "chain-<id>"
    """
    return NETWORK_NAMES.get(chain_id, f"chain-{chain_id}")
