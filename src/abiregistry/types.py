"""Data types and dataclasses for abiregistry library."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


class TransactionKind(Enum):
    """
    Broadcast transaction kinds.

    Value strings match the transactionType field of Foundry broadcast files.
    """

    CREATE = "CREATE"
    CALL = "CALL"


@dataclass(frozen=True)
class NestedCreation:
    """A contract created as a side effect of a CALL (factory or init pattern)."""

    address: str
    init_code: str
    contract_name: Optional[str] = None  # Usually absent for proxies


@dataclass(frozen=True)
class TraceTransaction:
    """One operation recorded in a broadcast file."""

    kind: TransactionKind
    address: str  # Created contract, or call target
    contract_name: Optional[str] = None
    called_function: Optional[str] = None  # CALL only
    nested_creations: Tuple[NestedCreation, ...] = ()  # CALL only


@dataclass(frozen=True)
class Trace:
    """A parsed broadcast file for one chain."""

    transactions: Tuple[TraceTransaction, ...]
    chain_id: int
    timestamp: Optional[int] = None  # Epoch milliseconds
    path: Optional[Path] = None

    def deployed_at(self, now: Optional[datetime] = None) -> datetime:
        """
        Resolve the deployment time.

        Args:
            now: Fallback used when the trace carries no timestamp
                 (defaults to current UTC time)

        Returns:
            Timezone-aware deployment datetime
        """
        if self.timestamp is not None:
            return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)
        if now is not None:
            return now
        return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProxyMapping:
    """An inferred proxy -> implementation relationship."""

    proxy_address: str
    implementation_name: str
    deployment_index: int  # Index of the CALL that created the proxy


@dataclass(frozen=True)
class ProxySpec:
    """How to resolve the ABI of a proxy: implementation plus optional facets."""

    implementation: str
    interfaces: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ContractSelector:
    """A contract to publish, as named in configuration."""

    name: str
    proxy: Optional[ProxySpec] = None


@dataclass(frozen=True)
class ScriptConfig:
    """A deploy script and the contracts selected from it."""

    name: str  # e.g. "Deploy.s.sol"
    contracts: Tuple[ContractSelector, ...] = ()

    @property
    def allow_list(self) -> List[str]:
        return [c.name for c in self.contracts]


@dataclass(frozen=True)
class Candidate:
    """A deployment selected for publishing, before its ABI is resolved."""

    name: str
    address: str
    proxy: Optional[ProxySpec] = None


@dataclass(frozen=True)
class PublishRecord:
    """A resolved deployment, ready to be pushed to the registry."""

    # Required fields
    contract_name: str
    address: str
    chain_id: int
    network: str  # e.g. "sepolia"
    abi_hash: str  # "0x" + sha256 hex
    abi: List[Dict[str, Any]] = field(hash=False)
    deployed_at: datetime = field(hash=False)

    # Optional fields
    label: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Render the JSON body accepted by the registry push endpoint."""
        payload: Dict[str, Any] = {
            "contractName": self.contract_name,
            "address": self.address,
            "chainId": self.chain_id,
            "network": self.network,
            "deployedAt": self.deployed_at.isoformat(),
            "abiHash": self.abi_hash,
            "abi": self.abi,
        }
        if self.label is not None:
            payload["label"] = self.label
        return payload


@dataclass(frozen=True)
class PushResult:
    """Registry response to a single push."""

    is_duplicate: bool
    record_id: str
