"""Publishing resolved ABI records to the registry."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Union

from .exceptions import (
    AbiRegistryError,
    ConfigError,
    InvalidArtifactError,
    NothingToPublishError,
    RegistryError,
)
from .hashing import calculate_abi_hash
from .parsers import network_name
from .prompt import render_table
from .resolution import DeploymentResolver
from .types import PublishRecord, PushResult, ScriptConfig

logger = logging.getLogger(__name__)

TABLE_HEADERS = ["Contract", "Address", "Network", "Label", "ABI Size"]

PLACEHOLDER_ADDRESS = "0x" + "0" * 40


class Pusher(Protocol):
    """Anything that accepts one record at a time (e.g. AbiRegistryClient)."""

    def push(self, record: PublishRecord) -> PushResult: ...


@dataclass
class PublishSummary:
    """Outcome of a push run."""

    new: int = 0
    duplicates: int = 0
    cancelled: bool = False


def format_record_table(records: Sequence[PublishRecord]) -> str:
    """Render the records about to be pushed as a table."""
    rows = [
        [
            record.contract_name,
            record.address[:10] + "...",
            record.network or "unknown",
            record.label or "(no label)",
            f"{len(record.abi)} entries",
        ]
        for record in records
    ]
    return render_table(TABLE_HEADERS, rows)


def publish_records(
    records: Sequence[PublishRecord],
    pusher: Pusher,
    *,
    confirm: Optional[Callable[[str], bool]] = None,
    yes: bool = False,
    echo: Callable[[str], None] = print,
) -> PublishSummary:
    """
    Show the records, ask for confirmation and push them one at a time.

    Duplicate detection happens server-side from each record's abiHash.

    Args:
        records: Resolved records
        pusher: Push collaborator
        confirm: Prompt returning True to proceed; skipped when yes is set
                 or no prompt is given
        yes: Skip the confirmation prompt
        echo: Output for the table and per-record results

    Returns:
        PublishSummary; cancelled is set if the user declined

    Raises:
        RegistryError: If a push fails
    """
    echo("\nABIs ready to push:\n")
    echo(format_record_table(records))

    if not yes and confirm is not None:
        echo("\nYou are about to push these ABIs to the registry.")
        if not confirm("Do you want to continue?"):
            logger.info("Operation cancelled by user")
            return PublishSummary(cancelled=True)

    echo(f"\nPushing {len(records)} ABI(s) to registry...")
    summary = PublishSummary()

    try:
        for record in records:
            result = pusher.push(record)
            if result.is_duplicate:
                echo(f"  {record.contract_name} - Skipped (duplicate)")
                summary.duplicates += 1
            else:
                echo(f"  {record.contract_name} - Pushed (new version)")
                summary.new += 1
    except RegistryError as e:
        raise RegistryError(f"Failed to push ABIs: {e}") from e

    echo("\nPush complete!")
    echo(f"Summary: {summary.new} new, {summary.duplicates} duplicates skipped")
    return summary


def push_foundry_deployments(
    resolver: DeploymentResolver,
    scripts: Sequence[Union[ScriptConfig, str]],
    pusher: Pusher,
    *,
    label: Optional[str] = None,
    confirm: Optional[Callable[[str], bool]] = None,
    yes: bool = False,
    echo: Callable[[str], None] = print,
) -> PublishSummary:
    """
    Resolve Foundry deployments and push them to the registry.

    Raises:
        NothingToPublishError: If no script produced any record
        MalformedTraceError, ArtifactNotFoundError, InvalidArtifactError:
            From resolution; nothing is pushed in that case
        RegistryError: If a push fails
    """
    result = resolver.resolve(scripts, label=label)
    if result.nothing_to_publish:
        raise NothingToPublishError(
            "No ABIs to push. Check your deploy scripts and configuration."
        )

    records: List[PublishRecord] = result.records
    return publish_records(records, pusher, confirm=confirm, yes=yes, echo=echo)


@dataclass
class FilePushSummary:
    """Outcome of pushing ABI files."""

    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


def collect_abi_files(path: Union[Path, str]) -> List[Path]:
    """
    List the ABI files to push from a .json file or a directory of them.

    Raises:
        ConfigError: If the path is missing, not JSON, or holds no JSON files
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Path not found: {path}")

    if path.is_dir():
        files = sorted(p for p in path.iterdir() if p.is_file() and p.suffix == ".json")
    elif path.suffix == ".json":
        files = [path]
    else:
        raise ConfigError("Path must be a .json file or directory containing .json files")

    if not files:
        raise ConfigError(f"No .json files found in {path}")
    return files


def record_from_abi_file(
    path: Path, label: Optional[str] = None, now: Optional[datetime] = None
) -> Optional[PublishRecord]:
    """
    Build a record from a standalone ABI file.

    The file holds either a bare ABI array or an object with "abi" and
    optional contractName/name, address, chainId/chain and network. The
    contract name defaults to the file stem, the chain to mainnet.

    Returns:
        The record, or None when the file has no ABI entries

    Raises:
        InvalidArtifactError: If the file is not JSON or has the wrong shape
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidArtifactError(f"Invalid JSON in {path}: {e}", path.stem, path) from e

    if isinstance(data, list):
        abi, meta = data, {}
    elif isinstance(data, dict):
        abi, meta = data.get("abi", []), data
    else:
        raise InvalidArtifactError(f"Invalid ABI format in {path}", path.stem, path)

    if not isinstance(abi, list) or not all(isinstance(entry, dict) for entry in abi):
        raise InvalidArtifactError(f"Invalid ABI format in {path}", path.stem, path)

    if not abi:
        logger.warning("Skipping %s: no ABI entries found", path.name)
        return None

    chain_id = meta.get("chainId") or meta.get("chain") or 1
    if not isinstance(chain_id, int) or isinstance(chain_id, bool):
        raise InvalidArtifactError(f"Invalid chain id in {path}: {chain_id!r}", path.stem, path)

    address = meta.get("address")
    if not address:
        logger.warning("%s has no address, using placeholder", path.name)
        address = PLACEHOLDER_ADDRESS

    return PublishRecord(
        contract_name=meta.get("contractName") or meta.get("name") or path.stem,
        address=address,
        chain_id=chain_id,
        network=meta.get("network") or network_name(chain_id),
        abi_hash=calculate_abi_hash(abi),
        abi=abi,
        deployed_at=now or datetime.now(timezone.utc),
        label=label,
    )


def push_abi_files(
    files: Sequence[Path],
    pusher: Pusher,
    *,
    label: Optional[str] = None,
    echo: Callable[[str], None] = print,
    now: Optional[datetime] = None,
) -> FilePushSummary:
    """
    Push standalone ABI files one at a time.

    A file that cannot be read or pushed is counted as failed and the
    remaining files are still pushed.
    """
    echo(f"Found {len(files)} ABI file(s)")
    summary = FilePushSummary()

    for path in files:
        try:
            record = record_from_abi_file(path, label=label, now=now)
            if record is None:
                summary.skipped += 1
                continue
            result = pusher.push(record)
        except (AbiRegistryError, OSError) as e:
            logger.error("Failed to push %s: %s", path.stem, e)
            summary.failed += 1
            continue

        status = "duplicate" if result.is_duplicate else "new version"
        echo(f"  Pushed {record.contract_name} ({path.name}) - {status}")
        summary.succeeded += 1

    echo(f"\nResults: {summary.succeeded} succeeded, {summary.failed} failed")
    return summary
