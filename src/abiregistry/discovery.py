"""Broadcast file discovery for abiregistry library."""

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .constants import DEFAULT_TRACE_FILENAME
from .paths import get_broadcast_dir

logger = logging.getLogger(__name__)


class TraceLayout(Enum):
    """
    On-disk layouts of a script's broadcast output.

    - FLAT: broadcast/<script>/<filename> (older Foundry releases)
    - PER_CHAIN: broadcast/<script>/<chainId>/<filename>
    """

    FLAT = "flat"
    PER_CHAIN = "per-chain"


def _chain_dirs(script_dir: Path) -> List[Path]:
    """Immediate subdirectories with a purely numeric name, in listing order."""
    try:
        entries = list(script_dir.iterdir())
    except (FileNotFoundError, NotADirectoryError):
        return []
    return [
        entry
        for entry in entries
        if entry.is_dir() and entry.name.isascii() and entry.name.isdigit()
    ]


def detect_trace_layout(
    script_dir: Path, filename: str = DEFAULT_TRACE_FILENAME
) -> Optional[TraceLayout]:
    """
    Detect which broadcast layout a script directory uses.

    Args:
        script_dir: broadcast/<script> directory
        filename: Broadcast file name to look for

    Returns:
        TraceLayout.FLAT if <script_dir>/<filename> exists
        TraceLayout.PER_CHAIN if FLAT check fails but some <chainId>/<filename> exists
        None if no broadcast files found
    """
    # Flat layout takes priority
    if (script_dir / filename).is_file():
        return TraceLayout.FLAT

    for chain_dir in _chain_dirs(script_dir):
        if (chain_dir / filename).is_file():
            return TraceLayout.PER_CHAIN

    return None


def find_trace_files(
    script: str,
    filename: str = DEFAULT_TRACE_FILENAME,
    broadcast_dir: Optional[Union[Path, str]] = None,
    exclude_chain_ids: Iterable[int] = (),
) -> List[Path]:
    """
    Find every chain's broadcast file for a deploy script.

    If the flat file exists it is the sole result and chain subdirectories are
    not searched. Otherwise each numeric subdirectory holding the file
    contributes one path, in directory listing order (not sorted by chain id).

    Args:
        script: Script directory name, e.g. "Deploy.s.sol"
        filename: Broadcast file name (defaults to run-latest.json)
        broadcast_dir: Broadcast root (defaults to ./broadcast)
        exclude_chain_ids: Chain ids whose subdirectory is skipped without
                           opening its broadcast file

    Returns:
        List of broadcast file paths; empty if the root or script directory
        does not exist
    """
    root = Path(broadcast_dir) if broadcast_dir is not None else get_broadcast_dir()
    script_dir = root / script
    excluded = {str(chain_id) for chain_id in exclude_chain_ids}

    layout = detect_trace_layout(script_dir, filename)

    match layout:
        case TraceLayout.FLAT:
            return [script_dir / filename]
        case TraceLayout.PER_CHAIN:
            paths = []
            for chain_dir in _chain_dirs(script_dir):
                if chain_dir.name in excluded:
                    logger.debug("Skipping excluded chain %s in %s", chain_dir.name, script)
                    continue
                candidate = chain_dir / filename
                if candidate.is_file():
                    paths.append(candidate)
            return paths
        case None:
            return []
        case _:
            # Unreachable but exhaustive
            return []
