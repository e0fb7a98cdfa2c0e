"""Broadcast folder scanning for abiregistry library."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .constants import DEFAULT_TRACE_FILENAME, PROXY_INIT_CODE_THRESHOLD, SCRIPT_DIR_SUFFIX
from .discovery import find_trace_files
from .exceptions import MalformedTraceError
from .parsers import parse_trace
from .paths import get_broadcast_dir
from .proxies import detect_proxies
from .resolution import build_candidates
from .types import ContractSelector, ProxySpec, ScriptConfig

logger = logging.getLogger(__name__)


def _scan_script(
    broadcast_dir: Path, script_name: str, filename: str, init_code_threshold: int
) -> Optional[ScriptConfig]:
    """
    Collect the contracts deployed by one script across all its chains.

    Broadcast files that cannot be parsed are skipped with a warning.

    Returns:
        ScriptConfig, or None if the script deployed nothing
    """
    # Contract name -> proxy spec (None for plain deployments), first seen wins
    contracts: Dict[str, Optional[ProxySpec]] = {}

    for path in find_trace_files(script_name, filename, broadcast_dir):
        try:
            trace = parse_trace(path)
        except (MalformedTraceError, OSError) as e:
            logger.warning("Could not parse %s: %s", path, e)
            continue

        mappings = detect_proxies(trace.transactions, init_code_threshold)
        for candidate in build_candidates(trace.transactions, mappings):
            contracts.setdefault(candidate.name, candidate.proxy)

    if not contracts:
        return None

    return ScriptConfig(
        name=script_name,
        contracts=tuple(
            ContractSelector(name=name, proxy=proxy) for name, proxy in contracts.items()
        ),
    )


def scan_broadcast_folder(
    broadcast_dir: Optional[Union[Path, str]] = None,
    filename: str = DEFAULT_TRACE_FILENAME,
    init_code_threshold: int = PROXY_INIT_CODE_THRESHOLD,
) -> List[ScriptConfig]:
    """
    Discover deploy scripts and their contracts from the broadcast folder.

    Proxies are detected the same way as when pushing, so the result can be
    written straight into the foundry section of the config file.

    Args:
        broadcast_dir: Broadcast root (defaults to ./broadcast)
        filename: Broadcast file name to read per chain
        init_code_threshold: Proxy detection init code size limit

    Returns:
        One ScriptConfig per *.s.sol directory that deployed something,
        sorted by script name; empty if there is no broadcast folder
    """
    root = Path(broadcast_dir) if broadcast_dir is not None else get_broadcast_dir()
    if not root.is_dir():
        return []

    scripts: List[ScriptConfig] = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if not entry.is_dir() or not entry.name.endswith(SCRIPT_DIR_SUFFIX):
            continue
        discovered = _scan_script(root, entry.name, filename, init_code_threshold)
        if discovered is not None:
            scripts.append(discovered)

    return scripts


def scan_to_config(scripts: List[ScriptConfig]) -> Dict[str, Any]:
    """
    Render discovered scripts as the foundry section of abiregistry.config.json.

    Args:
        scripts: Result of scan_broadcast_folder()

    Returns:
        {"scripts": [{"name": ..., "contracts": [...]}, ...]}
    """
    rendered = []
    for script in scripts:
        contracts = []
        for contract in script.contracts:
            entry: Dict[str, Any] = {"name": contract.name}
            if contract.proxy is not None:
                entry["proxy"] = {"implementation": contract.proxy.implementation}
                if contract.proxy.interfaces:
                    entry["proxy"]["interfaces"] = list(contract.proxy.interfaces)
            contracts.append(entry)
        rendered.append({"name": script.name, "contracts": contracts})
    return {"scripts": rendered}
