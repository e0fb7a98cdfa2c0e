"""Deployment resolution: broadcast traces to publishable ABI records."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Union

from .artifacts import load_artifact_abi, load_proxy_abi
from .constants import DEFAULT_TRACE_FILENAME, PROXY_INIT_CODE_THRESHOLD
from .discovery import find_trace_files
from .exceptions import ArtifactNotFoundError, InvalidArtifactError
from .hashing import calculate_abi_hash
from .parsers import network_name, parse_trace
from .paths import get_artifacts_dir, get_broadcast_dir
from .proxies import detect_proxies
from .types import (
    Candidate,
    ContractSelector,
    ProxyMapping,
    ProxySpec,
    PublishRecord,
    ScriptConfig,
    Trace,
    TraceTransaction,
    TransactionKind,
)

logger = logging.getLogger(__name__)


def proxy_name(implementation_name: str) -> str:
    """Name an auto-detected proxy after its implementation."""
    return f"{implementation_name}Proxy"


def build_candidates(
    transactions: Sequence[TraceTransaction],
    mappings: Sequence[ProxyMapping],
    selectors: Iterable[ContractSelector] = (),
) -> List[Candidate]:
    """
    Build the deployments to publish from one trace.

    Every named CREATE is a candidate, except implementations fronted by a
    detected proxy: those are replaced by one "<Implementation>Proxy"
    candidate per proxy, at the proxy's address, resolving the
    implementation's ABI.

    A selector with an explicit proxy spec overrides the detected spec for the
    same name, and turns a plain CREATE into a proxy (manual proxy config).

    Args:
        transactions: Trace transactions in execution order
        mappings: Proxies detected in the same trace
        selectors: Contract selectors from the script's configuration

    Returns:
        Candidates: plain deployments in transaction order, then proxies
    """
    explicit = {s.name: s.proxy for s in selectors if s.proxy is not None}
    implementations = {m.implementation_name for m in mappings}

    candidates: List[Candidate] = []
    for tx in transactions:
        if tx.kind is not TransactionKind.CREATE or not tx.contract_name:
            continue
        if tx.contract_name in implementations:
            continue
        candidates.append(
            Candidate(
                name=tx.contract_name,
                address=tx.address,
                proxy=explicit.get(tx.contract_name),
            )
        )

    for mapping in mappings:
        name = proxy_name(mapping.implementation_name)
        candidates.append(
            Candidate(
                name=name,
                address=mapping.proxy_address,
                proxy=explicit.get(name, ProxySpec(mapping.implementation_name)),
            )
        )

    return candidates


def filter_candidates(
    candidates: Sequence[Candidate], allow_list: Sequence[str]
) -> List[Candidate]:
    """
    Keep only candidates named in the allow-list.

    An empty allow-list keeps everything. Filtering twice with the same list
    gives the same result.
    """
    if not allow_list:
        return list(candidates)
    allowed = set(allow_list)
    return [c for c in candidates if c.name in allowed]


@dataclass
class ResolutionResult:
    """Records resolved across all scripts of one invocation."""

    records: List[PublishRecord] = field(default_factory=list)
    skipped_scripts: List[str] = field(default_factory=list)

    @property
    def nothing_to_publish(self) -> bool:
        return not self.records


class DeploymentResolver:
    """Resolves Foundry broadcast output into ABI records for the registry."""

    def __init__(
        self,
        project_root: Optional[Union[Path, str]] = None,
        *,
        broadcast_dir: Optional[Union[Path, str]] = None,
        out_dir: Optional[Union[Path, str]] = None,
        filename: str = DEFAULT_TRACE_FILENAME,
        exclude_chain_ids: Iterable[int] = (),
        init_code_threshold: int = PROXY_INIT_CODE_THRESHOLD,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            project_root: Foundry project root (defaults to current directory)
            broadcast_dir: Broadcast root (defaults to <project_root>/broadcast)
            out_dir: Compiled artifacts (defaults to <project_root>/out)
            filename: Broadcast file name to look for in each script directory
            exclude_chain_ids: Chain ids never read (e.g. a local anvil chain)
            init_code_threshold: Proxy detection init code size limit
            clock: Current-time source for traces without a timestamp
        """
        self.broadcast_dir = (
            Path(broadcast_dir) if broadcast_dir is not None else get_broadcast_dir(project_root)
        )
        self.out_dir = Path(out_dir) if out_dir is not None else get_artifacts_dir(project_root)
        self.filename = filename
        self.exclude_chain_ids = tuple(exclude_chain_ids)
        self.init_code_threshold = init_code_threshold
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def locate(self, script_name: str) -> List[Path]:
        """Find the broadcast files of a script, one per chain."""
        return find_trace_files(
            script_name,
            filename=self.filename,
            broadcast_dir=self.broadcast_dir,
            exclude_chain_ids=self.exclude_chain_ids,
        )

    def resolve(
        self,
        scripts: Sequence[Union[ScriptConfig, str]],
        label: Optional[str] = None,
    ) -> ResolutionResult:
        """
        Resolve every script, in order.

        Scripts without broadcast files are skipped. When no records result,
        ResolutionResult.nothing_to_publish is set; it is up to the caller
        whether that is an error.

        Raises:
            MalformedTraceError: If a broadcast file is malformed
            ArtifactNotFoundError: If a contract has no compiled artifact
            InvalidArtifactError: If an artifact has no usable ABI
        """
        logger.info("Processing %d deploy script(s)...", len(scripts))
        result = ResolutionResult()

        for script in scripts:
            script = _as_script(script)
            logger.info("Script: %s", script.name)

            paths = self.locate(script.name)
            if not paths:
                self._warn_no_broadcasts(script.name)
                result.skipped_scripts.append(script.name)
                continue

            result.records.extend(self._resolve_paths(paths, script, label))

        return result

    def resolve_script(
        self, script: Union[ScriptConfig, str], label: Optional[str] = None
    ) -> List[PublishRecord]:
        """
        Resolve all broadcast files of one script.

        Returns an empty list when the script has no broadcast files.
        """
        script = _as_script(script)
        paths = self.locate(script.name)
        if not paths:
            self._warn_no_broadcasts(script.name)
            return []
        return self._resolve_paths(paths, script, label)

    def resolve_trace(
        self,
        trace: Trace,
        script: Optional[ScriptConfig] = None,
        label: Optional[str] = None,
    ) -> List[PublishRecord]:
        """
        Resolve the records of a single parsed broadcast file.

        Args:
            trace: Parsed broadcast file
            script: Script configuration (allow-list and explicit proxies)
            label: Optional label attached to every record

        Returns:
            One record per selected deployment; empty if the trace has no
            deployments or the allow-list matches none of them

        Raises:
            ArtifactNotFoundError: If a contract has no compiled artifact
            InvalidArtifactError: If an artifact has no usable ABI
        """
        network = network_name(trace.chain_id)
        deployed_at = trace.deployed_at(self._clock())
        logger.info("Network: %s (Chain ID: %d)", network, trace.chain_id)
        logger.info("Deployment: %s", deployed_at.isoformat())

        mappings = detect_proxies(trace.transactions, self.init_code_threshold)
        selectors = script.contracts if script is not None else ()
        candidates = build_candidates(trace.transactions, mappings, selectors)

        if not candidates:
            logger.warning("No contract deployments found on chain %d", trace.chain_id)
            return []

        allow_list = script.allow_list if script is not None else []
        selected = filter_candidates(candidates, allow_list)

        if allow_list:
            if not selected:
                logger.warning(
                    "No matching contracts found. Config allows: [%s] "
                    "but broadcast contains: [%s]",
                    ", ".join(allow_list),
                    ", ".join(c.name for c in candidates),
                )
                return []
            logger.info(
                "Found %d deployment(s), filtered to %d", len(candidates), len(selected)
            )
        else:
            logger.info("Found %d deployment(s)", len(candidates))

        return [
            self._resolve_candidate(candidate, trace.chain_id, network, deployed_at, label)
            for candidate in selected
        ]

    def _resolve_paths(
        self, paths: List[Path], script: ScriptConfig, label: Optional[str]
    ) -> List[PublishRecord]:
        if len(paths) > 1:
            logger.info("Found %d deployment(s):", len(paths))
            for path in paths:
                logger.info("  - %s", self._display_path(path))
        else:
            logger.info("Found: %s", self._display_path(paths[0]))

        records: List[PublishRecord] = []
        for path in paths:
            trace = parse_trace(path)
            records.extend(self.resolve_trace(trace, script, label))
        return records

    def _resolve_candidate(
        self,
        candidate: Candidate,
        chain_id: int,
        network: str,
        deployed_at: datetime,
        label: Optional[str],
    ) -> PublishRecord:
        logger.info("Processing %s at %s", candidate.name, candidate.address)

        try:
            if candidate.proxy is not None:
                logger.info(
                    "Proxy - loading implementation: %s", candidate.proxy.implementation
                )
                abi = load_proxy_abi(candidate.proxy, self.out_dir)
            else:
                abi = load_artifact_abi(candidate.name, self.out_dir)
        except (ArtifactNotFoundError, InvalidArtifactError) as e:
            logger.error("Failed to load ABI for %s: %s", candidate.name, e)
            raise

        abi_hash = calculate_abi_hash(abi)
        logger.info("ABI loaded (%d entries), hash %s...", len(abi), abi_hash[:10])

        return PublishRecord(
            contract_name=candidate.name,
            address=candidate.address,
            chain_id=chain_id,
            network=network,
            abi_hash=abi_hash,
            abi=abi,
            deployed_at=deployed_at,
            label=label,
        )

    def _warn_no_broadcasts(self, script_name: str) -> None:
        script_dir = self.broadcast_dir / script_name
        logger.warning("Skipping %s - no broadcast files found", script_name)
        logger.warning("  Searched: %s", script_dir / self.filename)
        logger.warning("  And subdirectories in: %s", script_dir)

    def _display_path(self, path: Path) -> str:
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:
            return str(path)


def _as_script(script: Union[ScriptConfig, str]) -> ScriptConfig:
    if isinstance(script, ScriptConfig):
        return script
    return ScriptConfig(name=script)
