"""
Command line entry point for abiregistry.

Handles argument parsing and routes to the foundry, push, pull, fetch and
init commands.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .client import AbiRegistryClient
from .config import (
    FetchTarget,
    create_config_file,
    get_scripts_to_process,
    load_config,
    save_foundry_config,
    validate_config,
)
from .constants import CONFIG_FILE_NAME, DEFAULT_TRACE_FILENAME, DEV_CHAIN_ID
from .exceptions import AbiRegistryError
from .explorer import fetch_abi_with_proxy_detection, get_chain_name
from .hashing import calculate_abi_hash
from .log import setup_logging
from .paths import get_config_path
from .prompt import confirm
from .publishing import collect_abi_files, push_abi_files, push_foundry_deployments
from .resolution import DeploymentResolver
from .scanner import scan_broadcast_folder, scan_to_config
from .writer import write_abi_files

logger = logging.getLogger(__name__)


def _add_registry_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--api-key", help="API key (or use ABI_REGISTRY_API_KEY env var)")
    parser.add_argument("--project", help="Project ID (or use ABI_REGISTRY_PROJECT_ID env var)")
    parser.add_argument("--base-url", help="API base URL (default: https://abiregistry.com)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="abiregistry", description="ABI Registry CLI - Push and pull smart contract ABIs"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only show warnings and errors")

    subparsers = parser.add_subparsers(dest="command", help="Commands")
    subparsers.required = True

    subparsers.add_parser("init", help=f"Create a config file ({CONFIG_FILE_NAME})")

    # foundry push / foundry init
    foundry_parser = subparsers.add_parser("foundry", help="Foundry integration")
    foundry_sub = foundry_parser.add_subparsers(dest="foundry_command")
    foundry_sub.required = True

    push_parser = foundry_sub.add_parser(
        "push", help="Push ABIs of contracts deployed by Foundry scripts"
    )
    push_parser.add_argument("--script", help="Deploy script directory, e.g. Deploy.s.sol")
    push_parser.add_argument(
        "--filename",
        default=DEFAULT_TRACE_FILENAME,
        help=f"Broadcast file name (default: {DEFAULT_TRACE_FILENAME})",
    )
    push_parser.add_argument("--label", help='Label for this version, e.g. "Post-Audit"')
    push_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    push_parser.add_argument(
        "--exclude-local",
        action="store_true",
        help=f"Ignore deployments to the local development chain ({DEV_CHAIN_ID})",
    )
    _add_registry_options(push_parser)

    foundry_sub.add_parser(
        "init", help="Scan broadcast/ and write the foundry section of the config file"
    )

    file_push_parser = subparsers.add_parser("push", help="Push ABI JSON files to the registry")
    file_push_parser.add_argument(
        "--path", required=True, help="ABI .json file or directory of .json files"
    )
    file_push_parser.add_argument("--label", help="Label for this version")
    _add_registry_options(file_push_parser)

    pull_parser = subparsers.add_parser("pull", help="Pull ABIs from the registry into JSON files")
    pull_parser.add_argument("--out", help="Output directory (default: abiregistry)")
    _add_registry_options(pull_parser)

    fetch_parser = subparsers.add_parser("fetch", help="Fetch verified ABIs from Etherscan")
    fetch_parser.add_argument("--chain", type=int, help="Chain ID")
    fetch_parser.add_argument("--address", help="Contract address")
    fetch_parser.add_argument("--name", help="Contract name")
    fetch_parser.add_argument(
        "--proxy", action="store_true", help="Fetch the implementation ABI of a proxy"
    )
    fetch_parser.add_argument("--out", help="Output directory (default: abiregistry)")

    return parser


def init_command(args: argparse.Namespace) -> int:
    path = create_config_file()
    print(f"Created {path.name}")
    print("Remember to set your API key via ABI_REGISTRY_API_KEY environment variable")
    return 0


def foundry_init_command(args: argparse.Namespace) -> int:
    scripts = scan_broadcast_folder()
    if not scripts:
        logger.warning("No deployments found in broadcast/")
        return 1

    path = save_foundry_config(scan_to_config(scripts), get_config_path())
    for script in scripts:
        names = ", ".join(c.name for c in script.contracts)
        print(f"  {script.name}: {names}")
    print(f"Wrote {len(scripts)} script(s) to {path.name}")
    return 0


def foundry_push_command(args: argparse.Namespace) -> int:
    config = load_config(
        {"api_key": args.api_key, "project_id": args.project, "base_url": args.base_url}
    )
    errors = validate_config(config)
    if errors:
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    scripts = get_scripts_to_process(args.script, config.foundry)

    exclude = set(config.foundry.exclude_chains)
    if args.exclude_local:
        exclude.add(DEV_CHAIN_ID)

    resolver = DeploymentResolver(filename=args.filename, exclude_chain_ids=sorted(exclude))
    client = AbiRegistryClient(config.api_key, config.project_id, config.base_url)

    summary = push_foundry_deployments(
        resolver, scripts, client, label=args.label, confirm=confirm, yes=args.yes
    )
    if summary.cancelled:
        print("Operation cancelled by user")
    return 0


def push_command(args: argparse.Namespace) -> int:
    config = load_config(
        {"api_key": args.api_key, "project_id": args.project, "base_url": args.base_url}
    )
    errors = validate_config(config)
    if errors:
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    files = collect_abi_files(args.path)
    client = AbiRegistryClient(config.api_key, config.project_id, config.base_url)

    summary = push_abi_files(files, client, label=args.label)
    return 1 if summary.failed else 0


def pull_command(args: argparse.Namespace) -> int:
    config = load_config(
        {
            "api_key": args.api_key,
            "project_id": args.project,
            "base_url": args.base_url,
            "out_dir": args.out,
        }
    )
    errors = validate_config(config)
    if errors:
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    client = AbiRegistryClient(config.api_key, config.project_id, config.base_url)
    items = client.pull()
    if not items:
        print("No ABIs found in the registry")
        return 0

    files = write_abi_files(items, config.out_dir)
    print(f"Generated {len(files)} files in {config.out_dir}/")
    for path in files:
        print(f"  - {path.name}")
    return 0


def fetch_command(args: argparse.Namespace) -> int:
    config = load_config({"out_dir": args.out})

    if args.chain and args.address and args.name:
        targets = [FetchTarget(args.chain, args.address, args.name, args.proxy)]
    elif args.chain or args.address or args.name:
        print("--chain, --address and --name must be given together", file=sys.stderr)
        return 1
    elif config.contracts:
        targets = config.contracts
    else:
        print("No contracts specified. Either:", file=sys.stderr)
        print(
            "  1. Use flags: abiregistry fetch --chain 1 --address 0x... --name MyContract",
            file=sys.stderr,
        )
        print(f"  2. Add contracts to {CONFIG_FILE_NAME}", file=sys.stderr)
        return 1

    items = []
    failed = 0
    for target in targets:
        try:
            abi = fetch_abi_with_proxy_detection(target.chain, target.address, target.is_proxy)
        except AbiRegistryError as e:
            logger.error("Failed to fetch %s: %s", target.name, e)
            failed += 1
            continue

        if not abi:
            logger.warning("No ABI found for %s", target.name)
            failed += 1
            continue

        items.append(
            {
                "contractName": target.name,
                "network": get_chain_name(target.chain),
                "chainId": target.chain,
                "address": target.address,
                "abiHash": calculate_abi_hash(abi),
                "abi": abi,
            }
        )

    if items:
        write_abi_files(items, config.out_dir)

    print(f"Results: {len(items)} succeeded, {failed} failed")
    return 1 if failed else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for abiregistry CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        if args.command == "init":
            return init_command(args)
        elif args.command == "foundry":
            if args.foundry_command == "push":
                return foundry_push_command(args)
            return foundry_init_command(args)
        elif args.command == "push":
            return push_command(args)
        elif args.command == "pull":
            return pull_command(args)
        elif args.command == "fetch":
            return fetch_command(args)
    except AbiRegistryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
