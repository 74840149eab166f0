#!/usr/bin/env python3
"""
gimme - infrastructure query CLI

Answers node questions from Matchbox inventory, Kubernetes and Nautobot:
- Metadata lookups (gimme mac|ip|hostname|get <node>)
- Reverse lookups and label filters (gimme find, gimme label)
- Cluster reports (gimme k8s <node>, gimme offline, gimme oldest)
- Hardware over SSH (gimme hw <node>)
- Nautobot status, rack and notes (gimme nauto ...)
"""

import argparse
import json
import logging
import sys
from typing import Callable, Dict, List, Optional, Tuple

import yaml

from gimme import DEFAULT_CONFIG_PATH, __version__
from gimme.core.config import GimmeSettings, load_settings
from gimme.core.errors import AdapterError, ConfigurationError, GimmeError, NodeNotFound
from gimme.dcim import NautobotClient
from gimme.hardware import HardwareInfo, HardwareProbe
from gimme.inventory import FieldQueryEngine, format_value, load_inventory
from gimme.kube import (
    KubectlAdapter,
    KubeNode,
    collect_nodes,
    find_offline,
    find_version_mismatch,
    oldest_nodes,
)

logger = logging.getLogger(__name__)


class Colors:
    """ANSI color codes for terminal output."""

    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


_use_color = True


def colorize(text: str, color: str) -> str:
    """Colorize text if stdout is a TTY."""
    if _use_color and sys.stdout.isatty():
        return f"{color}{text}{Colors.RESET}"
    return text


def setup_logging(log_level: str):
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def print_error(message: str) -> None:
    print(colorize(f"✗ {message}", Colors.RED), file=sys.stderr)


def format_bytes(size: float) -> str:
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024 or unit == "TiB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TiB"


def positive_int(value: str) -> int:
    """argparse type for counts of 1 or more."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid count: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"count must be at least 1, got {number}")
    return number


def parse_label(spec: str) -> Tuple[str, Optional[str]]:
    """Split 'key=value' into (key, value); a bare key gives (key, None)."""
    key, sep, value = spec.partition("=")
    return key, (value if sep else None)


# Adapter factories. Each command builds only the ones it needs.

def build_engine(settings: GimmeSettings) -> FieldQueryEngine:
    inventory = load_inventory(settings.matchbox_dir, recursive=settings.inventory_recursive)
    return FieldQueryEngine(inventory)


def build_kubectl(settings: GimmeSettings) -> KubectlAdapter:
    return KubectlAdapter(kubectl=settings.kubectl_bin, timeout=settings.kubectl_timeout)


def build_probe(settings: GimmeSettings) -> HardwareProbe:
    return HardwareProbe(username=settings.ssh_user, timeout=settings.ssh_timeout)


def build_nautobot(settings: GimmeSettings) -> NautobotClient:
    return NautobotClient.from_settings(settings)


# Metadata commands

def cmd_list_fields(args, settings: GimmeSettings) -> int:
    engine = build_engine(settings)
    for field in sorted(engine.list_fields(nested=args.nested)):
        print(field)
    return 0


def cmd_list(args, settings: GimmeSettings) -> int:
    """List nodes with their IP and MAC, optionally filtered by label."""
    engine = build_engine(settings)
    if args.label:
        records = engine.filter_by_label(*parse_label(args.label))
    else:
        records = engine.inventory.records

    for record in records:
        ip = engine.find_value(record.identifier, "ip")
        mac = engine.find_value(record.identifier, "mac")
        print(
            f"{record.identifier:<30} "
            f"{format_value(ip) if ip is not None else '-':<16} "
            f"{format_value(mac) if mac is not None else '-'}"
        )
    return 0


def cmd_show(args, settings: GimmeSettings) -> int:
    record = build_engine(settings).record(args.node)
    if args.format == "yaml":
        print(yaml.safe_dump(record.data, sort_keys=False, default_flow_style=False), end="")
    else:
        print(json.dumps(record.data, indent=2))
    return 0


def cmd_get(args, settings: GimmeSettings) -> int:
    value = build_engine(settings).get(args.node, args.field)
    print(format_value(value))
    return 0


def cmd_well_known(args, settings: GimmeSettings) -> int:
    """mac / ip / hostname: print the first matching well-known field."""
    _, value = build_engine(settings).resolve(args.node, args.command)
    print(format_value(value))
    return 0


def cmd_find(args, settings: GimmeSettings) -> int:
    """Reverse lookup: which nodes have field == value."""
    matches = build_engine(settings).reverse_lookup(args.field, args.value, substring=args.substring)
    if not matches:
        op = "containing" if args.substring else "="
        print_error(f"No nodes with {args.field} {op} {args.value}")
        return 1
    for identifier in matches:
        print(identifier)
    return 0


def cmd_label(args, settings: GimmeSettings) -> int:
    key, value = parse_label(args.selector)
    records = build_engine(settings).filter_by_label(key, value)
    if not records:
        print_error(f"No nodes with label {args.selector}")
        return 1
    for record in records:
        print(f"{record.identifier:<30} {key}={format_value(record.labels()[key])}")
    return 0


# Kubernetes commands

def _node_row(node: KubeNode) -> str:
    return (
        f"{node.name:<30} {node.status:<28} {node.age:>6}  "
        f"{node.version:<14} {node.context or ''}"
    )


def _context_failed(label: str, error: str) -> str:
    return colorize(f"{label:<30} [FAILED] {error}", Colors.RED)


def cmd_k8s(args, settings: GimmeSettings) -> int:
    """Show a node's cluster status, trying its own cluster context first."""
    engine = build_engine(settings)
    engine.record(args.node)
    kubectl = build_kubectl(settings)

    contexts = settings.contexts
    cluster = engine.find_value(args.node, "cluster")
    if cluster in contexts:
        contexts = [cluster] + [c for c in contexts if c != cluster]

    node: Optional[KubeNode] = None
    errors: List[str] = []
    for context in contexts:
        try:
            node = kubectl.get_node(args.node, context=context)
            break
        except NodeNotFound:
            continue
        except AdapterError as e:
            if len(contexts) == 1:
                raise
            errors.append(f"{context}: {e}")

    if node is None:
        if errors:
            raise AdapterError("; ".join(errors))
        raise NodeNotFound(args.node, where="cluster")

    status_color = Colors.GREEN if node.is_ready else Colors.RED
    print(colorize(f"{node.name}", Colors.BOLD) + (f" ({node.context})" if node.context else ""))
    print(f"  Status:   {colorize(node.status, status_color)}")
    print(f"  Version:  {node.version or '-'}")
    print(f"  Age:      {node.age}")
    print(f"  Roles:    {', '.join(node.roles) or '<none>'}")
    print(f"  IP:       {node.internal_ip or '-'}")

    inventory_ip = engine.find_value(args.node, "ip")
    if inventory_ip is not None and node.internal_ip and format_value(inventory_ip) != node.internal_ip:
        print(colorize(
            f"  ⚠ inventory IP {format_value(inventory_ip)} differs from cluster InternalIP",
            Colors.YELLOW,
        ))
    return 0


def cmd_offline(args, settings: GimmeSettings) -> int:
    """List nodes that are not Ready in any configured context."""
    results = collect_nodes(build_kubectl(settings), settings.contexts)

    failed = False
    found = 0
    for result in results:
        if not result.ok:
            failed = True
            print(_context_failed(result.label, result.error))
            continue
        for node in find_offline(result.nodes):
            found += 1
            print(colorize(_node_row(node), Colors.RED))

    if args.include_missing and failed:
        print(colorize(
            "⚠ Skipping NotInCluster check: not every context could be listed",
            Colors.YELLOW,
        ))
    elif args.include_missing:
        engine = build_engine(settings)
        in_cluster = {n.name for r in results for n in r.nodes}
        for identifier in engine.inventory.identifiers():
            if identifier not in in_cluster:
                found += 1
                print(colorize(f"{identifier:<30} {'NotInCluster':<28}", Colors.YELLOW))

    if not found and not failed:
        print(colorize("✓ All nodes Ready", Colors.GREEN))
    return 1 if failed else 0


def cmd_oldest(args, settings: GimmeSettings) -> int:
    """Show the node(s) with the greatest age across all contexts."""
    results = collect_nodes(build_kubectl(settings), settings.contexts)

    failed = False
    nodes: List[KubeNode] = []
    for result in results:
        if not result.ok:
            failed = True
            print(_context_failed(result.label, result.error))
        nodes.extend(result.nodes)

    if not nodes:
        if not failed:
            print_error("No nodes returned by kubectl")
        return 1

    for node in oldest_nodes(nodes, args.count):
        print(_node_row(node))
    return 1 if failed else 0


def cmd_version_mismatch(args, settings: GimmeSettings) -> int:
    """Per context, list nodes whose kubelet version differs from the majority."""
    results = collect_nodes(build_kubectl(settings), settings.contexts)

    failed = False
    for result in results:
        if not result.ok:
            failed = True
            print(_context_failed(result.label, result.error))
            continue
        majority, mismatched = find_version_mismatch(result.nodes)
        if majority is None:
            continue
        if not mismatched:
            print(colorize(f"✓ {result.label}: all {len(result.nodes)} node(s) on {majority}", Colors.GREEN))
            continue
        print(colorize(f"{result.label}: majority version {majority}", Colors.BOLD))
        for node in mismatched:
            print(colorize(_node_row(node), Colors.YELLOW))
    return 1 if failed else 0


# Hardware

def _print_hardware(identifier: str, info: HardwareInfo) -> None:
    def show(value) -> str:
        return "-" if value in (None, "") else str(value)

    cpu = show(info.cpu_model)
    if info.cpu_count:
        cpu = f"{cpu} ({info.cpu_count} CPUs)"
    disks = ", ".join(f"{d.name} {format_bytes(d.size_bytes)}" for d in info.disks) or "-"

    print(colorize(identifier, Colors.BOLD) + f" ({info.target})")
    print(f"  Hostname: {show(info.hostname)}")
    print(f"  System:   {' '.join(p for p in (info.vendor, info.product) if p) or '-'}")
    print(f"  Serial:   {show(info.serial)}")
    print(f"  CPU:      {cpu}")
    print(f"  Memory:   {format_bytes(info.memory_kb * 1024) if info.memory_kb else '-'}")
    print(f"  Kernel:   {show(info.kernel)}")
    print(f"  Disks:    {disks}")


def cmd_hw(args, settings: GimmeSettings) -> int:
    """Probe each node over SSH, one at a time. A failed node does not stop the rest."""
    engine = build_engine(settings)
    probe = build_probe(settings)

    failed = 0
    for identifier in args.nodes:
        try:
            engine.record(identifier)
            ip = engine.find_value(identifier, "ip")
            target = format_value(ip) if ip not in (None, "") else identifier
            info = probe.probe(target)
        except GimmeError as e:
            failed += 1
            print(colorize(f"{identifier:<30} [FAILED] {e}", Colors.RED))
            continue
        _print_hardware(identifier, info)

    return 1 if failed else 0


# Nautobot

def cmd_nauto(args, settings: GimmeSettings) -> int:
    client = build_nautobot(settings)

    if args.action == "status":
        print(client.device_status(args.node))
    elif args.action == "rack":
        print(client.rack_location(args.node).describe())
    elif args.action == "notes":
        notes = client.notes(args.node)
        if not notes:
            print(f"No notes for {args.node}")
        for note in notes:
            header = " ".join(p for p in (note.created, note.author) if p)
            print(colorize(f"[{header}]", Colors.BLUE) + f" {note.note}" if header else note.note)
    return 0


# Misc

def cmd_nut(args, settings: GimmeSettings) -> int:
    print(colorize("🥜 You asked for a nut. gimme delivers.", Colors.YELLOW))
    print("   (There is nothing to query here. Try 'gimme offline' instead.)")
    return 0


def cmd_version(args, settings: GimmeSettings) -> int:
    print(f"gimme version {__version__}")
    return 0


HANDLERS: Dict[str, Callable[..., int]] = {
    "list-fields": cmd_list_fields,
    "list": cmd_list,
    "show": cmd_show,
    "get": cmd_get,
    "mac": cmd_well_known,
    "ip": cmd_well_known,
    "hostname": cmd_well_known,
    "find": cmd_find,
    "label": cmd_label,
    "k8s": cmd_k8s,
    "offline": cmd_offline,
    "oldest": cmd_oldest,
    "version-mismatch": cmd_version_mismatch,
    "hw": cmd_hw,
    "nauto": cmd_nauto,
    "nut": cmd_nut,
    "version": cmd_version,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for gimme."""
    parser = argparse.ArgumentParser(
        prog="gimme",
        description="Infrastructure query CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  gimme list-fields                  # Fields present in the inventory
  gimme mac node-a1                  # MAC address of a node
  gimme find metadata.ip 10.0.0.5    # Which node has this IP
  gimme label role=worker            # Nodes with a label
  gimme k8s node-a1                  # Cluster status of a node
  gimme offline                      # Nodes that are not Ready
  gimme nauto status node-a1         # Nautobot status

Configuration ({DEFAULT_CONFIG_PATH} or environment):
  MATCHBOX_DIR                       # Matchbox groups directory
  NAUTOBOT_URL, NAUTOBOT_TOKEN       # Nautobot integration (optional)
  GIMME_KUBECTL_TIMEOUT              # kubectl timeout (default: 5s)
  GIMME_KUBE_CONTEXTS                # Comma separated contexts to query
        """,
    )
    parser.add_argument("--config", help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--inventory-dir", help="Matchbox groups directory (overrides MATCHBOX_DIR)")
    parser.add_argument("--recursive", action="store_true", help="Scan inventory subdirectories")
    parser.add_argument("--kubectl-timeout", help="kubectl timeout, e.g. 5s or 1m")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    fields_parser = subparsers.add_parser("list-fields", help="List field names across all nodes")
    fields_parser.add_argument("--nested", action="store_true", help="List nested dot paths")

    list_parser = subparsers.add_parser("list", help="List nodes")
    list_parser.add_argument("--label", help="Only nodes with this label (key or key=value)")

    show_parser = subparsers.add_parser("show", help="Show a node's full record")
    show_parser.add_argument("node")
    show_parser.add_argument("--format", choices=["json", "yaml"], default="json")

    get_parser = subparsers.add_parser("get", help="Get one field of a node (dot paths allowed)")
    get_parser.add_argument("node")
    get_parser.add_argument("field")

    for name in ("mac", "ip", "hostname"):
        sub = subparsers.add_parser(name, help=f"Show a node's {name}")
        sub.add_argument("node")

    find_parser = subparsers.add_parser("find", help="Find nodes by field value")
    find_parser.add_argument("field")
    find_parser.add_argument("value")
    find_parser.add_argument("--substring", action="store_true", help="Match substrings")

    label_parser = subparsers.add_parser("label", help="Find nodes by label")
    label_parser.add_argument("selector", help="key or key=value")

    k8s_parser = subparsers.add_parser("k8s", help="Show a node's Kubernetes status")
    k8s_parser.add_argument("node")

    offline_parser = subparsers.add_parser("offline", help="List nodes that are not Ready")
    offline_parser.add_argument(
        "--include-missing",
        action="store_true",
        help="Also list inventory nodes absent from every cluster",
    )

    oldest_parser = subparsers.add_parser("oldest", help="Show the oldest node(s)")
    oldest_parser.add_argument("-n", "--count", type=positive_int, default=1, help="How many to show")

    subparsers.add_parser("version-mismatch", help="Nodes whose kubelet differs from the majority")

    hw_parser = subparsers.add_parser("hw", help="Probe node hardware over SSH")
    hw_parser.add_argument("nodes", nargs="+")

    nauto_parser = subparsers.add_parser("nauto", help="Query Nautobot")
    nauto_parser.add_argument("action", choices=["status", "rack", "notes"])
    nauto_parser.add_argument("node")

    subparsers.add_parser("nut", help="Get a nut")
    subparsers.add_parser("version", help="Show version information")

    return parser


def main(argv=None):
    """Main entry point for the gimme CLI."""
    global _use_color

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    _use_color = not args.no_color

    try:
        settings = load_settings(
            args.config,
            matchbox_dir=args.inventory_dir,
            inventory_recursive=True if args.recursive else None,
            kubectl_timeout=args.kubectl_timeout,
            log_level=args.log_level,
        )
    except ConfigurationError as e:
        print_error(str(e))
        return 1

    setup_logging(settings.log_level)
    logger.debug(f"Running '{args.command}' with inventory {settings.matchbox_dir}")

    try:
        return HANDLERS[args.command](args, settings)
    except GimmeError as e:
        print_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
