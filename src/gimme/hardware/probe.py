"""
SSH hardware probe.

Opens one SSH session to a node, runs a fixed set of read-only commands and
parses their plain-text output. There is a single connection attempt and no
retry.
"""

import logging
from typing import Callable, Dict, List, Optional

import paramiko

from gimme.core.errors import ProbeConnectionError
from gimme.hardware.models import Disk, HardwareInfo

logger = logging.getLogger(__name__)

HARDWARE_COMMANDS: Dict[str, str] = {
    "hostname": "hostname",
    "kernel": "uname -r",
    "vendor": "cat /sys/class/dmi/id/sys_vendor",
    "product": "cat /sys/class/dmi/id/product_name",
    "serial": "cat /sys/class/dmi/id/product_serial",
    "lscpu": "LC_ALL=C lscpu",
    "meminfo": "cat /proc/meminfo",
    "lsblk": "lsblk -d -n -b -o NAME,SIZE,TYPE",
}


def get_ssh_client() -> paramiko.SSHClient:
    """Return a paramiko.SSHClient that trusts system known_hosts and adds new host keys."""
    client = paramiko.SSHClient()
    client.load_system_host_keys()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
    return client


def parse_key_values(text: str, separator: str = ":") -> Dict[str, str]:
    """Parse 'Key: value' lines (lscpu, /proc/meminfo)."""
    values = {}
    for line in text.splitlines():
        key, sep, value = line.partition(separator)
        if sep and key.strip():
            values[key.strip()] = value.strip()
    return values


def parse_lscpu(text: str) -> Dict[str, Optional[object]]:
    fields = parse_key_values(text)
    cpu_count: Optional[int] = None
    try:
        cpu_count = int(fields.get("CPU(s)", ""))
    except ValueError:
        pass
    return {"cpu_model": fields.get("Model name") or None, "cpu_count": cpu_count}


def parse_meminfo(text: str) -> Optional[int]:
    """Return MemTotal in kB."""
    total = parse_key_values(text).get("MemTotal", "")
    try:
        return int(total.split()[0])
    except (IndexError, ValueError):
        return None


def parse_lsblk(text: str) -> List[Disk]:
    """Parse `lsblk -d -n -b -o NAME,SIZE,TYPE`, keeping only disks."""
    disks = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 3 or parts[2] != "disk":
            continue
        try:
            size = int(parts[1])
        except ValueError:
            size = 0
        disks.append(Disk(name=parts[0], size_bytes=size))
    return disks


def parse_hardware(target: str, outputs: Dict[str, Optional[str]]) -> HardwareInfo:
    """
    Build HardwareInfo from raw command outputs.

    Args:
        target: Host the outputs came from
        outputs: HARDWARE_COMMANDS key -> stdout, or None if the command failed
    """
    def line(key: str) -> Optional[str]:
        text = (outputs.get(key) or "").strip()
        return text.splitlines()[0].strip() if text else None

    cpu = parse_lscpu(outputs.get("lscpu") or "")
    return HardwareInfo(
        target=target,
        hostname=line("hostname"),
        kernel=line("kernel"),
        vendor=line("vendor"),
        product=line("product"),
        serial=line("serial"),
        memory_kb=parse_meminfo(outputs.get("meminfo") or ""),
        cpu_model=cpu["cpu_model"],
        cpu_count=cpu["cpu_count"],
        disks=parse_lsblk(outputs.get("lsblk") or ""),
    )


class HardwareProbe:
    """
    Collects hardware facts from a node over SSH.

    Usage:
        probe = HardwareProbe(username="core")
        info = probe.probe("10.0.0.5")
    """

    def __init__(
        self,
        username: Optional[str] = None,
        timeout: Optional[float] = None,
        client_factory: Optional[Callable[[], paramiko.SSHClient]] = None,
    ):
        """
        Initialize probe.

        Args:
            username: SSH user (default: paramiko's default, the local user)
            timeout: TCP connect timeout in seconds (default: none)
            client_factory: Returns a fresh SSHClient (injected in tests)
        """
        self.username = username
        self.timeout = timeout
        self.client_factory = client_factory or get_ssh_client

    def probe(self, target: str) -> HardwareInfo:
        """
        Run the hardware command set on a node.

        Raises:
            ProbeConnectionError: Authentication, SSH or network failure
        """
        client = self.client_factory()
        try:
            try:
                client.connect(hostname=target, username=self.username, timeout=self.timeout)
            except paramiko.AuthenticationException as e:
                raise ProbeConnectionError(f"SSH authentication to {target} failed: {e}") from e
            except (paramiko.SSHException, OSError) as e:
                raise ProbeConnectionError(f"Cannot connect to {target}: {e}") from e

            outputs = {key: self._run(client, target, cmd) for key, cmd in HARDWARE_COMMANDS.items()}
        finally:
            client.close()

        return parse_hardware(target, outputs)

    def _run(self, client: paramiko.SSHClient, target: str, command: str) -> Optional[str]:
        """Run one command; None if it exits non-zero."""
        try:
            _, stdout, stderr = client.exec_command(command)
            output = stdout.read().decode("utf-8", errors="replace")
            status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise ProbeConnectionError(f"SSH session to {target} failed: {e}") from e

        if status != 0:
            error = stderr.read().decode("utf-8", errors="replace").strip()
            logger.debug(f"{target}: '{command}' exited {status}: {error}")
            return None
        return output
