"""
Shared fixtures for gimme tests.

Run with: pytest tests/
"""

import json
import subprocess
from pathlib import Path

import pytest

GIMME_ENV_KEYS = [
    "MATCHBOX_DIR",
    "GIMME_INVENTORY_DIR",
    "GIMME_RECURSIVE",
    "NAUTOBOT_URL",
    "NAUTOBOT_TOKEN",
    "NAUTOBOT_TIMEOUT",
    "GIMME_KUBECTL_TIMEOUT",
    "GIMME_KUBECTL",
    "GIMME_KUBE_CONTEXTS",
    "GIMME_SSH_USER",
    "GIMME_SSH_TIMEOUT",
    "GIMME_LOG_LEVEL",
    "GIMME_CONFIG",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's real config and environment out of every test."""
    for key in GIMME_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GIMME_CONFIG", str(tmp_path / "no-such-config"))


def write_json(directory: Path, name: str, data) -> Path:
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def groups_dir(tmp_path):
    """A small Matchbox groups directory with three nodes."""
    directory = tmp_path / "groups"
    directory.mkdir()
    write_json(directory, "node-a1.json", {
        "id": "node-a1",
        "name": "node-a1",
        "profile": "worker",
        "selector": {"mac": "52:54:00:a1:00:01"},
        "metadata": {
            "hostname": "node-a1",
            "ip": "10.0.0.5",
            "cluster": "prod-east",
            "rack": "r12",
            "labels": {"role": "worker", "gpu": "a100"},
        },
    })
    write_json(directory, "node-a2.json", {
        "id": "node-a2",
        "name": "node-a2",
        "profile": "worker",
        "selector": {"mac": "52:54:00:a2:00:01"},
        "metadata": {
            "hostname": "node-a2",
            "ip": "10.0.0.6",
            "cluster": "prod-east",
            "rack": "r12",
            "notes": "",
            "labels": {"role": "worker"},
        },
    })
    write_json(directory, "node-b1.json", {
        "hostname": "node-b1",
        "ip": "10.0.0.15",
        "mac": "52:54:00:b1:00:01",
        "cluster": "prod-west",
        "rack_unit": 14,
        "tags": ["edge", "spare"],
        "labels": {"role": "control-plane"},
    })
    return directory


def node_item(
    name,
    ready="True",
    version="v1.29.4",
    created="2024-01-01T00:00:00Z",
    unschedulable=False,
    roles=("worker",),
    ip=None,
):
    """Build a node object as found in `kubectl get nodes -o json`."""
    item = {
        "metadata": {
            "name": name,
            "creationTimestamp": created,
            "labels": {f"node-role.kubernetes.io/{r}": "" for r in roles},
        },
        "spec": {"unschedulable": True} if unschedulable else {},
        "status": {
            "conditions": [{"type": "MemoryPressure", "status": "False"}],
            "nodeInfo": {"kubeletVersion": version},
            "addresses": [{"type": "InternalIP", "address": ip}] if ip else [],
        },
    }
    if ready is not None:
        item["status"]["conditions"].append({"type": "Ready", "status": ready})
    return item


class FakeKubectl:
    """
    subprocess.run stand-in for kubectl.

    clusters maps a context (None = current) to either a list of node items,
    or an exception to raise, or a (returncode, stderr) tuple.
    """

    def __init__(self, clusters):
        self.clusters = clusters
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        context = cmd[cmd.index("--context") + 1] if "--context" in cmd else None
        cluster = self.clusters[context]
        if isinstance(cluster, Exception):
            raise cluster
        if isinstance(cluster, tuple):
            returncode, stderr = cluster
            return subprocess.CompletedProcess(cmd, returncode, stdout="", stderr=stderr)

        args = cmd[cmd.index("get") + 1:]
        if args[0] == "nodes":
            body = {"apiVersion": "v1", "kind": "List", "items": cluster}
            return subprocess.CompletedProcess(cmd, 0, stdout=json.dumps(body), stderr="")

        name = args[1]
        for item in cluster:
            if item["metadata"]["name"] == name:
                return subprocess.CompletedProcess(cmd, 0, stdout=json.dumps(item), stderr="")
        return subprocess.CompletedProcess(
            cmd, 1, stdout="", stderr=f'Error from server (NotFound): nodes "{name}" not found'
        )


@pytest.fixture
def make_node():
    return node_item


@pytest.fixture
def fake_kubectl():
    return FakeKubectl
