"""
kubectl adapter.

All cluster access goes through the kubectl binary so gimme uses exactly the
kubeconfig, contexts and credentials the operator already has.
"""

import json
import logging
import subprocess
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from gimme.core.errors import AdapterError, KubectlTimeoutError, NodeNotFound
from gimme.kube.models import KubeNode, node_from_item

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


class KubectlAdapter:
    """
    Runs kubectl with a timeout and parses its JSON output.

    Usage:
        adapter = KubectlAdapter(timeout=5.0)
        nodes = adapter.list_nodes(context="prod-east")
    """

    def __init__(
        self,
        kubectl: str = "kubectl",
        timeout: float = 5.0,
        runner: Optional[Runner] = None,
    ):
        """
        Initialize adapter.

        Args:
            kubectl: kubectl executable
            timeout: Seconds before a call is abandoned
            runner: subprocess.run compatible callable (injected in tests)
        """
        self.kubectl = kubectl
        self.timeout = timeout
        self.runner = runner or subprocess.run

    def _run_json(self, args: List[str], context: Optional[str] = None) -> Dict[str, Any]:
        """
        Run kubectl and decode its stdout as JSON.

        Raises:
            KubectlTimeoutError: If the call exceeds the timeout
            AdapterError: Non-zero exit (stderr is passed through verbatim),
                missing binary, or unparseable output
        """
        cmd = [self.kubectl]
        if context:
            cmd += ["--context", context]
        cmd += args
        logger.debug(f"Running {' '.join(cmd)} (timeout {self.timeout:g}s)")

        try:
            result = self.runner(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            raise KubectlTimeoutError(
                f"kubectl timed out after {self.timeout:g}s: {' '.join(cmd)}"
            ) from None
        except FileNotFoundError:
            raise AdapterError(f"kubectl executable not found: {self.kubectl}") from None
        except OSError as e:
            raise AdapterError(f"Failed to run kubectl: {e}") from e

        if result.returncode != 0:
            message = (result.stderr or result.stdout or "").strip()
            raise AdapterError(message or f"kubectl exited with status {result.returncode}")

        try:
            payload = json.loads(result.stdout)
        except (TypeError, json.JSONDecodeError) as e:
            raise AdapterError(f"Unparseable kubectl output: {e}") from e
        if not isinstance(payload, dict):
            raise AdapterError("Unparseable kubectl output: expected a JSON object")
        return payload

    def list_nodes(
        self, context: Optional[str] = None, now: Optional[datetime] = None
    ) -> List[KubeNode]:
        """
        List every node with status, version and age.

        Args:
            context: Kube context (default: kubectl's current context)
            now: Reference time for ages
        """
        payload = self._run_json(["get", "nodes", "-o", "json"], context=context)
        items = payload.get("items")
        if not isinstance(items, list):
            raise AdapterError("Unparseable kubectl output: missing 'items' list")
        nodes = [_parse_node(item, context, now) for item in items]
        logger.debug(f"kubectl returned {len(nodes)} node(s) for context {context or '(current)'}")
        return nodes

    def get_node(
        self, name: str, context: Optional[str] = None, now: Optional[datetime] = None
    ) -> KubeNode:
        """
        Fetch one node.

        Raises:
            NodeNotFound: If the cluster has no node with this name
        """
        try:
            payload = self._run_json(["get", "node", name, "-o", "json"], context=context)
        except KubectlTimeoutError:
            raise
        except AdapterError as e:
            if "NotFound" in str(e):
                raise NodeNotFound(name, where=f"cluster {context}" if context else "cluster") from None
            raise
        return _parse_node(payload, context, now)


def _parse_node(item: Any, context: Optional[str], now: Optional[datetime]) -> KubeNode:
    """node_from_item, with malformed objects reported as AdapterError."""
    if not isinstance(item, dict):
        raise AdapterError(f"Unparseable kubectl output: node is a {type(item).__name__}, not an object")
    try:
        return node_from_item(item, context=context, now=now)
    except (AttributeError, TypeError, ValueError) as e:
        name = item.get("metadata", {}).get("name") if isinstance(item.get("metadata"), dict) else None
        raise AdapterError(f"Unparseable kubectl output for node {name or '?'}: {e}") from e
