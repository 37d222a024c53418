"""Shared helpers for the test-suite.

Provides a small sandbox that writes configuration fragments into a temporary
directory, plus a few ready-made documents in both the HCL and the JSON shape
so scenarios can exercise the loaders and the decoder the same way the daemon
does.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

MINIMAL_TASK_HCL = """
task {
  name   = "web"
  module = "org/web/module"
  condition "services" {
    names = ["web"]
  }
}
"""

CATALOG_TASK_JSON: dict[str, Any] = {
    "task": [
        {
            "name": "catalog",
            "module": "org/catalog/module",
            "condition": {
                "catalog-services": {
                    "regexp": ".*",
                    "source_includes_var": True,
                    "datacenter": "dc2",
                    "namespace": "ns2",
                    "node_meta": {"key1": "value1"},
                }
            },
        }
    ]
}


@dataclass
class ConfigSandbox:
    """Directory holding configuration fragments for a single test."""

    root: Path

    def write(self, relative: str, content: str) -> Path:
        """Write *content* below the sandbox root, creating parent directories."""

        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return target

    def write_json(self, relative: str, payload: Mapping[str, Any]) -> Path:
        return self.write(relative, json.dumps(payload))

    @property
    def working_dir(self) -> str:
        return str(self.root)


def create_config_sandbox(tmp_path: Path) -> ConfigSandbox:
    """Return a sandbox rooted at ``tmp_path / "config"``."""

    root = tmp_path / "config"
    root.mkdir(parents=True, exist_ok=True)
    return ConfigSandbox(root=root)
