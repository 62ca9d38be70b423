"""Write example workspaces to a real directory."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


def write_workspace(root: Path, files: Mapping[str, object]) -> None:
    """Write ``files`` below ``root``; mappings are dumped as JSON."""

    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        text = content if isinstance(content, str) else json.dumps(content, indent=2) + "\n"
        path.write_text(text)


def read_json(root: Path, relative: str) -> dict[str, object]:
    return json.loads((root / relative).read_text())


EXAMPLE_WORKSPACE: dict[str, object] = {
    "package.json": {"name": "example", "private": True, "workspaces": ["packages/*", "apps/*"]},
    "tsconfig.json": {"compilerOptions": {"composite": True}, "references": []},
    "monosync.config.json": {
        "workspaceTypes": {
            "apps/*": {"type": "app"},
            "packages/*": {"type": "shared-package", "enforceNamePrefix": "@example/"},
        }
    },
    "packages/utils/package.json": {"name": "@example/utils", "version": "1.0.0"},
    "packages/utils/src/index.ts": "export const capitalize = (s: string) => s;\n",
    "packages/ui/package.json": {"name": "@example/ui", "version": "1.0.0"},
    "packages/ui/src/index.ts": 'import { capitalize } from "@example/utils";\n',
    "apps/web/package.json": {
        "name": "@example/web",
        "dependencies": {"react": "^18.2.0"},
    },
    "apps/web/src/main.tsx": (
        'import React from "react";\n'
        'import { Button } from "@example/ui";\n'
        'import { capitalize } from "@example/utils/strings";\n'
    ),
}
