import json
from pathlib import Path

import pytest

from extbuild.orchestrator.context import BuildContext
from extbuild.pipeline import build_registry
from extbuild.transforms import Transforms


def passthrough(source, path, **options):
    return source


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A minimal extension source tree."""
    write(tmp_path / "package.json", json.dumps({"name": "Foo", "version": "1.2.3", "description": "Demo"}))
    write(
        tmp_path / "src" / "manifest.json",
        '{\n  "manifest_version": 3,\n  "name": "<%= name %>",\n  "version": "<%= version %>"\n}\n',
    )
    write(tmp_path / "src" / "options.html", "<title><%= name %> options</title>\n")
    write(
        tmp_path / "src" / "js" / "background.js",
        'var util = require("./util");\nutil.greet();\n',
    )
    write(tmp_path / "src" / "js" / "util.js", 'exports.greet = function () { return "hi"; };\n')
    icon = tmp_path / "src" / "img" / "icons" / "icon16.png"
    icon.parent.mkdir(parents=True)
    icon.write_bytes(b"\x89PNG\r\n\x1a\n")
    write(tmp_path / "src" / "README.md", "# Demo\n\nSome *docs*.\n")
    return tmp_path


@pytest.fixture
def transforms() -> Transforms:
    return Transforms(script=passthrough)


@pytest.fixture
def ctx(project: Path, transforms: Transforms) -> BuildContext:
    return BuildContext.from_params({}, project_dir=project, transforms=transforms)


@pytest.fixture
def registry():
    return build_registry()
