"""CommonJS bundler for extension scripts.

Starting from the entry points, every module is read, passed through the script
transform (Babel by default, which also rewrites ES `import` into `require`), and
tokenized to find its `require("...")` calls. Calls inside comments or string
literals are not dependencies. The resolved closure is emitted as a single
self-executing bundle in the browserify layout:

    (prelude)({id: [function (require, module, exports) {...}, {"./dep": id}]}, [entry ids])

A transform may append an inline source map comment to the code it returns. The
bundler strips those per-module comments and, when `source_maps` is set, appends
one inline index map whose sections point at each module's place in the bundle.
"""

from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

import dukpy
import esprima

from ..orchestrator.core import TransformError


ScriptTransform = Callable[[str, Path], str]

_INLINE_MAP_RE = re.compile(
    r"\n?//# sourceMappingURL=data:application/json;(?:charset=utf-8;)?base64,([A-Za-z0-9+/=]+)\s*$"
)

_PRELUDE = """(function (modules, entries) {
  var cache = {};
  function load(id) {
    if (cache[id]) return cache[id].exports;
    var module = cache[id] = { exports: {} };
    var def = modules[id];
    def[0].call(module.exports, function (name) {
      var dep = def[1][name];
      if (dep === undefined) throw new Error("Cannot find module '" + name + "'");
      return load(dep);
    }, module, module.exports);
    return module.exports;
  }
  for (var i = 0; i < entries.length; i++) load(entries[i]);
})"""


def inline_source_map(source_map: dict) -> str:
    data = base64.b64encode(json.dumps(source_map).encode("utf-8")).decode("ascii")
    return f"//# sourceMappingURL=data:application/json;charset=utf-8;base64,{data}"


def split_inline_source_map(code: str) -> tuple[str, dict | None]:
    """Split a trailing inline source map comment off `code`."""
    match = _INLINE_MAP_RE.search(code)
    if not match:
        return code, None
    try:
        source_map = json.loads(base64.b64decode(match.group(1)))
    except ValueError:
        return code, None
    return code[: match.start()], source_map


def babel_transform(
    source: str,
    path: Path,
    presets: Iterable[str] = ("es2015",),
    source_maps: bool = False,
) -> str:
    """Downlevel-compile one module with Babel (via dukpy).

    With `source_maps`, the module's map is appended as an inline comment.
    """
    options = {"presets": list(presets)}
    if source_maps:
        options["sourceMaps"] = True
    try:
        result = dukpy.babel_compile(source, **options)
    except dukpy.JSRuntimeError as e:
        raise TransformError(f"{path}: {e}") from e
    code = result["code"]
    source_map = result.get("map")
    if source_maps and source_map:
        source_map = dict(source_map, sources=[Path(path).name], sourcesContent=[source])
        code = f"{code}\n{inline_source_map(source_map)}"
    return code


def find_requires(code: str, path: Path) -> list[str]:
    """Specifiers of the `require("...")` calls in `code`, in source order."""
    try:
        tokens = esprima.tokenize(code)
    except Exception as e:  # noqa: BLE001
        raise TransformError(f"{path}: could not scan module: {e}") from e
    found: list[str] = []
    for i in range(len(tokens) - 3):
        name, lparen, arg, rparen = tokens[i : i + 4]
        if name.type != "Identifier" or name.value != "require":
            continue
        # `obj.require(...)` is a method call, not a module import
        if i and tokens[i - 1].value == ".":
            continue
        if lparen.value == "(" and arg.type == "String" and rparen.value == ")":
            found.append(arg.value[1:-1])
    return found


@dataclass
class _Module:
    id: int
    path: Path
    code: str
    deps: dict[str, int] = field(default_factory=dict)
    source_map: dict | None = None


def _candidates(base: Path) -> list[Path]:
    out = [base, base.with_name(base.name + ".js"), base.with_name(base.name + ".json")]
    pkg = base / "package.json"
    if pkg.is_file():
        try:
            main = json.loads(pkg.read_text(encoding="utf-8")).get("main")
        except ValueError:
            main = None
        if main:
            out.extend(_candidates(base / main))
    out.append(base / "index.js")
    return out


def _first_file(base: Path) -> Path | None:
    for c in _candidates(base):
        if c.is_file():
            return c.resolve()
    return None


def resolve_module(specifier: str, from_file: Path, root: Path) -> Path:
    """Resolve a require() specifier the way Node does for files and node_modules."""
    if specifier.startswith(("./", "../", "/")) or specifier in (".", ".."):
        found = _first_file((from_file.parent / specifier))
        if found:
            return found
    else:
        root = root.resolve()
        for directory in [from_file.parent, *from_file.parent.parents]:
            found = _first_file(directory / "node_modules" / specifier)
            if found:
                return found
            if directory.resolve() == root:
                break
    raise TransformError(f"Cannot find module '{specifier}' from '{from_file.parent}'")


def _load(path: Path, transform: ScriptTransform) -> str:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TransformError(f"Could not read module {path}: {e}") from e
    if path.suffix == ".json":
        try:
            json.loads(text)
        except ValueError as e:
            raise TransformError(f"{path}: invalid JSON module: {e}") from e
        return f"module.exports = {text.strip()};"
    return transform(text, path)


def bundle_modules(
    entries: Iterable[Path],
    *,
    transform: ScriptTransform,
    root: Path,
    source_maps: bool = False,
) -> str:
    """Bundle the dependency closure of `entries` and return the bundle source."""
    root = Path(root).resolve()
    modules: dict[Path, _Module] = {}
    entry_ids: list[int] = []
    queue: list[Path] = []

    def add(path: Path) -> int:
        if path not in modules:
            modules[path] = _Module(id=len(modules) + 1, path=path, code="")
            queue.append(path)
        return modules[path].id

    for entry in entries:
        entry_ids.append(add(Path(entry).resolve()))

    while queue:
        mod = modules[queue.pop(0)]
        mod.code, mod.source_map = split_inline_source_map(_load(mod.path, transform))
        if mod.path.suffix == ".json":
            continue
        for spec in find_requires(mod.code, mod.path):
            if spec not in mod.deps:
                mod.deps[spec] = add(resolve_module(spec, mod.path, root))

    out = [f"{_PRELUDE}({{\n"]
    line = out[0].count("\n")
    sections = []
    for n, mod in enumerate(sorted(modules.values(), key=lambda m: m.id)):
        head = (",\n" if n else "") + f"{mod.id}: [function (require, module, exports) {{\n"
        line += head.count("\n")
        if mod.source_map is not None:
            try:
                rel = mod.path.relative_to(root).as_posix()
            except ValueError:
                rel = mod.path.as_posix()
            sections.append(
                {"offset": {"line": line, "column": 0}, "map": dict(mod.source_map, sources=[rel])}
            )
        body = f"{mod.code}\n}}, {json.dumps(mod.deps, sort_keys=True)}]"
        line += body.count("\n")
        out.append(head + body)
    out.append(f"\n}}, {json.dumps(entry_ids)});\n")
    bundle = "".join(out)
    if source_maps and sections:
        bundle += inline_source_map({"version": 3, "sections": sections}) + "\n"
    return bundle
