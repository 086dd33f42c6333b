import json
import zipfile

import pytest

from extbuild.orchestrator.context import BuildContext
from extbuild.orchestrator.core import MissingInputError, RenderError, TaskError
from extbuild.transforms import Transforms
from extbuild.transforms.bundler import inline_source_map, split_inline_source_map

from conftest import passthrough, write


def test_clean_is_idempotent(ctx, registry):
    build = ctx.output.root
    write(build / "stale.txt", "old")
    registry.run("clean", ctx)
    assert not build.exists()
    registry.run("clean", ctx.fresh())
    assert not build.exists()


def test_clean_refuses_to_delete_project(project):
    ctx = BuildContext.from_params({"project": {"build_dir": "."}}, project_dir=project)
    with pytest.raises(TaskError, match="Refusing"):
        ctx.output.clear(ctx.project_dir)
    assert (project / "package.json").exists()


def test_copy_images_mirrors_paths(ctx, registry, project):
    write(project / "src" / "img" / "notes.txt", "not an icon")
    registry.run("copy-images", ctx)
    copied = ctx.output.root / "img" / "icons" / "icon16.png"
    assert copied.read_bytes() == b"\x89PNG\r\n\x1a\n"
    assert not (ctx.output.root / "img" / "notes.txt").exists()


def test_copy_images_does_not_prune(ctx, registry):
    orphan = write(ctx.output.root / "img" / "icons" / "old.png", "x")
    registry.run("copy-images", ctx)
    assert orphan.exists()


def test_manifest_metadata_propagation(ctx, registry):
    registry.run("process-manifest-and-html", ctx)
    manifest = json.loads((ctx.output.root / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["name"] == "Foo"
    assert manifest["version"] == "1.2.3"
    html = (ctx.output.root / "options.html").read_text(encoding="utf-8")
    assert html == "<title>Foo options</title>\n"


def test_manifest_missing_source_is_hard_failure(ctx, registry, project):
    (project / "src" / "options.html").unlink()
    with pytest.raises(MissingInputError, match="options.html"):
        registry.run("process-manifest-and-html", ctx)


def test_manifest_rendered_json_must_parse(ctx, registry, project):
    write(project / "src" / "manifest.json", '{"name": <%= name %>}')
    with pytest.raises(RenderError, match="not valid JSON"):
        registry.run("process-manifest-and-html", ctx)


def test_metadata_read_once_per_invocation(project):
    calls = []

    def counting(path):
        calls.append(path)
        return {"name": "Foo", "version": "1.2.3"}

    ctx = BuildContext.from_params(
        {}, project_dir=project, transforms=Transforms(script=passthrough, metadata=counting)
    )
    ctx.metadata()
    ctx.metadata()
    assert len(calls) == 1
    ctx.fresh().metadata()
    assert len(calls) == 2


def test_process_markdown(ctx, registry, project):
    write(project / "src" / "guide" / "usage.md", "## Usage\n")
    registry.run("process-markdown", ctx)
    docs = ctx.output.root / "docs"
    assert "<h1>Demo</h1>" in (docs / "README.html").read_text(encoding="utf-8")
    assert "<h2>Usage</h2>" in (docs / "guide" / "usage.html").read_text(encoding="utf-8")


def test_bundle_js_writes_bundle(ctx, registry):
    registry.run("bundle-js", ctx)
    bundle = (ctx.output.root / "js" / "background.js").read_text(encoding="utf-8")
    assert 'exports.greet = function () { return "hi"; };' in bundle
    assert '{"./util": 2}' in bundle
    assert ctx.state.status_of("bundle-js") == "ok"


def test_bundle_js_missing_entry_is_hard_failure(ctx, registry, project):
    (project / "src" / "js" / "background.js").unlink()
    with pytest.raises(MissingInputError, match="background.js"):
        registry.run("bundle-js", ctx)


def test_bundle_js_multiple_targets(project, transforms, registry):
    write(project / "src" / "js" / "popup.js", "module.exports = 3;\n")
    params = {
        "bundle": {
            "targets": [
                {"entries": ["src/js/background.js"], "output": "js/background.js"},
                {"entries": ["src/js/popup.js"], "output": "js/popup.js"},
            ]
        }
    }
    ctx = BuildContext.from_params(params, project_dir=project, transforms=transforms)
    registry.run("bundle-js", ctx)
    assert (ctx.output.root / "js" / "background.js").exists()
    assert (ctx.output.root / "js" / "popup.js").exists()


def test_create_dist_archives_build_tree(ctx, registry):
    write(ctx.output.root / "a", "A")
    write(ctx.output.root / "b" / "c", "C")
    registry.run("create-dist", ctx)
    with zipfile.ZipFile(ctx.dist_dir / "chrome-extension.zip") as zf:
        assert sorted(zf.namelist()) == ["a", "b/c"]


def test_create_dist_without_build(ctx, registry):
    with pytest.raises(MissingInputError):
        registry.run("create-dist", ctx)


def test_bundle_js_ignores_commented_require(ctx, registry, project):
    write(project / "src" / "js" / "background.js", '// require("./legacy")\nvar x = 1;\n')
    registry.run("build-code", ctx)
    assert ctx.state.status_of("bundle-js") == "ok"
    assert "var x = 1;" in (ctx.output.root / "js" / "background.js").read_text(encoding="utf-8")


def _mapped(source, path, presets=(), source_maps=False):
    if not source_maps:
        return source
    return source + inline_source_map({"version": 3, "sources": [path.name], "names": [], "mappings": "AAAA"})


def test_bundle_js_inline_source_map_by_default(project, registry):
    ctx = BuildContext.from_params({}, project_dir=project, transforms=Transforms(script=_mapped))
    registry.run("bundle-js", ctx)
    bundle = (ctx.output.root / "js" / "background.js").read_text(encoding="utf-8")
    _, index = split_inline_source_map(bundle)
    assert [s["map"]["sources"] for s in index["sections"]] == [["src/js/background.js"], ["src/js/util.js"]]


def test_bundle_js_debug_off_has_no_source_map(project, registry):
    params = {"bundle": {"debug": False}}
    ctx = BuildContext.from_params(params, project_dir=project, transforms=Transforms(script=_mapped))
    registry.run("bundle-js", ctx)
    bundle = (ctx.output.root / "js" / "background.js").read_text(encoding="utf-8")
    assert "sourceMappingURL" not in bundle


def test_manifest_jinja_delimiters_from_config(project, transforms, registry):
    write(project / "src" / "manifest.json", '{"name": "{{ name }}", "homepage": "{{ homepage }}"}\n')
    params = {"manifest": {"delimiters": ["{{", "}}"]}}
    ctx = BuildContext.from_params(params, project_dir=project, transforms=transforms)
    registry.run("process-manifest-and-html", ctx)
    manifest = json.loads((ctx.output.root / "manifest.json").read_text(encoding="utf-8"))
    assert manifest == {"name": "Foo", "homepage": "{{ homepage }}"}
