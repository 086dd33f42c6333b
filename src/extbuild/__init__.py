"""Build pipeline for packaging a browser extension.

`extbuild.orchestrator` holds the task/sequence primitives, the watcher and the CLI;
`extbuild.tasks` holds the named build steps; `extbuild.transforms` holds the file
transforms (templating, bundling, Markdown, zip) the steps delegate to.
"""

__version__ = "0.1.0"
