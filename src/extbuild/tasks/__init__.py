"""Task modules live here.

Each module declares its task(s) with `@orchestrator.task(name=...)`; the functions
receive the `BuildContext` of the running invocation. Keep tasks thin: file
transforms belong in `extbuild.transforms`.
"""
