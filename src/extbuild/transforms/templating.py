"""
templating.py

Render placeholders in manifest/HTML sources with Jinja2.

Placeholders default to the lodash form `<%= key %>`; other delimiters (for
example Jinja's own `{{ key }}`) can be passed in. Unknown placeholders, including
attribute or item lookups on them (`<%= author.name %>`), are written back
unchanged unless `strict` is set, in which case they fail the render.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping, Sequence

from jinja2 import Environment, StrictUndefined, TemplateError, Undefined

from ..orchestrator.core import RenderError


DEFAULT_DELIMITERS = ("<%=", "%>")


class PassthroughUndefined(Undefined):
    """Renders back as the placeholder it came from."""

    __slots__ = ()
    start = "{{"
    end = "}}"

    def _expression(self) -> str:
        return self._undefined_name or ""

    def __str__(self) -> str:
        return f"{self.start} {self._expression()} {self.end}"

    def __getattr__(self, name: str) -> "PassthroughUndefined":
        # Jinja and markupsafe look these up with hasattr; they must stay missing.
        if name.startswith(("_", "jinja_")):
            raise AttributeError(name)
        return type(self)(name=f"{self._expression()}.{name}")

    def __getitem__(self, key: Any) -> "PassthroughUndefined":
        return type(self)(name=f"{self._expression()}[{key!r}]")


@lru_cache(maxsize=None)
def _passthrough(start: str, end: str) -> type:
    return type("PassthroughUndefined", (PassthroughUndefined,), {"__slots__": (), "start": start, "end": end})


def _environment(strict: bool, delimiters: tuple[str, str]) -> Environment:
    start, end = delimiters
    return Environment(
        autoescape=False,
        undefined=StrictUndefined if strict else _passthrough(start, end),
        keep_trailing_newline=True,
        variable_start_string=start,
        variable_end_string=end,
    )


def render_template(
    text: str,
    context: Mapping[str, Any],
    *,
    strict: bool = False,
    name: str | None = None,
    delimiters: Sequence[str] = DEFAULT_DELIMITERS,
) -> str:
    start, end = delimiters
    try:
        template = _environment(strict, (start, end)).from_string(text)
        return template.render(**dict(context))
    except TemplateError as e:
        raise RenderError(f"Failed rendering template file: {name or '<string>'}: {e}") from e
