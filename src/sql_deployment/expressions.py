"""
Deferred, context-parameterised values.

An `Expression` holds a `str.format`-style template that is only expanded at
compile time, once the ambient state at its position in the tree is known:

    Expression("{instance_name}_audit").expand(context)

Fields
------
- `instance_name`, `database_name`, `publication_name` read the matching
  CompileContext attribute.
- Any other field name reads `CompileContext.variables`.
- `{{` and `}}` produce literal braces.

Expansion is pure: no I/O, and the same context always yields the same value.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.sql_deployment.errors import ResolutionError

if TYPE_CHECKING:
    from src.sql_deployment.context import CompileContext

_FORMATTER = string.Formatter()


@dataclass(frozen=True)
class Expression:
    """A template resolved against a CompileContext."""

    template: str

    @property
    def fields(self) -> tuple[str, ...]:
        """Field names referenced by the template, in order of appearance."""
        return tuple(
            field_name
            for _, field_name, _, _ in self._parse()
            if field_name is not None
        )

    def expand(self, context: CompileContext) -> str:
        """Resolve every field against `context` and return the rendered value."""
        parts: list[str] = []
        for literal_text, field_name, format_spec, conversion in self._parse():
            parts.append(literal_text)
            if field_name is None:
                continue
            if format_spec or conversion:
                raise ResolutionError(
                    f"Expression {self.template!r}: format specifiers are not supported "
                    f"(field {field_name!r})."
                )
            parts.append(self._resolve(field_name, context))
        return "".join(parts)

    def _parse(self) -> list[tuple[str, str | None, str | None, str | None]]:
        try:
            return list(_FORMATTER.parse(self.template))
        except ValueError as error:
            raise ResolutionError(f"Expression {self.template!r} is malformed: {error}") from error

    def _resolve(self, field_name: str, context: CompileContext) -> str:
        if not field_name.isidentifier():
            raise ResolutionError(
                f"Expression {self.template!r}: invalid field reference {field_name!r}."
            )
        value = context.lookup(field_name)
        if value is None:
            raise ResolutionError(
                f"Expression {self.template!r} references {field_name!r}, "
                "but no value is in scope."
            )
        return value

    def __str__(self) -> str:
        return self.template


def expand_optional(expression: Expression | None, context: CompileContext) -> str | None:
    """Expand `expression`, passing None through unchanged."""
    return None if expression is None else expression.expand(context)
