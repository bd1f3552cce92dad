"""
Record name templates.

Rules name their records with a small template language modelled on the Go
template actions used in rule files, e.g. ``instance-{{ .Id }}-asg1``. Only
the fields an instance declares are reachable:

    {{ .Id }}, {{ .PublicIp }}, {{ .PrivateIp }}, {{ .Running }}
    {{ .Tags.Name }} or {{ index .Tags "aws:cloudformation:stack-name" }}
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from auto53.models.errors import TemplateError

SCALAR_FIELDS = ("Id", "PublicIp", "PrivateIp", "Running")
TAGS_FIELD = "Tags"

_ACTION_OPEN = "{{"
_ACTION_CLOSE = "}}"

_FIELD_RE = re.compile(r"^\.(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?:\.(?P<key>[^\s.]+))?$")
_INDEX_RE = re.compile(r'^index\s+\.Tags\s+"(?P<key>[^"]*)"$')


@dataclass(frozen=True)
class FieldRef:
    """Reference to an instance field, or to one of its tags when ``key`` is set."""

    field: str
    key: Optional[str] = None

    def resolve(self, fields: Dict[str, object], source: str) -> str:
        if self.key is None:
            value = fields.get(self.field)
            if value is None:
                raise TemplateError(f"instance does not carry field '{self.field}'", source)
            if isinstance(value, bool):
                return "true" if value else "false"
            return str(value)

        tags = fields.get(TAGS_FIELD) or {}
        if self.key not in tags:
            raise TemplateError(f"instance has no tag '{self.key}'", source)
        return str(tags[self.key])


Part = Union[str, FieldRef]


class NameTemplate:
    """
    A compiled record name template.
    """

    def __init__(self, source: str, parts: List[Part]):
        self.source = source
        self.parts = parts

    @classmethod
    def compile(cls, source: str) -> "NameTemplate":
        """
        Parse a template string.

        Args:
            source: Template text

        Returns:
            NameTemplate: Compiled template

        Raises:
            TemplateError: If the template is malformed or references an unknown field
        """
        if not source:
            raise TemplateError("record template is empty", source)

        parts: List[Part] = []
        position = 0
        while position < len(source):
            start = source.find(_ACTION_OPEN, position)
            if start < 0:
                parts.append(cls._literal(source[position:], source))
                break

            if start > position:
                parts.append(cls._literal(source[position:start], source))

            end = source.find(_ACTION_CLOSE, start + len(_ACTION_OPEN))
            if end < 0:
                raise TemplateError(f"unclosed action at offset {start}", source)

            expression = source[start + len(_ACTION_OPEN) : end]
            parts.append(cls._parse_action(expression, source))
            position = end + len(_ACTION_CLOSE)

        return cls(source, [part for part in parts if part != ""])

    @staticmethod
    def _literal(text: str, source: str) -> str:
        if _ACTION_CLOSE in text:
            raise TemplateError(f"unexpected '{_ACTION_CLOSE}' in '{text}'", source)
        return text

    @staticmethod
    def _parse_action(expression: str, source: str) -> FieldRef:
        expression = expression.strip()
        if not expression:
            raise TemplateError("empty action", source)

        match = _INDEX_RE.match(expression)
        if match:
            return FieldRef(TAGS_FIELD, match.group("key"))

        match = _FIELD_RE.match(expression)
        if not match:
            raise TemplateError(f"unsupported expression '{expression}'", source)

        name, key = match.group("field"), match.group("key")
        if name == TAGS_FIELD:
            if key is None:
                raise TemplateError("'.Tags' must be followed by a tag key", source)
            return FieldRef(TAGS_FIELD, key)

        if name not in SCALAR_FIELDS:
            raise TemplateError(f"unknown field '{name}'", source)
        if key is not None:
            raise TemplateError(f"field '{name}' has no attribute '{key}'", source)
        return FieldRef(name)

    @property
    def fields(self) -> Tuple[FieldRef, ...]:
        """Field references used by the template."""
        return tuple(part for part in self.parts if isinstance(part, FieldRef))

    def is_constant(self) -> bool:
        """True when every instance renders to the same name."""
        return not self.fields

    def render(self, fields: Dict[str, object]) -> str:
        """
        Render the template against an instance's fields.

        Args:
            fields: Mapping returned by ``Instance.template_fields()``

        Returns:
            str: Rendered name

        Raises:
            TemplateError: If a referenced value is missing
        """
        rendered = []
        for part in self.parts:
            if isinstance(part, FieldRef):
                rendered.append(part.resolve(fields, self.source))
            else:
                rendered.append(part)
        return "".join(rendered)

    def __repr__(self) -> str:
        return f"NameTemplate({self.source!r})"
