"""
Design-token flattening.

A design kit is a DTCG-style tree: groups are mappings, leaves are mappings
carrying a ``$value``. ``$type`` may sit on the leaf or on any ancestor group
and is inherited downwards. Keys starting with ``$`` are metadata, never
children.

The raw mapping is parsed once into :class:`TokenGroup` / :class:`TokenLeaf`
so the walk below can match on node kind instead of probing for ``$value``.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Union

from .models import FlatToken

logger = logging.getLogger(__name__)

COLOR_TYPES = ("color",)
TYPOGRAPHY_TYPES = ("typography", "fontFamily", "fontWeight", "fontSize", "lineHeight", "letterSpacing")
SPACING_TYPES = ("dimension", "spacing", "sizing", "borderRadius", "borderWidth")
SHADOW_TYPES = ("shadow", "boxShadow")

PROMPT_SECTIONS = [
    ("BRAND COLORS", COLOR_TYPES),
    ("TYPOGRAPHY", TYPOGRAPHY_TYPES),
    ("SPACING", SPACING_TYPES),
    ("SHADOWS", SHADOW_TYPES),
]
OTHER_SECTION = "OTHER TOKENS"


@dataclass
class TokenLeaf:
    value: Any
    type: str | None = None


@dataclass
class TokenGroup:
    type: str | None = None
    children: dict[str, "TokenNode"] = field(default_factory=dict)


TokenNode = Union[TokenGroup, TokenLeaf]


def _own_type(node: Mapping) -> str | None:
    value = node.get("$type")
    return value if isinstance(value, str) and value else None


def _parse_children(node: Mapping) -> dict[str, "TokenNode"]:
    children: dict[str, TokenNode] = {}
    for key, value in node.items():
        if key.startswith("$") or not isinstance(value, Mapping):
            continue
        if "$value" in value:
            children[key] = TokenLeaf(value=value["$value"], type=_own_type(value))
        else:
            children[key] = TokenGroup(type=_own_type(value), children=_parse_children(value))
    return children


def parse_token_tree(tree: Mapping) -> TokenGroup:
    """Parse a raw token mapping into a group/leaf tree.

    The file itself is not a group: a ``$type`` at the top level is ignored.
    Non-mapping children (stray strings, lists) are not tokens and are dropped.
    """
    return TokenGroup(children=_parse_children(tree))


def _walk(group: TokenGroup, parent_path: str, inherited: str | None) -> Iterator[FlatToken]:
    effective = group.type or inherited
    for key, node in group.children.items():
        path = f"{parent_path}.{key}" if parent_path else key
        if isinstance(node, TokenLeaf):
            token_type = node.type or effective or "unknown"
            yield FlatToken(
                path=path,
                type=token_type,
                display_value=format_display_value(node.value, token_type),
                raw_value=node.value,
            )
        else:
            yield from _walk(node, path, effective)


def flatten(tree: Mapping | TokenGroup) -> list[FlatToken]:
    """Flatten a token tree into one :class:`FlatToken` per leaf, depth-first."""
    group = tree if isinstance(tree, TokenGroup) else parse_token_tree(tree)
    tokens = list(_walk(group, "", None))
    logger.debug("Flattened %d design tokens", len(tokens))
    return tokens


# Display values

def _to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    if value is None:
        return ""
    return _to_json(value)


def _format_typography(value: Any) -> str:
    if not isinstance(value, Mapping):
        return _stringify(value)
    parts = [_stringify(value[key]) for key in ("fontFamily", "fontSize", "fontWeight") if value.get(key)]
    if value.get("lineHeight"):
        parts.append("/" + _stringify(value["lineHeight"]))
    return " ".join(parts) or _to_json(value)


def _format_shadow(shadow: Any) -> str:
    if not isinstance(shadow, Mapping):
        return _stringify(shadow)
    parts = [
        _stringify(shadow[key])
        for key in ("offsetX", "offsetY", "blur", "spread", "color")
        if shadow.get(key)
    ]
    return " ".join(parts) or _to_json(shadow)


def format_display_value(value: Any, token_type: str) -> str:
    """Render a token value for humans, according to its type."""
    if value is None:
        return ""
    if token_type == "color":
        return value if isinstance(value, str) else _to_json(value)
    if token_type in ("typography", "fontFamily"):
        return _format_typography(value)
    if token_type in SPACING_TYPES:
        return _stringify(value)
    if token_type in SHADOW_TYPES:
        if isinstance(value, str):
            return value
        if isinstance(value, (list, tuple)):
            return ", ".join(_format_shadow(s) for s in value)
        if isinstance(value, Mapping):
            return _format_shadow(value)
        return _to_json(value)
    if token_type in ("fontWeight", "fontSize", "lineHeight", "letterSpacing"):
        return _stringify(value)
    return value if isinstance(value, str) else _to_json(value)


# Prompt rendering

def _section_for(token_type: str) -> str:
    for heading, types in PROMPT_SECTIONS:
        if token_type in types:
            return heading
    return OTHER_SECTION


def format_for_prompt(tokens: list[FlatToken]) -> str:
    """Render tokens as a plain-text block grouped into fixed sections."""
    sections: dict[str, list[str]] = {}
    for token in tokens:
        sections.setdefault(_section_for(token.type), []).append(
            f"- {token.path}: {token.display_value}"
        )

    lines: list[str] = []
    for heading in [h for h, _ in PROMPT_SECTIONS] + [OTHER_SECTION]:
        if sections.get(heading):
            lines.append(f"{heading}:")
            lines.extend(sections[heading])
            lines.append("")
    return "\n".join(lines).strip()


# Write-back

def set_value_at_path(tree: Mapping, path: str, new_value: Any) -> dict:
    """Return a deep copy of ``tree`` with ``$value`` replaced at a dot-path.

    The original is never touched. When the path walks off the tree the copy
    comes back unchanged; no error is raised.
    """
    clone = copy.deepcopy(dict(tree))
    segments = path.split(".")
    current: Any = clone
    for index, segment in enumerate(segments):
        node = current.get(segment)
        if index == len(segments) - 1:
            if isinstance(node, dict):
                node["$value"] = new_value
            else:
                logger.debug("No token at %s; value not written", path)
        elif isinstance(node, dict):
            current = node
        else:
            logger.debug("Token path %s stops at %r", path, segment)
            break
    return clone
