"""Terminal output helpers (ANSI; works on Windows 10/11 terminals, Linux, macOS)."""

from .models import FlatToken, PlatformInfo, SitemapData, SitemapNode
from .sitemap import Annotation


def color256(code: int, text: str) -> str:
    """256-color ANSI code"""
    return f"\033[38;5;{code}m{text}\033[0m"


def bold(text: str) -> str:
    return f"\033[1m{text}\033[0m"


def dim(text: str) -> str:
    return color256(246, text)


def green(text: str) -> str:
    return f"\033[32m{text}\033[0m"


def yellow(text: str) -> str:
    return f"\033[33m{text}\033[0m"


def red(text: str) -> str:
    return f"\033[31m{text}\033[0m"


def hr_line(width: int = 63) -> str:
    return "─" * width


PRIORITY_COLORS = {"high": 46, "medium": 220, "low": 196}
CONFIDENCE_COLORS = {"high": green, "medium": yellow, "low": red}


def _node_badges(node: SitemapNode, variant: str) -> list[str]:
    meta = node.metadata
    badges = []
    if node.has_content and variant == "current":
        badges.append(dim("[scraped]"))
    if variant == "recommended" and meta is not None:
        if meta.priority:
            badges.append(color256(PRIORITY_COLORS[meta.priority], "●"))
        if meta.is_new:
            badges.append(green("NEW"))
        if meta.is_removed:
            badges.append(red("REMOVE"))
        if meta.is_moved:
            badges.append(color256(208, "MOVED"))
    return badges


def render_tree(node: SitemapNode, variant: str = "current", prefix: str = "", last: bool = True,
                is_root: bool = True) -> list[str]:
    """Draw a sitemap tree with box-drawing branches, one node per line."""
    label = node.label
    if variant == "recommended" and node.metadata and node.metadata.is_removed:
        label = red(label)
    line = " ".join([bold(label), dim(node.path)] + _node_badges(node, variant))
    if is_root:
        lines = [line]
        child_prefix = ""
    else:
        lines = [f"{prefix}{'└─ ' if last else '├─ '}{line}"]
        child_prefix = prefix + ("   " if last else "│  ")
    meta = node.metadata
    if variant == "recommended" and meta is not None:
        note_prefix = child_prefix + ("   " if not node.children else "│  ")
        if meta.is_moved and meta.moved_from:
            lines.append(note_prefix + color256(208, f"Moved from: {meta.moved_from}"))
        if meta.notes:
            lines.append(note_prefix + dim(meta.notes))
    for i, child in enumerate(node.children):
        lines.extend(render_tree(child, variant, child_prefix, i == len(node.children) - 1, False))
    return lines


def render_sitemap(data: SitemapData, variant: str = "current") -> str:
    lines = [
        f"{bold('Sitemap')} {data.project_url}  "
        f"{green(str(data.total_pages))} nodes, depth {green(str(data.max_depth))}",
        hr_line(),
    ]
    lines.extend(render_tree(data.root_node, variant))
    if data.ai_rationale:
        lines += ["", bold("Rationale"), data.ai_rationale]
    if data.key_changes:
        lines += ["", bold("Key changes")] + [f"  - {change}" for change in data.key_changes]
    return "\n".join(lines)


def render_annotations(annotations: list[Annotation]) -> str:
    if not annotations:
        return dim("No recommended changes.")
    lines = []
    for a in annotations:
        changes = ", ".join(c.upper() for c in a.changes) or "KEEP"
        line = f"  {yellow(changes):<20} {a.path}"
        if a.moved_from:
            line += dim(f" (from {a.moved_from})")
        if a.priority:
            line += f" [{a.priority}]"
        lines.append(line)
    return "\n".join(lines)


def render_platform(info: PlatformInfo) -> str:
    paint = CONFIDENCE_COLORS[info.confidence]
    lines = [f"{bold('Platform:')}   {bold(info.platform)} ({paint(info.confidence)} confidence)"]
    for signal in info.signals:
        lines.append(f"  {green('✓')} {signal}")
    if info.shopify_details:
        d = info.shopify_details
        lines.append(f"{bold('Theme:')}      {d.theme_name or '?'}" + (dim(f" (id {d.theme_id})") if d.theme_id else ""))
        for template in d.templates:
            lines.append(f"  template-{template.name}: {template.count} page(s)")
    if info.wordpress_details:
        d = info.wordpress_details
        lines.append(f"{bold('Theme:')}      {d.theme_name or '?'}")
        if d.plugins:
            lines.append(f"{bold('Plugins:')}    {', '.join(d.plugins)}")
    return "\n".join(lines)


def render_tokens(tokens: list[FlatToken]) -> str:
    width = max((len(t.path) for t in tokens), default=0)
    return "\n".join(f"  {t.path:<{width}}  {dim(t.type):<20} {t.display_value}" for t in tokens)
