"""Logic-structure tree traversal, layout and rendering.

The tree comes straight from the model's reply, so its depth is not
bounded by anything but the prompt. Every traversal here uses an
explicit stack and stops at ``max_depth`` levels; deeper branches are
truncated (and flagged), never rejected.
"""

from dataclasses import dataclass, field
from html import escape
from typing import Iterator, Optional

from rich.text import Text
from rich.tree import Tree

from miaobi.llm.schema import StructureNode

DEFAULT_MAX_DEPTH = 8

NODE_COLORS = {
    "root": "#3b82f6",  # blue-500
    "main_point": "#10b981",  # emerald-500
    "sub_point": "#8b5cf6",  # violet-500
    "conclusion": "#f59e0b",  # amber-500
}
DEFAULT_NODE_COLOR = "#64748b"  # slate-500
LINK_COLOR = "#cbd5e1"  # slate-300

LABEL_MAX_CHARS = 15


def node_color(node_type: str) -> str:
    """Display colour for a node type."""
    return NODE_COLORS.get(node_type, DEFAULT_NODE_COLOR)


def short_label(name: str, max_chars: int = LABEL_MAX_CHARS) -> str:
    """Shorten a node name for compact display."""
    return name if len(name) <= max_chars else name[:max_chars] + "..."


@dataclass
class WalkItem:
    """A node visited by ``walk``.

    Attributes:
        node: The tree node
        depth: Depth below the root (root = 0)
        parent: Index of the parent in walk order, None for the root
        truncated: True if this node has children beyond the depth cap
    """

    node: StructureNode
    depth: int
    parent: Optional[int] = None
    truncated: bool = False


def walk(root: StructureNode, max_depth: int = DEFAULT_MAX_DEPTH) -> Iterator[WalkItem]:
    """Visit the tree in pre-order, at most ``max_depth`` levels deep."""
    if max_depth < 1:
        raise ValueError("max_depth must be at least 1")

    index = 0
    stack: list[tuple[StructureNode, int, Optional[int]]] = [(root, 0, None)]
    while stack:
        node, depth, parent = stack.pop()
        at_limit = depth + 1 >= max_depth
        yield WalkItem(
            node=node,
            depth=depth,
            parent=parent,
            truncated=at_limit and bool(node.children),
        )
        if not at_limit:
            for child in reversed(node.children):
                stack.append((child, depth + 1, index))
        index += 1


def flatten(root: StructureNode, max_depth: int = DEFAULT_MAX_DEPTH) -> list[WalkItem]:
    return list(walk(root, max_depth))


# =============================================================================
# Layout
# =============================================================================


@dataclass
class PositionedNode:
    """A node placed on the canvas (x grows with depth, y across siblings)."""

    name: str
    type: str
    depth: int
    x: float
    y: float
    description: Optional[str] = None
    has_children: bool = False
    truncated: bool = False

    @property
    def color(self) -> str:
        return node_color(self.type)

    @property
    def label(self) -> str:
        return short_label(self.name)


@dataclass
class TreeLayout:
    """Positioned nodes (pre-order) and parent/child index pairs."""

    width: float
    height: float
    nodes: list[PositionedNode] = field(default_factory=list)
    edges: list[tuple[int, int]] = field(default_factory=list)


def layout(
    root: StructureNode,
    width: float = 600,
    height: float = 400,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> TreeLayout:
    """Compute a horizontal tidy layout inside a width x height box.

    Leaves are spread evenly along y in visiting order; each parent sits
    midway between its first and last child. Depth maps linearly onto x.
    """
    items = flatten(root, max_depth)
    children: list[list[int]] = [[] for _ in items]
    for i, item in enumerate(items):
        if item.parent is not None:
            children[item.parent].append(i)

    # Pre-order guarantees children come after their parent, so a reverse
    # pass places every child before its parent.
    slot = [0.0] * len(items)
    leaf_count = sum(1 for kids in children if not kids)
    next_leaf = 0
    for i, kids in enumerate(children):
        if not kids:
            slot[i] = float(next_leaf)
            next_leaf += 1
    for i in range(len(items) - 1, -1, -1):
        kids = children[i]
        if kids:
            slot[i] = (slot[kids[0]] + slot[kids[-1]]) / 2

    deepest = max(item.depth for item in items)
    x_step = width / deepest if deepest else 0.0
    y_step = height / (leaf_count - 1) if leaf_count > 1 else 0.0
    y_offset = 0.0 if leaf_count > 1 else height / 2

    result = TreeLayout(width=width, height=height)
    for i, item in enumerate(items):
        result.nodes.append(
            PositionedNode(
                name=item.node.name,
                type=item.node.type,
                depth=item.depth,
                x=item.depth * x_step,
                y=slot[i] * y_step + y_offset,
                description=item.node.description,
                has_children=bool(children[i]),
                truncated=item.truncated,
            )
        )
        if item.parent is not None:
            result.edges.append((item.parent, i))
    return result


def render_svg(
    tree_layout: TreeLayout,
    margin: tuple[float, float, float, float] = (20, 120, 20, 100),
) -> str:
    """Render a layout as a standalone SVG document.

    Args:
        tree_layout: Result of ``layout``
        margin: (top, right, bottom, left) padding around the tree
    """
    top, right, bottom, left = margin
    total_w = tree_layout.width + left + right
    total_h = tree_layout.height + top + bottom
    nodes = tree_layout.nodes

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{total_w:g}" '
        f'height="{total_h:g}" viewBox="0 0 {total_w:g} {total_h:g}">',
        f'<g transform="translate({left:g},{top:g})">',
    ]
    for parent, child in tree_layout.edges:
        a, b = nodes[parent], nodes[child]
        mid = (a.x + b.x) / 2
        parts.append(
            f'<path d="M{a.x:g},{a.y:g}C{mid:g},{a.y:g} {mid:g},{b.y:g} {b.x:g},{b.y:g}" '
            f'fill="none" stroke="{LINK_COLOR}" stroke-width="2"/>'
        )
    for node in nodes:
        label = node.label + (" …" if node.truncated else "")
        anchor, dx = ("end", -12) if node.has_children else ("start", 12)
        tooltip = escape(f"{node.name}\n{node.description or ''}")
        parts.append(
            f'<g transform="translate({node.x:g},{node.y:g})">'
            f'<circle r="6" fill="{node.color}" stroke="#fff" stroke-width="2"/>'
            f'<text dy=".35em" x="{dx}" text-anchor="{anchor}" font-size="12">'
            f"{escape(label)}</text><title>{tooltip}</title></g>"
        )
    parts.append("</g></svg>")
    return "\n".join(parts)


def render_tree(root: StructureNode, max_depth: int = DEFAULT_MAX_DEPTH) -> Tree:
    """Build a rich Tree for terminal display."""
    items = flatten(root, max_depth)
    branches: list[Tree] = []
    tree: Optional[Tree] = None

    for item in items:
        label = Text(item.node.name, style=f"bold {node_color(item.node.type)}")
        if item.node.description:
            label.append(f"  {item.node.description}", style="dim")
        if item.truncated:
            label.append("  …", style="yellow")

        if item.parent is None:
            tree = Tree(label)
            branches.append(tree)
        else:
            branches.append(branches[item.parent].add(label))

    assert tree is not None
    return tree
