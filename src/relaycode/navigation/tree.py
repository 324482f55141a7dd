"""Path-addressed tree navigation.

Hierarchical screen content (transaction → file, section → file) is held in
a ``NavTree``: an immutable arena of tagged nodes with stable integer ids.
Nodes are also addressable by their slash-joined path (e.g. "tx-3/tx-3-1"),
which is what screens keep in their expanded set and focus.

Trees are rebuilt from the underlying transactions on every query, never
mutated, so a ``PathNavigator`` only stores the expanded-path set, the
focused path and whether a leaf's detail view is open.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from relaycode.logging import get_logger
from relaycode.models.domain import Transaction

__all__ = [
    "NodeKind",
    "TreeNode",
    "NavTree",
    "TreeBuilder",
    "NavigationResult",
    "PathNavigator",
    "flatten",
    "collapse_paths",
    "join_path",
    "split_path",
    "transaction_file_tree",
    "transaction_section_tree",
    "SECTION_PROMPT",
    "SECTION_REASONING",
    "SECTION_FILES",
]

logger = get_logger(__name__)

PATH_SEPARATOR = "/"

SECTION_PROMPT = "prompt"
SECTION_REASONING = "reasoning"
SECTION_FILES = "files"


def join_path(*segments: str) -> str:
    return PATH_SEPARATOR.join(segments)


def split_path(path: str) -> tuple[str, ...]:
    return tuple(path.split(PATH_SEPARATOR)) if path else ()


class NodeKind(str, Enum):
    """Variant tag of a tree node."""

    TRANSACTION = "transaction"
    SECTION = "section"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class TreeNode:
    """A node in a ``NavTree`` arena.

    Attributes:
        node_id: Index of the node in the arena.
        kind: Variant tag.
        segment: Last path segment.
        path: Full slash-joined path.
        label: Display label.
        parent_id: Arena id of the parent, None for roots.
        depth: Nesting depth (0 = root).
        children: Arena ids of the children, in display order.
        expandable: Whether the node is a branch. Non-expandable nodes are
            leaves whose "expand" opens a detail view.
        drill: Whether expanding an already expanded node moves focus into
            its first child.
        ref: Id of the domain object the node stands for.
    """

    node_id: int
    kind: NodeKind
    segment: str
    path: str
    label: str
    parent_id: int | None
    depth: int
    children: tuple[int, ...] = ()
    expandable: bool = False
    drill: bool = False
    ref: str | None = None

    @property
    def is_leaf(self) -> bool:
        return not self.expandable


class NavTree:
    """Immutable node arena with a path index."""

    __slots__ = ("_nodes", "_roots", "_by_path")

    def __init__(self, nodes: Sequence[TreeNode], roots: Sequence[int]) -> None:
        self._nodes = tuple(nodes)
        self._roots = tuple(roots)
        self._by_path = {node.path: node.node_id for node in self._nodes}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    @property
    def roots(self) -> tuple[int, ...]:
        return self._roots

    @property
    def nodes(self) -> tuple[TreeNode, ...]:
        return self._nodes

    def node(self, node_id: int) -> TreeNode:
        return self._nodes[node_id]

    def get(self, path: str | None) -> TreeNode | None:
        if path is None:
            return None
        node_id = self._by_path.get(path)
        return None if node_id is None else self._nodes[node_id]

    def parent(self, node: TreeNode) -> TreeNode | None:
        return None if node.parent_id is None else self._nodes[node.parent_id]

    def children_of(self, node: TreeNode) -> list[TreeNode]:
        return [self._nodes[child] for child in node.children]

    def ancestors(self, node: TreeNode) -> list[TreeNode]:
        """Ancestors of ``node`` from the parent up to the root."""
        result: list[TreeNode] = []
        current = self.parent(node)
        while current is not None:
            result.append(current)
            current = self.parent(current)
        return result

    def is_descendant(self, path: str, ancestor_path: str) -> bool:
        """Whether ``path`` lies strictly below ``ancestor_path``.

        Known paths are checked by walking parent ids (O(depth)). Paths no
        longer present in the tree, such as stale expanded entries, fall back
        to comparing segments.
        """
        node = self.get(path)
        ancestor = self.get(ancestor_path)
        if node is not None and ancestor is not None:
            if node.depth <= ancestor.depth:
                return False
            current = node
            while current.depth > ancestor.depth:
                parent = self.parent(current)
                if parent is None:
                    return False
                current = parent
            return current.node_id == ancestor.node_id
        segments = split_path(path)
        prefix = split_path(ancestor_path)
        return len(segments) > len(prefix) and segments[: len(prefix)] == prefix


@dataclass(slots=True)
class _PendingNode:
    kind: NodeKind
    segment: str
    path: str
    label: str
    parent_id: int | None
    depth: int
    expandable: bool
    drill: bool
    ref: str | None
    children: list[int] = field(default_factory=list)


@dataclass(slots=True)
class TreeBuilder:
    """Incrementally assembles a ``NavTree``.

    Example:
        builder = TreeBuilder()
        tx = builder.add(NodeKind.TRANSACTION, "tx-1", expandable=True)
        builder.add(NodeKind.FILE, "tx-1-1", parent=tx, label="src/a.ts")
        tree = builder.build()
    """

    _pending: list[_PendingNode] = field(default_factory=list)
    _roots: list[int] = field(default_factory=list)

    def add(
        self,
        kind: NodeKind,
        segment: str,
        *,
        parent: int | None = None,
        label: str | None = None,
        expandable: bool = False,
        drill: bool = False,
        ref: str | None = None,
    ) -> int:
        """Add a node and return its arena id."""
        if not segment or PATH_SEPARATOR in segment:
            raise ValueError(f"Invalid path segment: {segment!r}")
        parent_node = None if parent is None else self._pending[parent]
        node_id = len(self._pending)
        self._pending.append(
            _PendingNode(
                kind=kind,
                segment=segment,
                path=segment
                if parent_node is None
                else join_path(parent_node.path, segment),
                label=label if label is not None else segment,
                parent_id=parent,
                depth=0 if parent_node is None else parent_node.depth + 1,
                expandable=expandable,
                drill=drill,
                ref=ref,
            )
        )
        if parent_node is None:
            self._roots.append(node_id)
        else:
            parent_node.children.append(node_id)
        return node_id

    def build(self) -> NavTree:
        nodes = [
            TreeNode(
                node_id=node_id,
                kind=p.kind,
                segment=p.segment,
                path=p.path,
                label=p.label,
                parent_id=p.parent_id,
                depth=p.depth,
                children=tuple(p.children),
                expandable=p.expandable,
                drill=p.drill,
                ref=p.ref,
            )
            for node_id, p in enumerate(self._pending)
        ]
        return NavTree(nodes, self._roots)


def flatten(tree: NavTree, expanded: Iterable[str]) -> list[str]:
    """Depth-first pre-order list of visible paths.

    A node's children are emitted only when the node's path is expanded,
    so every emitted path follows all of its ancestors.

    Args:
        tree: Tree to walk.
        expanded: Paths currently open.

    Returns:
        Visible paths in display order.
    """
    open_paths = expanded if isinstance(expanded, (set, frozenset)) else set(expanded)
    result: list[str] = []
    stack = list(reversed(tree.roots))
    while stack:
        node = tree.node(stack.pop())
        result.append(node.path)
        if node.children and node.path in open_paths:
            stack.extend(reversed(node.children))
    return result


def collapse_paths(
    expanded: frozenset[str], path: str, tree: NavTree | None = None
) -> frozenset[str]:
    """Remove ``path`` and every expanded descendant of it.

    Args:
        expanded: Current expanded set.
        path: Path being collapsed.
        tree: Tree used for ancestor checks. Without one, segments are
            compared directly.

    Returns:
        The new expanded set.
    """
    prefix = split_path(path)

    def below(candidate: str) -> bool:
        if tree is not None:
            return tree.is_descendant(candidate, path)
        segments = split_path(candidate)
        return len(segments) > len(prefix) and segments[: len(prefix)] == prefix

    return frozenset(p for p in expanded if p != path and not below(p))


class NavigationResult(str, Enum):
    """What a navigator operation did."""

    NOOP = "noop"
    MOVED = "moved"
    EXPANDED = "expanded"
    COLLAPSED = "collapsed"
    DRILLED = "drilled"
    BUBBLED_UP = "bubbled_up"
    OPENED_DETAIL = "opened_detail"
    CLOSED_DETAIL = "closed_detail"


@dataclass(slots=True)
class PathNavigator:
    """Expand/collapse and focus state over a derived tree.

    The tree is obtained from ``tree_source`` on every call, so changes in
    the underlying transactions (filtering, deletion) are always reflected.
    After every operation the focused path is a member of the visible list,
    or None when the tree is empty.

    Attributes:
        tree_source: Callable that builds the current tree.
        expanded: Paths currently open.
        focused_path: The focused path.
        detail_open: Whether the focused leaf's detail view is open.
    """

    tree_source: Callable[[], NavTree]
    expanded: frozenset[str] = frozenset()
    focused_path: str | None = None
    detail_open: bool = False

    def tree(self) -> NavTree:
        return self.tree_source()

    def visible_paths(self) -> list[str]:
        return self._sync()[1]

    def focused_node(self) -> TreeNode | None:
        tree, _ = self._sync()
        return tree.get(self.focused_path)

    def focused_index(self) -> int:
        _, visible = self._sync()
        if self.focused_path is None:
            return -1
        return visible.index(self.focused_path)

    def ensure_focus_visible(self) -> None:
        self._sync()

    def reset(self, focused_path: str | None = None) -> None:
        """Collapse everything and focus ``focused_path`` (or the first row)."""
        self.expanded = frozenset()
        self.detail_open = False
        self.focused_path = focused_path
        self._sync()

    def focus(self, path: str) -> bool:
        """Focus a visible path.

        Returns:
            False (and logs) if the path is not visible.
        """
        _, visible = self._sync()
        if path not in visible:
            logger.warning("navigator_focus_not_visible", path=path)
            return False
        if path != self.focused_path:
            self.focused_path = path
            self._close_detail_unless_leaf()
        return True

    def expand(self, path: str) -> bool:
        """Open a branch directly (used by presets and tests)."""
        tree = self.tree()
        node = tree.get(path)
        if node is None or not node.expandable:
            logger.warning("navigator_expand_invalid", path=path)
            return False
        self.expanded = self.expanded | {path}
        self._sync()
        return True

    def collapse(self, path: str) -> bool:
        """Close a branch and all of its descendants."""
        if path not in self.expanded:
            return False
        self.expanded = collapse_paths(self.expanded, path, self.tree())
        self._sync()
        return True

    def navigate_up(self) -> NavigationResult:
        return self._move(-1)

    def navigate_down(self) -> NavigationResult:
        return self._move(1)

    def page_up(self, page_size: int) -> NavigationResult:
        return self._move(-max(1, page_size))

    def page_down(self, page_size: int) -> NavigationResult:
        return self._move(max(1, page_size))

    def expand_or_drill_down(self) -> NavigationResult:
        """Open the focused leaf's detail, expand a branch, or drill into it."""
        tree, _ = self._sync()
        node = tree.get(self.focused_path)
        if node is None:
            return NavigationResult.NOOP
        if node.is_leaf:
            if self.detail_open:
                return NavigationResult.NOOP
            self.detail_open = True
            return NavigationResult.OPENED_DETAIL
        if node.path not in self.expanded:
            self.expanded = self.expanded | {node.path}
            return NavigationResult.EXPANDED
        if node.drill and node.children:
            self.focused_path = tree.node(node.children[0]).path
            return NavigationResult.DRILLED
        return NavigationResult.NOOP

    def collapse_or_bubble_up(self) -> NavigationResult:
        """Close an open detail, collapse a branch, or move focus to the parent."""
        if self.detail_open:
            self.detail_open = False
            return NavigationResult.CLOSED_DETAIL
        tree, _ = self._sync()
        node = tree.get(self.focused_path)
        if node is None:
            return NavigationResult.NOOP
        if node.expandable and node.path in self.expanded:
            self.expanded = collapse_paths(self.expanded, node.path, tree)
            return NavigationResult.COLLAPSED
        parent = tree.parent(node)
        if parent is not None:
            self.focused_path = parent.path
            return NavigationResult.BUBBLED_UP
        return NavigationResult.NOOP

    def _move(self, delta: int) -> NavigationResult:
        _, visible = self._sync()
        if not visible or self.focused_path is None:
            return NavigationResult.NOOP
        index = visible.index(self.focused_path)
        target = min(max(index + delta, 0), len(visible) - 1)
        if target == index:
            return NavigationResult.NOOP
        self.focused_path = visible[target]
        self._close_detail_unless_leaf()
        return NavigationResult.MOVED

    def _close_detail_unless_leaf(self) -> None:
        node = self.tree().get(self.focused_path)
        if node is None or not node.is_leaf:
            self.detail_open = False

    def _sync(self) -> tuple[NavTree, list[str]]:
        """Rebuild the visible list and re-clamp focus onto it."""
        tree = self.tree()
        visible = flatten(tree, self.expanded)
        if not visible:
            self.focused_path = None
            self.detail_open = False
            return tree, visible
        if self.focused_path in visible:
            return tree, visible

        replacement = self._nearest_visible(tree, visible)
        if self.focused_path is not None:
            logger.debug(
                "navigator_focus_reclamped",
                previous=self.focused_path,
                focused=replacement,
            )
        self.focused_path = replacement
        self.detail_open = False
        return tree, visible

    def _nearest_visible(self, tree: NavTree, visible: list[str]) -> str:
        visible_set = set(visible)
        node = tree.get(self.focused_path)
        if node is not None:
            for ancestor in tree.ancestors(node):
                if ancestor.path in visible_set:
                    return ancestor.path
        elif self.focused_path is not None:
            segments = split_path(self.focused_path)
            for length in range(len(segments) - 1, 0, -1):
                candidate = join_path(*segments[:length])
                if candidate in visible_set:
                    return candidate
        return visible[0]


def transaction_file_tree(transactions: Iterable[Transaction]) -> NavTree:
    """Two-level tree: each transaction with its files as leaves."""
    builder = TreeBuilder()
    for tx in transactions:
        tx_node = builder.add(
            NodeKind.TRANSACTION,
            tx.id,
            label=tx.message,
            expandable=True,
            ref=tx.id,
        )
        for file in tx.files:
            builder.add(
                NodeKind.FILE,
                file.id,
                parent=tx_node,
                label=file.path,
                ref=file.id,
            )
    return builder.build()


def transaction_section_tree(transaction: Transaction) -> NavTree:
    """Section tree of one transaction: prompt, reasoning, files → file leaves.

    The files section is the drill branch: once open, expanding it again
    moves focus into the file list.
    """
    builder = TreeBuilder()
    builder.add(NodeKind.SECTION, SECTION_PROMPT, label="Prompt")
    builder.add(NodeKind.SECTION, SECTION_REASONING, label="Reasoning")
    files = builder.add(
        NodeKind.SECTION,
        SECTION_FILES,
        label=f"Files ({len(transaction.files)})",
        expandable=True,
        drill=True,
    )
    for file in transaction.files:
        builder.add(NodeKind.FILE, file.id, parent=files, label=file.path, ref=file.id)
    return builder.build()
