"""Viewport and tree navigation primitives shared by every list screen."""

from __future__ import annotations

from relaycode.navigation.list_navigator import move_index, page_index
from relaycode.navigation.tree import (
    NavigationResult,
    NavTree,
    NodeKind,
    PathNavigator,
    TreeBuilder,
    TreeNode,
    collapse_paths,
    flatten,
)
from relaycode.navigation.viewport import (
    ContentViewport,
    LayoutConfig,
    ViewportState,
    available_height,
    compute_viewport,
)

__all__ = [
    "ContentViewport",
    "LayoutConfig",
    "NavTree",
    "NavigationResult",
    "NodeKind",
    "PathNavigator",
    "TreeBuilder",
    "TreeNode",
    "ViewportState",
    "available_height",
    "collapse_paths",
    "compute_viewport",
    "flatten",
    "move_index",
    "page_index",
]
