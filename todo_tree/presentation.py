"""
Presentation projection.

Consumes the sorted aggregate after each drain and builds a displayable
hierarchy: files (flat view) or folders and files (tree view), each file
holding its matches as leaves.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from rich.markup import escape
from rich.tree import Tree

from .models.scan import Match

logger = logging.getLogger(__name__)


@runtime_checkable
class Projection(Protocol):
    """Consumer of the sorted match list, called once per completed drain"""

    def project(self, matches: Sequence[Match]) -> None:
        ...


@dataclass
class TreeNode:
    """One node of the projected hierarchy"""
    label: str
    kind: str  # "folder", "file" or "match"
    path: Optional[str] = None
    match: Optional[Match] = None
    children: List['TreeNode'] = field(default_factory=list)

    @property
    def reveal_target(self) -> Optional[tuple]:
        """(file, line) a front end should jump to, for match nodes"""
        if self.match is None:
            return None
        return (self.match.file, self.match.line)

    def count_matches(self) -> int:
        if self.kind == "match":
            return 1
        return sum(child.count_matches() for child in self.children)


class MatchTreeProjection:
    """
    Builds TreeNode hierarchies relative to the current root folder.

    `root_provider` and `flat_provider` are read at projection time, so a
    view toggle only needs a re-projection, never a rescan.
    """

    def __init__(
        self,
        root_provider: Callable[[], Optional[str]] = lambda: None,
        flat_provider: Callable[[], bool] = lambda: False,
        listener: Optional[Callable[[List[TreeNode]], None]] = None
    ):
        self.root_provider = root_provider
        self.flat_provider = flat_provider
        self.listener = listener
        self.nodes: List[TreeNode] = []
        self.matches: List[Match] = []
        self.projection_count = 0

    def project(self, matches: Sequence[Match]) -> None:
        self.matches = list(matches)
        self.nodes = self.build(self.matches)
        self.projection_count += 1
        logger.debug(f"Projected {len(self.matches)} matches into {len(self.nodes)} top-level nodes")
        if self.listener:
            self.listener(self.nodes)

    def build(self, matches: Sequence[Match]) -> List[TreeNode]:
        root = self.root_provider()
        flat = self.flat_provider()

        top: List[TreeNode] = []
        folders: Dict[tuple, TreeNode] = {}
        files: Dict[str, TreeNode] = {}

        for match in matches:
            file_node = files.get(match.file)
            if file_node is None:
                parts = self._display_parts(match.file, root)
                label = "/".join(parts) if flat else parts[-1]
                file_node = TreeNode(label=label, kind="file", path=match.file)
                files[match.file] = file_node
                if flat or len(parts) == 1:
                    top.append(file_node)
                else:
                    self._folder_for(parts[:-1], folders, top).children.append(file_node)

            file_node.children.append(TreeNode(
                label=f"{match.line}: {match.text.strip()}",
                kind="match",
                path=match.file,
                match=match
            ))

        return top

    @staticmethod
    def _display_parts(file_path: str, root: Optional[str]) -> List[str]:
        path = Path(file_path)
        if root:
            try:
                return list(path.relative_to(Path(root)).parts)
            except ValueError:
                pass
        parts = list(path.parts)
        if len(parts) > 1 and path.anchor:
            # Keep out-of-root files readable: anchor + parent folder as one label
            return [str(path.parent), path.name]
        return parts

    @staticmethod
    def _folder_for(
        parts: List[str],
        folders: Dict[tuple, TreeNode],
        top: List[TreeNode]
    ) -> TreeNode:
        parent: Optional[TreeNode] = None
        for depth in range(1, len(parts) + 1):
            key = tuple(parts[:depth])
            node = folders.get(key)
            if node is None:
                node = TreeNode(label=parts[depth - 1], kind="folder")
                folders[key] = node
                (parent.children if parent else top).append(node)
            parent = node
        return parent


def to_rich_tree(nodes: Sequence[TreeNode], title: str = "TODOs") -> Tree:
    """Render projected nodes as a rich Tree"""
    tree = Tree(f"[bold]{title}[/bold]")

    def add(branch: Tree, node: TreeNode) -> None:
        if node.kind == "folder":
            child = branch.add(f"[blue]📂 {escape(node.label)}[/blue]")
        elif node.kind == "file":
            child = branch.add(f"[cyan]{escape(node.label)}[/cyan] [dim]({node.count_matches()})[/dim]")
        else:
            branch.add(escape(node.label))
            return
        for grandchild in node.children:
            add(child, grandchild)

    for node in nodes:
        add(tree, node)
    return tree
