"""FolderTree: id-indexed arena of directories with adjacency lists."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from ddrive.models import RemoteEntry

ROOT_LABEL = "My Drive"


class FolderTree:
    """
    Directory hierarchy kept as nodes by id plus a parent -> children map.

    Entries whose parent is unknown are treated as top-level. All traversals
    are iterative and guard against parent cycles.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, RemoteEntry] = {}
        self._children: dict[Optional[str], list[str]] = {}

    @classmethod
    def from_entries(cls, entries: Iterable[RemoteEntry]) -> "FolderTree":
        tree = cls()
        for entry in entries:
            if entry.is_directory:
                tree.add(entry)
        return tree

    # ----------------------------
    # Mutation
    # ----------------------------
    def add(self, entry: RemoteEntry) -> None:
        if entry.entry_id in self._nodes:
            self.remove(entry.entry_id)
        self._nodes[entry.entry_id] = entry
        self._children.setdefault(entry.parent_id, []).append(entry.entry_id)
        self._children.setdefault(entry.entry_id, [])

    def remove(self, entry_id: str) -> None:
        """Remove a node (its children become top-level)."""
        entry = self._nodes.pop(entry_id, None)
        if entry is None:
            return
        siblings = self._children.get(entry.parent_id)
        if siblings and entry_id in siblings:
            siblings.remove(entry_id)

    # ----------------------------
    # Queries
    # ----------------------------
    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._nodes

    def get(self, entry_id: str) -> RemoteEntry:
        return self._nodes[entry_id]

    def children(self, parent_id: Optional[str] = None) -> list[RemoteEntry]:
        if parent_id is None:
            ids = [i for i, e in self._nodes.items() if self._is_top_level(e)]
        else:
            ids = [i for i in self._children.get(parent_id, []) if i in self._nodes]
        return sorted((self._nodes[i] for i in ids), key=lambda e: (e.name.lower(), e.entry_id))

    def walk(self, root_id: Optional[str] = None) -> Iterator[tuple[int, RemoteEntry]]:
        """Depth-first pre-order walk yielding (depth, entry)."""
        stack: list[tuple[int, RemoteEntry]] = [
            (0, e) for e in reversed(self.children(root_id))
        ]
        visited: set[str] = {root_id} if root_id is not None else set()
        while stack:
            depth, entry = stack.pop()
            if entry.entry_id in visited:
                continue
            visited.add(entry.entry_id)
            yield depth, entry
            for child in reversed(self.children(entry.entry_id)):
                if child.entry_id not in visited:
                    stack.append((depth + 1, child))

    def path_to(self, entry_id: Optional[str]) -> list[RemoteEntry]:
        """Root-first list of directories ending with entry_id."""
        path: list[RemoteEntry] = []
        seen: set[str] = set()
        current = entry_id
        while current is not None and current in self._nodes and current not in seen:
            seen.add(current)
            entry = self._nodes[current]
            path.append(entry)
            current = entry.parent_id
        path.reverse()
        return path

    def label(self, entry_id: Optional[str]) -> str:
        """Human readable location, e.g. 'Photos / 2024'."""
        path = self.path_to(entry_id)
        if not path:
            return ROOT_LABEL
        return " / ".join(e.name for e in path)

    def descendant_ids(self, entry_id: str) -> set[str]:
        return {e.entry_id for _, e in self.walk(entry_id)}

    def can_move(self, entry_id: str, new_parent_id: Optional[str]) -> bool:
        """A directory cannot be moved into itself or one of its descendants."""
        if new_parent_id is None:
            return True
        if new_parent_id == entry_id:
            return False
        return new_parent_id not in self.descendant_ids(entry_id)

    def _is_top_level(self, entry: RemoteEntry) -> bool:
        return entry.parent_id is None or entry.parent_id not in self._nodes
