"""Macro document tree — folders and macros.

Node variants
-------------
FolderNode — ordered children (display and lookup order)
MacroNode  — script text plus the language it is written in

MacroTree owns the root folder and is the only place that mutates the
structure.  Every operation validates first and mutates second, so a
StructuralError never leaves the tree half changed.  Saving after a
mutation is the caller's job.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Union

from macroengine.core.errors import StructuralError

_INCREMENTAL_NAME = re.compile(r"(?P<all> \((?P<index>\d+)\))$")

NATIVE_SUFFIX = ".macro"
LUA_SUFFIX    = ".lua"


class Language(Enum):
    NATIVE = "native"
    LUA    = "lua"


@dataclass(eq=False)
class MacroNode:
    name:             str
    contents:         str      = ""
    language:         Language = Language.NATIVE
    craft_loop:       bool     = False
    craft_loop_count: int      = 0

    def as_record(self) -> dict:
        return {
            "type":             "macro",
            "name":             self.name,
            "contents":         self.contents,
            "language":         self.language.value,
            "craft_loop":       self.craft_loop,
            "craft_loop_count": self.craft_loop_count,
        }


@dataclass(eq=False)
class FolderNode:
    name:     str
    children: list["Node"] = field(default_factory=list)

    def as_record(self) -> dict:
        return {
            "type":     "folder",
            "name":     self.name,
            "children": [child.as_record() for child in self.children],
        }


Node = Union[FolderNode, MacroNode]


def node_from_record(record: dict) -> Node:
    """Inverse of ``as_record()``.  Unknown record types raise ValueError."""
    kind = record.get("type")
    if kind == "folder":
        return FolderNode(
            name     = record["name"],
            children = [node_from_record(r) for r in record.get("children", [])],
        )
    if kind == "macro":
        return MacroNode(
            name             = record["name"],
            contents         = record.get("contents", ""),
            language         = Language(record.get("language", Language.NATIVE.value)),
            craft_loop       = bool(record.get("craft_loop", False)),
            craft_loop_count = int(record.get("craft_loop_count", 0)),
        )
    raise ValueError(f"Unknown node record type: {kind!r}")


def _walk(node: Node) -> Iterator[Node]:
    yield node
    if isinstance(node, FolderNode):
        for child in node.children:
            yield from _walk(child)


class MacroTree:
    """The whole document: a root folder and the operations on it."""

    def __init__(self, root: FolderNode | None = None) -> None:
        self.root = root if root is not None else FolderNode("/")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def flatten(self) -> list[Node]:
        """All nodes, pre-order, root first."""
        return list(_walk(self.root))

    def macros(self) -> list[MacroNode]:
        return [n for n in _walk(self.root) if isinstance(n, MacroNode)]

    def find_macros(self, name: str) -> list[MacroNode]:
        return [m for m in self.macros() if m.name == name]

    def contains(self, node: Node) -> bool:
        return any(n is node for n in _walk(self.root))

    def find_parent(self, node: Node) -> Optional[FolderNode]:
        for candidate in _walk(self.root):
            if isinstance(candidate, FolderNode) and any(c is node for c in candidate.children):
                return candidate
        return None

    def unique_name(self, name: str, exclude: Node | None = None) -> str:
        """Return ``name`` or the first free ``"name (n)"`` variant.

        ``exclude`` is ignored when collecting taken names, so a node can
        keep its own name.
        """
        taken = {n.name for n in _walk(self.root) if n is not exclude}
        name = name.strip()
        while name in taken:
            match = _INCREMENTAL_NAME.search(name)
            if match:
                index = int(match.group("index")) + 1
                name  = f"{name[:-len(match.group('all'))]} ({index})"
            else:
                name = f"{name} (1)"
        return name.strip()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def rename(self, node: Node, new_name: str) -> str:
        if not self.contains(node):
            raise StructuralError(f"Cannot rename {node.name!r}: not in the tree")
        node.name = self.unique_name(new_name, exclude=node)
        return node.name

    def add_child(self, parent: FolderNode, node: Node, index: int | None = None) -> None:
        self._check_insert(parent, node)
        if index is None:
            parent.children.append(node)
        else:
            parent.children.insert(index, node)

    def remove_child(self, parent: FolderNode, node: Node) -> None:
        if not any(c is node for c in parent.children):
            raise StructuralError(f"{node.name!r} is not a child of {parent.name!r}")
        parent.children[:] = [c for c in parent.children if c is not node]

    def move(self, node: Node, target: Node) -> None:
        """Drag ``node`` onto ``target``.

        Dropping on a folder appends to it; dropping on a macro inserts
        before that macro in the macro's own folder.
        """
        if node is self.root:
            raise StructuralError("The root folder cannot be moved")
        source = self.find_parent(node)
        if source is None:
            raise StructuralError(f"Could not find parent of node {node.name!r}")
        if isinstance(target, FolderNode):
            destination, index = target, None
        else:
            destination = self.find_parent(target)
            if destination is None:
                raise StructuralError(f"Could not find parent of node {target.name!r}")
            index = _index_of(destination.children, target)
            if destination is source and _index_of(source.children, node) < index:
                index -= 1
        if node is target or (isinstance(node, FolderNode) and any(n is destination for n in _walk(node))):
            raise StructuralError(f"Cannot move {node.name!r} into itself")

        self.remove_child(source, node)
        if index is None:
            destination.children.append(node)
        else:
            destination.children.insert(index, node)

    def new_macro(
        self,
        parent:   FolderNode | None = None,
        name:     str = "Untitled macro",
        contents: str = "",
        language: Language = Language.NATIVE,
    ) -> MacroNode:
        node = MacroNode(self.unique_name(name), contents, language)
        self.add_child(parent or self.root, node)
        return node

    def new_folder(self, parent: FolderNode | None = None, name: str = "Untitled folder") -> FolderNode:
        node = FolderNode(self.unique_name(name))
        self.add_child(parent or self.root, node)
        return node

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_insert(self, parent: FolderNode, node: Node) -> None:
        if not self.contains(parent):
            raise StructuralError(f"Parent {parent.name!r} is not in the tree")
        if self.contains(node):
            raise StructuralError(f"{node.name!r} already has a parent")
        if any(n is parent for n in _walk(node)):
            raise StructuralError(f"Cannot insert {node.name!r} below itself")
        taken = {n.name for n in _walk(self.root)}
        for incoming in _walk(node):
            if incoming.name in taken:
                raise StructuralError(f"A node named {incoming.name!r} already exists")
            taken.add(incoming.name)


def _index_of(children: list[Node], node: Node) -> int:
    for i, child in enumerate(children):
        if child is node:
            return i
    raise StructuralError(f"{node.name!r} is not among the children")


def tree_from_directory(path: Path) -> MacroTree:
    """Build a tree from ``*.macro`` / ``*.lua`` files below ``path``.

    Sub-directories become folders.  Names are file stems made unique
    across the whole tree.
    """
    tree = MacroTree(FolderNode(path.name or "/"))

    def load(directory: Path, parent: FolderNode) -> None:
        for entry in sorted(directory.iterdir(), key=lambda p: (p.is_file(), p.name.lower())):
            if entry.is_dir():
                load(entry, tree.new_folder(parent, entry.name))
            elif entry.suffix in (NATIVE_SUFFIX, LUA_SUFFIX):
                language = Language.LUA if entry.suffix == LUA_SUFFIX else Language.NATIVE
                tree.new_macro(parent, entry.stem, entry.read_text(encoding="utf-8"), language)

    if path.is_dir():
        load(path, tree.root)
    return tree
