"""Immutable ordered tree used for hierarchical reports."""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

CHILD_PREFIX = "├─ "
CHILD_SPACER = "│  "
LAST_CHILD_PREFIX = "└─ "
LAST_CHILD_SPACER = "   "


def _prefix_lines(lines: list[str], head: str, tail: str) -> list[str]:
    return [head + lines[0]] + [tail + line for line in lines[1:]]


@dataclass(frozen=True, init=False)
class Tree(Generic[T]):
    """A value with an ordered tuple of child trees.

    Examples:
        >>> tree = Tree("root", (Tree("a"), Tree("b", (Tree("c"),))))
        >>> print("\\n".join(tree.format(str)))
        root
        ├─ a
        └─ b
           └─ c
    """

    value: T
    children: tuple["Tree[T]", ...] = ()

    def __init__(self, value: T, children: Sequence["Tree[T]"] = ()):
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "children", tuple(children))

    def __iter__(self) -> Iterator[T]:
        """Iterate over all values, depth-first, parents before children."""
        yield self.value
        for child in self.children:
            yield from child

    def __len__(self) -> int:
        return 1 + sum(len(child) for child in self.children)

    def map(self, fn: Callable[[T], T]) -> "Tree[T]":
        return Tree(fn(self.value), [child.map(fn) for child in self.children])

    def format(self, fn: Callable[[T], str]) -> list[str]:
        """Render the tree as box-drawing lines, one per node."""
        lines = [fn(self.value)]
        if not self.children:
            return lines

        *init, last = [child.format(fn) for child in self.children]
        for child_lines in init:
            lines.extend(_prefix_lines(child_lines, CHILD_PREFIX, CHILD_SPACER))
        lines.extend(_prefix_lines(last, LAST_CHILD_PREFIX, LAST_CHILD_SPACER))
        return lines
