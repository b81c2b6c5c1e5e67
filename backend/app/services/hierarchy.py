"""In-memory department forest and descendant closure.

The whole tree is loaded once per request and walked breadth-first. Data
volumes are small enough that this is cheaper than a recursive query, and it
lets a corrupted ``parent_department_id`` chain be reported instead of looping.
"""
from collections import defaultdict, deque
from collections.abc import Iterable
from dataclasses import dataclass

from app.core.errors import DepartmentNotFoundError, StructuralIntegrityError


@dataclass(frozen=True)
class DepartmentNode:
    id: int
    name: str
    parent_id: int | None


class DepartmentGraph:
    def __init__(self, nodes: Iterable[DepartmentNode]) -> None:
        self._nodes: dict[int, DepartmentNode] = {node.id: node for node in nodes}
        self._children: dict[int, list[int]] = defaultdict(list)
        for node in self._nodes.values():
            if node.parent_id is not None:
                self._children[node.parent_id].append(node.id)
        for child_ids in self._children.values():
            child_ids.sort()

    @classmethod
    def from_rows(cls, rows: Iterable) -> "DepartmentGraph":
        return cls(
            DepartmentNode(id=row.id, name=row.name, parent_id=row.parent_department_id)
            for row in rows
        )

    def __contains__(self, department_id: object) -> bool:
        return department_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, department_id: int) -> DepartmentNode:
        try:
            return self._nodes[department_id]
        except KeyError:
            raise DepartmentNotFoundError(department_id) from None

    def children(self, department_id: int) -> tuple[int, ...]:
        return tuple(self._children.get(department_id, ()))

    def orphans(self) -> list[int]:
        """Departments whose parent id points outside the loaded tree."""
        return sorted(
            node.id
            for node in self._nodes.values()
            if node.parent_id is not None and node.parent_id not in self._nodes
        )

    def find_cycles(self) -> list[list[int]]:
        """Return every parent-chain cycle, each listed from its smallest id."""
        done: set[int] = set()
        cycles: list[list[int]] = []

        for start in sorted(self._nodes):
            path: list[int] = []
            on_path: set[int] = set()
            current: int | None = start
            while current is not None and current in self._nodes and current not in done:
                if current in on_path:
                    cycle = path[path.index(current):]
                    pivot = cycle.index(min(cycle))
                    cycles.append(cycle[pivot:] + cycle[:pivot])
                    break
                path.append(current)
                on_path.add(current)
                current = self._nodes[current].parent_id
            done.update(path)

        return cycles


class HierarchyResolver:
    def __init__(self, graph: DepartmentGraph) -> None:
        self.graph = graph

    def closure(self, department_id: int) -> frozenset[int]:
        """Return ``department_id`` plus all of its transitive descendants.

        Raises :class:`DepartmentNotFoundError` for an unknown id and
        :class:`StructuralIntegrityError` when the walk reaches a department
        it has already visited, which only happens if the tree has a cycle.
        """
        if department_id not in self.graph:
            raise DepartmentNotFoundError(department_id)

        came_from: dict[int, int] = {}
        seen = {department_id}
        queue = deque([department_id])

        while queue:
            current = queue.popleft()
            for child in self.graph.children(current):
                if child in seen:
                    path = self._path_to(current, came_from) + [child]
                    raise StructuralIntegrityError(
                        f"department {child} is its own ancestor below department {department_id}",
                        path=path,
                    )
                seen.add(child)
                came_from[child] = current
                queue.append(child)

        return frozenset(seen)

    @staticmethod
    def _path_to(node: int, came_from: dict[int, int]) -> list[int]:
        path = [node]
        while path[-1] in came_from:
            path.append(came_from[path[-1]])
        path.reverse()
        return path
