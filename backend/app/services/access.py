from dataclasses import dataclass

from app.core.errors import MissingUserIdError, UnknownUserError
from app.db.repository import ScopeRepository
from app.services.collaborators import CollaboratorExpansion
from app.services.hierarchy import DepartmentGraph, HierarchyResolver


MANAGER_ROLE = "manager"


def require_user_id(user_id: object) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise MissingUserIdError()
    return user_id.strip()


@dataclass(frozen=True)
class AccessScope:
    user_id: str
    home_department: int
    roles: frozenset[str]
    hierarchy: frozenset[int]
    collaborators: frozenset[int]

    @property
    def is_manager(self) -> bool:
        return MANAGER_ROLE in self.roles

    @property
    def visible(self) -> frozenset[int]:
        return self.hierarchy | self.collaborators


class AccessScopeCalculator:
    """Combines role, department tree and shared tasks into a visible set.

    Only ``manager`` unlocks the descendant walk; collaborator expansion is
    applied for every role. The graph is reloaded on each call unless one is
    injected, so consecutive calls always see current data.
    """

    def __init__(
        self,
        repository: ScopeRepository,
        graph: DepartmentGraph | None = None,
        collaborators: CollaboratorExpansion | None = None,
    ) -> None:
        self.repository = repository
        self.graph = graph
        self.collaborators = collaborators or CollaboratorExpansion(repository)

    def _load_graph(self) -> DepartmentGraph:
        if self.graph is not None:
            return self.graph
        return DepartmentGraph.from_rows(self.repository.department_rows())

    def scope(self, user_id: str) -> AccessScope:
        user_id = require_user_id(user_id)

        home = self.repository.home_department(user_id)
        if home is None:
            raise UnknownUserError(user_id)
        roles = frozenset(self.repository.roles(user_id))

        if MANAGER_ROLE in roles:
            hierarchy = HierarchyResolver(self._load_graph()).closure(home)
        else:
            hierarchy = frozenset({home})

        return AccessScope(
            user_id=user_id,
            home_department=home,
            roles=roles,
            hierarchy=hierarchy,
            collaborators=self.collaborators.collaborator_departments(user_id, home_department=home),
        )

    def visible_departments(self, user_id: str) -> frozenset[int]:
        return self.scope(user_id).visible

    def can_access_department(self, user_id: str, department_id: int) -> bool:
        return department_id in self.visible_departments(user_id)
