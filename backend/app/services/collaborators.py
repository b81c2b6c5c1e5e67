from app.db.repository import ScopeRepository


class CollaboratorExpansion:
    """Departments of users who share at least one task assignment with a user.

    The user's own home department is excluded; the hierarchy already covers it.
    """

    def __init__(self, repository: ScopeRepository) -> None:
        self.repository = repository

    def collaborator_departments(self, user_id: str, home_department: int | None = None) -> frozenset[int]:
        if home_department is None:
            home_department = self.repository.home_department(user_id)
        departments = self.repository.co_assignee_departments(user_id)
        departments.discard(home_department)
        return frozenset(departments)
