from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models import (
    ROLE_CHOICES,
    Base,
    Department,
    Project,
    ProjectDepartment,
    Role,
    Task,
    TaskAssignment,
    User,
    UserRole,
)
from app.db.repository import ScopeRepository


class OrgBuilder:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.db.add_all([Role(role=role) for role in ROLE_CHOICES])
        self.db.flush()

    def department(self, name: str, parent: Department | None = None) -> Department:
        department = Department(name=name, parent_department_id=parent.id if parent else None)
        self.db.add(department)
        self.db.flush()
        return department

    def user(self, username: str, department: Department | None, roles=("staff",)) -> User:
        user = User(
            username=username,
            email=f"{username}@test.local",
            password_hash="pw",
            department_id=department.id if department else None,
        )
        self.db.add(user)
        self.db.flush()
        self.db.add_all([UserRole(user_id=user.id, role=role) for role in roles])
        self.db.flush()
        return user

    def project(self, name: str, departments=(), archived: bool = False) -> Project:
        project = Project(name=name, is_archived=archived)
        self.db.add(project)
        self.db.flush()
        self.db.add_all(
            [ProjectDepartment(project_id=project.id, department_id=department.id) for department in departments]
        )
        self.db.flush()
        return project

    def task(self, title: str, project: Project, assignees, archived: bool = False) -> Task:
        task = Task(
            title=title,
            project_id=project.id,
            creator_id=assignees[0].id,
            is_archived=archived,
        )
        self.db.add(task)
        self.db.flush()
        self.db.add_all([TaskAssignment(task_id=task.id, assignee_id=user.id) for user in assignees])
        self.db.flush()
        return task

    def commit(self) -> None:
        self.db.commit()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def builder(db):
    return OrgBuilder(db)


@pytest.fixture
def repository(db):
    return ScopeRepository(db)


@pytest.fixture
def org(builder):
    """
    Operations
      Alpha
        Beta
    Finance
    Design

    sam (Operations, staff) and fred (Finance, staff) share "Budget review".
    """
    ops = builder.department("Operations")
    alpha = builder.department("Alpha", parent=ops)
    beta = builder.department("Beta", parent=alpha)
    finance = builder.department("Finance")
    design = builder.department("Design")

    maria = builder.user("maria", ops, roles=("staff", "manager"))
    sam = builder.user("sam", ops)
    fred = builder.user("fred", finance)
    dina = builder.user("dina", design)
    bob = builder.user("bob", beta)

    zebra = builder.project("zebra portal", departments=[alpha])
    apple = builder.project("Apple app", departments=[ops, finance])
    banana = builder.project("banana board", departments=[beta])
    archived = builder.project("Old intranet", departments=[ops], archived=True)
    design_system = builder.project("Design system", departments=[design])

    budget = builder.task("Budget review", apple, [sam, fred])
    rollout = builder.task("Board rollout", banana, [bob])
    builder.task("Intranet shutdown", archived, [maria])
    builder.task("Token audit", design_system, [dina])
    builder.commit()

    return SimpleNamespace(
        ops=ops,
        alpha=alpha,
        beta=beta,
        finance=finance,
        design=design,
        maria=maria,
        sam=sam,
        fred=fred,
        dina=dina,
        bob=bob,
        zebra=zebra,
        apple=apple,
        banana=banana,
        archived=archived,
        design_system=design_system,
        budget=budget,
        rollout=rollout,
    )
