import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()

ROLE_CHOICES = ("staff", "manager", "admin")
TASK_STATUSES = ("To Do", "In Progress", "Completed", "Blocked")


def _new_user_id() -> str:
    return str(uuid.uuid4())


class Department(Base):
    __tablename__ = "Departments"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    parent_department_id = Column(
        Integer,
        ForeignKey("Departments.id", onupdate="CASCADE", ondelete="SET NULL"),
        index=True,
    )

    __table_args__ = (
        CheckConstraint(
            "parent_department_id IS NULL OR parent_department_id <> id",
            name="ck_departments_not_self_parent",
        ),
    )

    parent = relationship("Department", remote_side=[id], backref="children")


class User(Base):
    __tablename__ = "Users"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    username = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    first_name = Column(String)
    last_name = Column(String)
    # One home department per user.
    department_id = Column(
        Integer,
        ForeignKey("Departments.id", onupdate="CASCADE", ondelete="SET NULL"),
        index=True,
    )

    department = relationship("Department")
    roles = relationship("UserRole", cascade="all, delete-orphan")


class Role(Base):
    __tablename__ = "Roles"

    role = Column(String(50), primary_key=True)

    __table_args__ = (
        CheckConstraint("role IN ('staff', 'manager', 'admin')", name="ck_roles_allowed"),
    )


class UserRole(Base):
    __tablename__ = "UserRoles"

    user_id = Column(String(36), ForeignKey("Users.id", ondelete="CASCADE"), primary_key=True)
    role = Column(String(50), ForeignKey("Roles.role", ondelete="CASCADE"), primary_key=True)


class Project(Base):
    __tablename__ = "Projects"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    tasks = relationship("Task", back_populates="project")


class ProjectDepartment(Base):
    __tablename__ = "ProjectDepartments"

    project_id = Column(Integer, ForeignKey("Projects.id", ondelete="CASCADE"), primary_key=True)
    department_id = Column(Integer, ForeignKey("Departments.id", ondelete="CASCADE"), primary_key=True)


class Task(Base):
    __tablename__ = "Tasks"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    status = Column(String, nullable=False, default="To Do")
    priority_bucket = Column(Integer, nullable=False, default=5)
    project_id = Column(Integer, ForeignKey("Projects.id", onupdate="CASCADE", ondelete="CASCADE"), nullable=False)
    creator_id = Column(String(36), ForeignKey("Users.id", ondelete="CASCADE"), nullable=False)
    parent_task_id = Column(Integer, ForeignKey("Tasks.id", onupdate="CASCADE", ondelete="RESTRICT"))
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "status IN ('To Do', 'In Progress', 'Completed', 'Blocked')",
            name="ck_tasks_status",
        ),
        CheckConstraint("priority_bucket BETWEEN 1 AND 10", name="ck_tasks_priority_bucket"),
        CheckConstraint("parent_task_id IS NULL OR parent_task_id <> id", name="ck_tasks_not_self"),
    )

    project = relationship("Project", back_populates="tasks")
    creator = relationship("User")
    parent = relationship("Task", remote_side=[id])
    assignments = relationship("TaskAssignment", back_populates="task", cascade="all, delete-orphan")


class TaskAssignment(Base):
    __tablename__ = "TaskAssignments"

    task_id = Column(Integer, ForeignKey("Tasks.id", ondelete="CASCADE"), primary_key=True)
    assignee_id = Column(String(36), ForeignKey("Users.id", ondelete="CASCADE"), primary_key=True)

    task = relationship("Task", back_populates="assignments")
    assignee = relationship("User")
