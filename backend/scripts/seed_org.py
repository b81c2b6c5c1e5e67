"""Seed a demo organisation into the SQLite database.

Running it twice leaves the database unchanged: every row is looked up by its
natural key first and only inserted or updated when needed.
"""
import sqlite3
import sys
import uuid
from pathlib import Path

from sqlalchemy import create_engine

from app.db.models import Base


ROOT = Path(__file__).resolve().parents[2]
DB_PATH = ROOT / "scope_filter.db"

# (name, parent name)
DEPARTMENTS = [
    ("Engineering Operations Division Director", None),
    ("Senior Engineers", "Engineering Operations Division Director"),
    ("Junior Engineers", "Engineering Operations Division Director"),
    ("Call Centre", "Engineering Operations Division Director"),
    ("Operation Planning Team", "Engineering Operations Division Director"),
    ("System Solutioning Division Director", None),
    ("Developers", "System Solutioning Division Director"),
    ("Support Team", "System Solutioning Division Director"),
    ("Finance Director", None),
    ("Finance Managers", "Finance Director"),
    ("Finance Executive", "Finance Managers"),
]

# (username, department, roles)
USERS = [
    ("joel", "Engineering Operations Division Director", ["staff", "manager"]),
    ("kester", "Engineering Operations Division Director", ["staff"]),
    ("garrison", "System Solutioning Division Director", ["staff", "manager"]),
    ("rose", "Developers", ["staff"]),
    ("mitch", "Finance Director", ["staff", "manager", "admin"]),
    ("ryan", "Finance Director", ["staff"]),
]

# (name, archived, linked departments)
PROJECTS = [
    ("Website Revamp", False, ["Senior Engineers", "Developers"]),
    ("Billing Migration", False, ["Finance Director", "Developers"]),
    ("Support Portal", False, ["Call Centre", "Support Team"]),
    ("Legacy CRM", True, ["Finance Director"]),
]

# (title, project, creator, assignees)
TASKS = [
    ("Audit invoice exports", "Billing Migration", "mitch", ["mitch", "rose"]),
    ("Deploy landing page", "Website Revamp", "kester", ["kester", "rose"]),
    ("Train support agents", "Support Portal", "joel", ["joel"]),
    ("Close legacy accounts", "Legacy CRM", "ryan", ["ryan"]),
]

DEFAULT_PASSWORD = "password123"


def user_id_for(username: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_DNS, f"{username}.scope-filter.local"))


def ensure_department(cur: sqlite3.Cursor, name: str, parent_id: int | None) -> int:
    cur.execute("SELECT id FROM Departments WHERE name = ? LIMIT 1", (name,))
    row = cur.fetchone()
    if row:
        cur.execute("UPDATE Departments SET parent_department_id = ? WHERE id = ?", (parent_id, int(row[0])))
        return int(row[0])

    cur.execute("INSERT INTO Departments (name, parent_department_id) VALUES (?, ?)", (name, parent_id))
    return int(cur.lastrowid)


def upsert_user(cur: sqlite3.Cursor, username: str, department_id: int) -> str:
    user_id = user_id_for(username)
    cur.execute(
        """
        INSERT INTO Users (id, username, email, password_hash, first_name, department_id)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(username) DO UPDATE SET
          email = excluded.email,
          first_name = excluded.first_name,
          department_id = excluded.department_id
        """,
        (user_id, username, f"{username}@scope-filter.local", DEFAULT_PASSWORD, username.title(), department_id),
    )
    cur.execute("SELECT id FROM Users WHERE username = ?", (username,))
    row = cur.fetchone()
    if not row:
        raise RuntimeError(f"Failed to upsert user: {username}")
    return str(row[0])


def ensure_project(cur: sqlite3.Cursor, name: str, is_archived: bool) -> int:
    cur.execute(
        """
        INSERT INTO Projects (name, is_archived) VALUES (?, ?)
        ON CONFLICT(name) DO UPDATE SET is_archived = excluded.is_archived
        """,
        (name, int(is_archived)),
    )
    cur.execute("SELECT id FROM Projects WHERE name = ?", (name,))
    return int(cur.fetchone()[0])


def ensure_task(cur: sqlite3.Cursor, project_id: int, title: str, creator_id: str) -> int:
    cur.execute("SELECT id FROM Tasks WHERE project_id = ? AND title = ? LIMIT 1", (project_id, title))
    row = cur.fetchone()
    if row:
        return int(row[0])

    cur.execute(
        """
        INSERT INTO Tasks (title, status, priority_bucket, project_id, creator_id, is_archived)
        VALUES (?, 'To Do', 5, ?, ?, 0)
        """,
        (title, project_id, creator_id),
    )
    return int(cur.lastrowid)


def seed(db_path: Path = DB_PATH) -> dict[str, dict[str, int | str]]:
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(bind=engine)
    engine.dispose()

    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA foreign_keys = ON;")
    cur = conn.cursor()

    departments: dict[str, int] = {}
    for name, parent in DEPARTMENTS:
        departments[name] = ensure_department(cur, name, departments[parent] if parent else None)

    for role in ("staff", "manager", "admin"):
        cur.execute("INSERT INTO Roles (role) VALUES (?) ON CONFLICT(role) DO NOTHING", (role,))

    users: dict[str, str] = {}
    for username, department, roles in USERS:
        users[username] = upsert_user(cur, username, departments[department])
        for role in roles:
            cur.execute(
                "INSERT INTO UserRoles (user_id, role) VALUES (?, ?) ON CONFLICT DO NOTHING",
                (users[username], role),
            )

    projects: dict[str, int] = {}
    for name, archived, linked in PROJECTS:
        projects[name] = ensure_project(cur, name, archived)
        for department in linked:
            cur.execute(
                "INSERT INTO ProjectDepartments (project_id, department_id) VALUES (?, ?) ON CONFLICT DO NOTHING",
                (projects[name], departments[department]),
            )

    tasks: dict[str, int] = {}
    for title, project, creator, assignees in TASKS:
        tasks[title] = ensure_task(cur, projects[project], title, users[creator])
        for assignee in assignees:
            cur.execute(
                "INSERT INTO TaskAssignments (task_id, assignee_id) VALUES (?, ?) ON CONFLICT DO NOTHING",
                (tasks[title], users[assignee]),
            )

    conn.commit()
    conn.close()
    return {"departments": departments, "users": users, "projects": projects, "tasks": tasks}


def main() -> None:
    db_path = Path(sys.argv[1]) if len(sys.argv) > 1 else DB_PATH
    seed(db_path)
    print(f"Org seed complete: {db_path}")


if __name__ == "__main__":
    main()
