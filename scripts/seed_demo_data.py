#!/usr/bin/env python3
"""
TaskHub — Demo Data Seeder
Creates the platform admin, a sample company with its admin and two users,
and a handful of tasks spread over the three statuses.
Used for development and demo environments.

Usage:
    pip install -e .
    DATABASE_URL=sqlite+aiosqlite:///./taskhub.db python scripts/seed_demo_data.py
    python scripts/seed_demo_data.py --tasks 20 --password secret123 --seed 7
"""

import asyncio
import random
import argparse
from datetime import timedelta

import lifecycle
from auth import AuthService
from database import get_db_context, init_db
from models import Company, Task, User, UserRole, CompanyStatus, TaskStatus, TaskPriority, utcnow


# ── Configuration ───────────────────────────────────────────

ADMIN = {"name": "Admin User", "email": "admin@example.com"}
COMPANY = {
    "name": "Sample Company",
    "email": "company@example.com",
    "phone": "+1234567890",
    "address": "123 Main St, City, State",
    "website": "https://example.com",
}
COMPANY_ADMIN = {"name": "Company Admin", "email": "company.admin@example.com"}
MEMBERS = [
    {"name": "John Doe", "email": "john@example.com"},
    {"name": "Jane Smith", "email": "jane@example.com"},
]

TASK_TITLES = [
    "Review onboarding checklist", "Update client contact sheet", "Prepare weekly status report",
    "Fix invoice template", "Archive old project files", "Draft release notes",
    "Plan team offsite", "Audit shared drive permissions", "Call back supplier",
    "Clean up backlog", "Write meeting minutes", "Refresh pricing page copy",
]


def _user(profile: dict, role: UserRole, password_hash: str, company_id=None) -> User:
    return User(name=profile["name"], email=profile["email"], password_hash=password_hash, role=role, company_id=company_id)


def _task(creator: User, assignee: User, company: Company, index: int) -> Task:
    task = Task(
        user_id=creator.id,
        company_id=company.id,
        assigned_to=assignee.id,
        title=TASK_TITLES[index % len(TASK_TITLES)],
        description=f"Demo task #{index + 1}",
        priority=random.choice(list(TaskPriority)),
        due_date=utcnow() + timedelta(days=random.randint(1, 30)),
    )
    lifecycle.apply_status(task, random.choice(list(TaskStatus)))
    return task


async def seed(task_count: int, password: str) -> dict:
    await init_db()
    password_hash = AuthService.hash_password(password)

    async with get_db_context() as db:
        db.add(_user(ADMIN, UserRole.ADMIN, password_hash))

        company = Company(status=CompanyStatus.ACTIVE, **COMPANY)
        db.add(company)
        await db.flush()

        company_admin = _user(COMPANY_ADMIN, UserRole.COMPANY, password_hash, company.id)
        members = [_user(m, UserRole.USER, password_hash, company.id) for m in MEMBERS]
        db.add_all([company_admin, *members])
        await db.flush()

        for i in range(task_count):
            db.add(_task(company_admin, members[i % len(members)], company, i))

    return {"users": 2 + len(members), "companies": 1, "tasks": task_count}


def main():
    parser = argparse.ArgumentParser(description="TaskHub Demo Data Seeder")
    parser.add_argument("--tasks", type=int, default=10, help="Number of company tasks")
    parser.add_argument("--password", type=str, default="password", help="Password for every seeded account")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    random.seed(args.seed)
    counts = asyncio.run(seed(args.tasks, args.password))

    print("✅ Demo data seeded")
    print(f"   Companies: {counts['companies']}")
    print(f"   Users: {counts['users']}")
    print(f"   Tasks: {counts['tasks']}")
    print(f"   Login as {ADMIN['email']} / {COMPANY_ADMIN['email']} with the chosen password")


if __name__ == "__main__":
    main()
