#!/usr/bin/env python3
"""Seed a TaskTrail database with demo accounts and tasks."""

import asyncio
import logging

from tasktrail.auth import register_user
from tasktrail.config import settings
from tasktrail.db import Database, TaskRepository
from tasktrail.models import Role, TaskStatus

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("tasktrail.seed")

SAMPLE_TASKS = [
    ("Complete project setup", "Set up the initial project structure and dependencies", TaskStatus.COMPLETED),
    ("Implement user authentication", "Add login and registration functionality", TaskStatus.IN_PROGRESS),
    ("Design database schema", "Create tables for users, tasks and activity logs", TaskStatus.PENDING),
]


async def seed() -> None:
    database = Database.from_settings(settings)
    try:
        await database.create_all()
        async with database.session() as session:
            admin = await register_user(session, "admin@example.com", "adminpassword", Role.ADMIN)
            user = await register_user(session, "user@example.com", "userpassword", Role.USER)

            tasks = TaskRepository(session)
            for title, description, status in SAMPLE_TASKS:
                task = await tasks.create(
                    title=title,
                    description=description,
                    created_by=admin.id,
                    assigned_to=user.id,
                )
                if status != TaskStatus.PENDING:
                    await tasks.update(task.id, {"status": status})
        logger.info(f"Seeded {len(SAMPLE_TASKS)} tasks for {admin.email} and {user.email}")
    finally:
        await database.close()


if __name__ == "__main__":
    asyncio.run(seed())
