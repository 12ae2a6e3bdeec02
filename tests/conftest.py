import random

import pytest

from linkorm import LinkORM, Text
from linkorm.settings import load_settings


@pytest.fixture
def orm():
    """Fresh in-memory LinkORM per test, SQL echo off."""
    settings = load_settings(DATABASE_PATH=":memory:", ECHO_SQL=False)
    instance = LinkORM(settings=settings)
    yield instance
    instance.close()


@pytest.fixture
def suffix():
    """Random model-name suffix so definitions never collide."""
    return str(random.randint(0, 10 ** 6))


@pytest.fixture
def user_task(orm, suffix):
    """User/Task pair associated both ways through ``user_tasks``, tables freshly synced."""
    User = orm.define(f"User{suffix}", {"username": Text})
    Task = orm.define(f"Task{suffix}", {"title": Text})
    User.belongs_to_many(Task, alias="Tasks", through="user_tasks")
    Task.belongs_to_many(User, alias="Users", through="user_tasks")
    orm.sync(force=True)
    return User, Task
