import logging

import pytest

from linkorm import Text, ForeignKey, ModelError, ModelNotFoundError


def test_registry_lookup(orm):
    User = orm.define("User", {"name": Text})

    assert orm.is_defined("User")
    assert "User" in orm.model_manager
    assert orm.model("User") is User
    assert orm.model_manager.get_model("Ghost") is None
    assert orm.model_manager.get_model_by_table("Users") is User
    with pytest.raises(ModelNotFoundError) as exc_info:
        orm.model("Ghost")
    assert exc_info.value.details == {"model_name": "Ghost"}


def test_redefinition_replaces_previous_model(orm, caplog):
    first = orm.define("User", {"name": Text})
    second = orm.define("User", {"name": Text, "email": Text})

    assert orm.model("User") is second
    assert orm.model("User") is not first
    assert len(orm.model_manager) == 1
    assert "redefined" in caplog.text


def test_remove_model(orm):
    User = orm.define("User", {"name": Text})
    orm.define("Task", {"name": Text})

    orm.model_manager.remove_model(User)
    orm.model_manager.remove_model("Task")

    assert len(orm.models) == 0


def test_sorted_models_put_referenced_tables_first(orm):
    Comment = orm.define("Comment", {"post_id": ForeignKey("Posts", "id")})
    Post = orm.define("Post", {"author_id": ForeignKey("Authors", "id")})
    Author = orm.define("Author", {"name": Text})

    assert orm.model_manager.sorted_models() == [Author, Post, Comment]
    assert orm.model_manager.sorted_models(reverse=True) == [Comment, Post, Author]


def test_self_reference_does_not_block_ordering(orm):
    Node = orm.define("Node", {"parent_id": ForeignKey("Nodes", "id")})

    assert orm.model_manager.sorted_models() == [Node]


def test_cycle_is_reported(orm):
    orm.define("Egg", {"chicken_id": ForeignKey("Chickens", "id")})
    orm.define("Chicken", {"egg_id": ForeignKey("Eggs", "id")})

    with pytest.raises(ModelError) as exc_info:
        orm.model_manager.sorted_models()
    assert sorted(exc_info.value.details["models"]) == ["Chicken", "Egg"]


def test_sync_creates_join_table_after_its_models(orm):
    User = orm.define("User", {"name": Text})
    Task = orm.define("Task", {"name": Text})
    through = User.belongs_to_many(Task, through="user_tasks").through_model

    order = orm.model_manager.sorted_models()
    assert order.index(through) > order.index(User)
    assert order.index(through) > order.index(Task)

    orm.sync()
    tables = {row["name"] for row in orm.engine.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"Users", "Tasks", "user_tasks"} <= tables


def test_drop_all_removes_models_and_join_table(orm, caplog):
    User = orm.define("User", {"name": Text})
    Task = orm.define("Task", {"name": Text})
    User.belongs_to_many(Task, through="user_tasks")
    orm.sync()
    user = User.create(name="ann")
    user.add_task(Task.create(name="write"))
    orm.engine.echo = True

    with caplog.at_level(logging.INFO, logger="LinkORM"):
        orm.drop_all()

    assert orm.engine.execute("PRAGMA foreign_keys")[0][0] == 1
    tables = {row["name"] for row in orm.engine.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert not {"Users", "Tasks", "user_tasks"} & tables
    drops = [r.getMessage() for r in caplog.records if "DROP TABLE" in r.getMessage()]
    assert '"user_tasks"' in drops[0]
    assert len(drops) == 3
