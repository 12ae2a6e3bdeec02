import re

import pytest

from linkorm import Text, AssociationError, DatabaseError, col
from linkorm.settings import get_settings

pytestmark = pytest.mark.skipif(
    not re.match(r"^sqlite", get_settings().DIALECT),
    reason="association tests run against the sqlite dialect only",
)


def _seed(User, Task, count=5):
    User.bulk_create([{"username": f"user{i}"} for i in range(count)])
    Task.bulk_create([{"title": f"task{i}"} for i in range(count)])
    return User.find_all(order="id"), Task.find_all(order="id")


def test_add_task_to_user_without_tasks(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task)
    user = users[0]

    assert user.get_tasks() == []
    user.add_task(tasks[0])
    assert len(user.get_tasks()) == 1


def test_set_then_remove_tasks(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task)
    user = users[0]

    user.set_tasks(tasks)
    assert len(user.get_tasks()) == 5

    user.remove_task(tasks[0])
    assert len(user.get_tasks()) == 4

    user.remove_tasks([tasks[1], tasks[2]])
    assert len(user.get_tasks()) == 2
    assert [t.title for t in user.get_tasks(order="id")] == ["task3", "task4"]


def test_get_returns_target_instances(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=2)
    user = users[0]

    user.add_tasks(tasks)
    fetched = user.get_tasks(order=("id", "DESC"))

    assert all(isinstance(t, Task) for t in fetched)
    assert [t.id for t in fetched] == [tasks[1].id, tasks[0].id]
    assert not fetched[0].is_new_record


def test_duplicate_add_is_ignored(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=1)
    user, task = users[0], tasks[0]

    user.add_task(task)
    user.add_task(task)
    user.add_tasks([task, task.id])

    assert user.count_tasks() == 1
    assert len(user.get_tasks()) == 1


def test_set_replaces_the_whole_collection(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task)
    user = users[0]

    user.set_tasks(tasks[:3])
    user.set_tasks([tasks[2], tasks[3]])

    assert sorted(t.id for t in user.get_tasks()) == [tasks[2].id, tasks[3].id]


def test_set_with_empty_list_clears(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task)
    user = users[0]
    user.set_tasks(tasks)

    user.set_tasks([])
    assert user.get_tasks() == []

    user.set_tasks(tasks[:1])
    user.set_tasks(None)
    assert user.count_tasks() == 0


def test_remove_absent_task_is_a_noop(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=2)
    user = users[0]
    user.add_task(tasks[0])

    assert user.remove_task(tasks[1]) == 0
    assert user.remove_tasks([]) == 0
    assert user.count_tasks() == 1


def test_collections_are_per_owner(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task)

    users[0].set_tasks(tasks[:2])
    users[1].set_tasks(tasks[2:])
    users[0].set_tasks([])

    assert users[0].get_tasks() == []
    assert len(users[1].get_tasks()) == 3


def test_reverse_accessors_see_the_same_rows(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=3)

    users[0].add_task(tasks[0])
    users[1].add_task(tasks[0])

    assert sorted(u.id for u in tasks[0].get_users()) == [users[0].id, users[1].id]
    assert tasks[1].get_users() == []

    tasks[0].remove_user(users[0])
    assert users[0].get_tasks() == []


def test_raw_primary_keys_are_accepted(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=3)
    user = users[0]

    user.add_tasks([tasks[0].id, tasks[1].id])
    assert user.has_tasks([tasks[0], tasks[1].id])

    user.remove_task(tasks[0].id)
    assert not user.has_task(tasks[0])


def test_has_and_count(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=3)
    user = users[0]
    user.add_tasks(tasks[:2])

    assert user.has_task(tasks[0])
    assert not user.has_task(tasks[2])
    assert user.has_tasks(tasks[:2])
    assert not user.has_tasks(tasks)
    assert user.has_tasks([])
    assert user.count_tasks() == 2
    assert user.count_tasks(where={"title": "task1"}) == 1


def test_get_with_filters_and_paging(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task)
    user = users[0]
    user.set_tasks(tasks)

    assert [t.title for t in user.get_tasks(where={"title": ["task1", "task3"]}, order="id")] == [
        "task1", "task3"
    ]
    assert [t.title for t in user.get_tasks(where=col("title").like("%4"))] == ["task4"]
    assert [t.title for t in user.get_tasks(order="id", limit=2, offset=1)] == ["task1", "task2"]


def test_create_task_links_new_row(user_task):
    User, Task = user_task
    users, _ = _seed(User, Task, count=1)
    user = users[0]

    task = user.create_task(title="fresh")

    assert not task.is_new_record
    assert Task.find_by_pk(task.id).title == "fresh"
    assert user.has_task(task)


def test_destroying_owner_removes_join_rows(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=2)
    users[0].set_tasks(tasks)
    users[1].add_task(tasks[0])
    through = User.get_associations()["Tasks"].through_model

    users[0].destroy()

    assert through.count() == 1
    assert Task.count() == 2
    assert tasks[0].get_users()[0].id == users[1].id


def test_sync_force_empties_join_table(user_task, orm):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=2)
    users[0].set_tasks(tasks)

    orm.sync(force=True)

    assert User.count() == 0
    assert User.get_associations()["Tasks"].through_model.count() == 0


def test_unsaved_instances_are_rejected(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=1)

    with pytest.raises(AssociationError):
        User(username="draft").get_tasks()
    with pytest.raises(AssociationError):
        users[0].add_task(Task(title="draft"))


def test_wrong_target_type_is_rejected(user_task):
    User, Task = user_task
    users, _ = _seed(User, Task, count=2)

    with pytest.raises(AssociationError):
        users[0].add_task(users[1])


def test_through_values_are_stored_and_updated(orm):
    User = orm.define("User", {"name": Text})
    Task = orm.define("Task", {"name": Text})
    Assignment = orm.define("Assignment", {"role": Text})
    User.belongs_to_many(Task, through=Assignment)
    orm.sync(force=True)
    user = User.create(name="ann")
    task = Task.create(name="write")

    user.add_task(task, through={"role": "owner"})
    assert Assignment.find_one(where={"user_id": user.id}).role == "owner"

    user.add_task(task, through={"role": "reviewer"})
    rows = Assignment.find_all()
    assert len(rows) == 1
    assert rows[0].role == "reviewer"

    with pytest.raises(AssociationError):
        user.add_task(task, through={"unknown": 1})
    with pytest.raises(AssociationError):
        user.add_task(task, through={"task_id": 2})


def test_failed_add_rolls_back(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=1)
    user = users[0]

    # the second key references no task, the foreign key check fails
    with pytest.raises(DatabaseError):
        user.add_tasks([tasks[0].id, 9999])

    assert user.count_tasks() == 0


def test_text_primary_key_target(orm):
    User = orm.define("User", {"name": Text})
    Tag = orm.define("Tag", {"slug": Text(pk=True)})
    association = User.belongs_to_many(Tag, through="user_tags")
    orm.sync(force=True)
    user = User.create(name="ann")
    tags = Tag.bulk_create([{"slug": "007"}, {"slug": "42"}])

    user.add_tag(tags[0])
    user.add_tags(["42"])

    assert association.through_model._mapper.columns["tag_slug"].sql_type == "TEXT"
    assert sorted(t.slug for t in user.get_tags()) == ["007", "42"]
    assert user.has_tag("007")
    rows = orm.engine.execute('SELECT "tag_slug" FROM "user_tags" ORDER BY "tag_slug"')
    assert [row[0] for row in rows] == ["007", "42"]

    user.remove_tag("007")
    assert [t.slug for t in user.get_tags()] == ["42"]


def test_targets_may_be_any_iterable(user_task):
    User, Task = user_task
    users, tasks = _seed(User, Task, count=3)
    user = users[0]

    user.set_tasks(t for t in tasks)
    assert user.count_tasks() == 3

    user.remove_tasks({t.id: t for t in tasks[:2]}.values())
    assert [t.id for t in user.get_tasks()] == [tasks[2].id]
    assert user.has_tasks(iter([tasks[2]]))
