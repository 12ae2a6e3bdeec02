import pytest

from linkorm import Text, col
from linkorm.builder import QueryBuilder
from linkorm.generator import SchemaGenerator


@pytest.fixture
def qb():
    return QueryBuilder()


@pytest.fixture
def models(orm):
    User = orm.define("User", {"name": Text}, timestamps=False)
    Task = orm.define("Task", {"name": Text}, timestamps=False)
    association = User.belongs_to_many(Task, through="user_tasks")
    return User, Task, association.through_model


def test_insert(qb):
    assert qb.build_insert("t", {"a": 1, "b": 2}) == ('INSERT INTO "t" ("a", "b") VALUES (?, ?)', (1, 2))
    assert qb.build_insert("t", {}) == ('INSERT INTO "t" DEFAULT VALUES', ())


def test_unsafe_identifiers_are_rejected(qb):
    with pytest.raises(ValueError):
        qb.build_insert("t; DROP TABLE x", {"a": 1})
    with pytest.raises(ValueError):
        qb.build_delete("t", {"a b": 1})


def test_select_with_order_and_paging(qb, models):
    User, _, _ = models
    sql, params = qb.build_select(User._mapper, {"name": "ann"}, order_by=[("id", "desc")], limit=2, offset=1)

    assert sql == (
        'SELECT "Users"."id" AS "id", "Users"."name" AS "name" FROM "Users" '
        'WHERE "Users"."name" = ? ORDER BY "Users"."id" DESC LIMIT 2 OFFSET 1'
    )
    assert params == ("ann",)

    sql, _ = qb.build_select(User._mapper, offset=3)
    assert sql.endswith("LIMIT -1 OFFSET 3")

    with pytest.raises(ValueError):
        qb.build_select(User._mapper, order_by=[("id", "sideways")])


def test_select_through_join_table(qb, models):
    _, Task, _ = models
    sql, params = qb.build_select(Task._mapper, col("name") == "x", through=("user_tasks", "user_id", "task_id", 7))

    assert sql == (
        'SELECT "Tasks"."id" AS "id", "Tasks"."name" AS "name" FROM "Tasks" '
        'JOIN "user_tasks" ON "Tasks"."id" = "user_tasks"."task_id" '
        'WHERE "user_tasks"."user_id" = ? AND "Tasks"."name" = ?'
    )
    assert params == (7, "x")

    sql, params = qb.build_count(Task._mapper, through=("user_tasks", "user_id", "task_id", 7))
    assert sql.startswith('SELECT COUNT(*) AS count FROM "Tasks" JOIN "user_tasks"')
    assert params == (7,)


def test_update_and_delete(qb):
    assert qb.build_update("t", {"a": 1}, {"id": 3}) == ('UPDATE "t" SET "a" = ? WHERE "id" = ?', (1, 3))
    assert qb.build_delete("t") == ('DELETE FROM "t"', ())
    assert qb.build_delete("t", {"id": [1, 2]}) == ('DELETE FROM "t" WHERE "id" IN (?, ?)', (1, 2))

    with pytest.raises(ValueError):
        qb.build_update("t", {"a": 1}, {})


def test_join_table_statements(qb):
    assert qb.build_m2m_select("ut", 1, "user_id", "task_id") == (
        'SELECT "task_id" FROM "ut" WHERE "user_id" = ?', (1,)
    )
    assert qb.build_m2m_select("ut", 1, "user_id", "task_id", [2, 3]) == (
        'SELECT "task_id" FROM "ut" WHERE "user_id" = ? AND "task_id" IN (?, ?)', (1, 2, 3)
    )
    assert qb.build_m2m_delete("ut", 1, [2, 3], "user_id", "task_id") == (
        'DELETE FROM "ut" WHERE "user_id" = ? AND "task_id" IN (?, ?)', (1, 2, 3)
    )
    assert qb.build_m2m_cleanup("ut", 1, "user_id") == ('DELETE FROM "ut" WHERE "user_id" = ?', (1,))


def test_where_dict(qb):
    sql, params = qb.build_where({"a": 1, "b": None, "c": [1, 2], "d": []}, None)

    assert sql == '"a" = ? AND "b" IS NULL AND "c" IN (?, ?) AND 0 = 1'
    assert params == [1, 1, 2]


def test_compile_filters(qb):
    sql, params = qb.compile_filter((col("age") > 3) & col("name").like("%e%"), "t")
    assert sql == '("t"."age" > ?) AND ("t"."name" LIKE ?)'
    assert params == [3, "%e%"]

    assert qb.compile_filter(col("a") == col("b"), "t") == ('"t"."a" = "t"."b"', [])
    assert qb.compile_filter(col("a") != None, "t") == ('"t"."a" IS NOT NULL', [])  # noqa: E711
    assert qb.compile_filter(col("a").is_null(), None) == ('"a" IS NULL', [])
    assert qb.compile_filter(col("n").ilike("A%"), "t") == ('LOWER("t"."n") LIKE LOWER(?)', ["A%"])
    assert qb.compile_filter(col("n").between(1, 5), "t") == ('"t"."n" BETWEEN ? AND ?', [1, 5])
    assert qb.compile_filter(~col("x").in_([1]), "t") == ('NOT ("t"."x" IN (?))', [1])
    assert qb.compile_filter(col("x").not_in([]), "t") == ("1 = 1", [])

    with pytest.raises(TypeError):
        qb.compile_filter(col("a"), "t")


def test_create_table_sql(models):
    User, _, through = models
    generator = SchemaGenerator()

    assert generator.generate_create_table(User._mapper) == (
        'CREATE TABLE IF NOT EXISTS "Users" '
        '("id" INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL, "name" TEXT);'
    )
    assert generator.generate_create_table(through._mapper) == (
        'CREATE TABLE IF NOT EXISTS "user_tasks" ('
        '"user_id" INTEGER NOT NULL, "task_id" INTEGER NOT NULL, '
        'PRIMARY KEY ("user_id", "task_id"), '
        'FOREIGN KEY ("user_id") REFERENCES "Users" ("id") ON DELETE CASCADE ON UPDATE CASCADE, '
        'FOREIGN KEY ("task_id") REFERENCES "Tasks" ("id") ON DELETE CASCADE ON UPDATE CASCADE);'
    )
    assert generator.generate_drop_table(through._mapper) == 'DROP TABLE IF EXISTS "user_tasks";'


def test_same_logic_chains_are_flattened(qb):
    expr = (col("a") == 1) & (col("b") == 2) & (col("c") == 3)
    assert len(expr.filters) == 3

    sql, params = qb.compile_filter(expr | (col("d") == 4), None)
    assert sql == '(("a" = ?) AND ("b" = ?) AND ("c" = ?)) OR ("d" = ?)'
    assert params == [1, 2, 3, 4]
