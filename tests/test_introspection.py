import unittest
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager

from erdforge.config import PALETTE
from erdforge.ddl import generate_model_ddl
from erdforge.dialects import default_port, get_adapter, render_type
from erdforge.errors import IntrospectionError
from erdforge.introspection import ConnectionInfo, import_schema, import_schema_async
from erdforge.layout import estimate_table_size, rects_overlap, Rect
from erdforge.schemas import ConnectionRequest


class _Result:
    def __init__(self, rows):
        self._rows = rows

    def fetchall(self):
        return list(self._rows)


class FakeSession:
    """Answers catalog queries by SQL text; `responses` maps SQL -> rows or fn(params) -> rows."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def execute(self, stmt, params=None):
        self.calls.append((stmt.text, params))
        answer = self.responses[stmt.text]
        rows = answer(params) if callable(answer) else answer
        return _Result(rows)


def session_factory_for(session, state=None):
    state = state if state is not None else {}

    @contextmanager
    def factory(info, adapter):
        state["opened"] = True
        try:
            yield session
        finally:
            state["closed"] = True

    return factory


def mysql_session():
    adapter = get_adapter("MySQL")
    columns = {
        "A": [("id", "int", "int(11)", "NO", "PRI", None, "")],
        "B": [
            ("id", "int", "int(11)", "NO", "PRI", None, ""),
            ("a_id", "int", "int(11)", "YES", "MUL", None, "points at A"),
            ("label", "varchar", "varchar(40)", "YES", "", "x", ""),
        ],
    }
    return FakeSession(
        {
            adapter.TABLES_SQL: [("A", "first"), ("B", None)],
            adapter.COLUMNS_SQL: lambda params: columns[params["table"]],
            adapter.FOREIGN_KEYS_SQL: [("B", "a_id", "A", "id")],
        }
    )


class TestImportSchema(unittest.TestCase):
    def test_mysql_import_builds_one_relationship(self):
        info = ConnectionInfo(db_type="MySQL", database="shop")
        result = import_schema(info, session_factory=session_factory_for(mysql_session()))
        self.assertTrue(result.is_success, result.error_message)

        schema = result.schema
        self.assertEqual(schema.database_name, "shop")
        a, b = schema.tables
        self.assertEqual((a.name, a.comment, b.comment), ("A", "first", ""))
        self.assertEqual([a.header_color, b.header_color], list(PALETTE[:2]))

        self.assertEqual(len(schema.relationships), 1)
        rel = schema.relationships[0]
        self.assertEqual((rel.source_table_id, rel.target_table_id), (a.id, b.id))
        self.assertEqual((rel.source_column_name, rel.target_column_name), ("id", "a_id"))
        self.assertEqual(rel.relation_type.value, "OneToMany")

        a_id = b.find_column("a_id")
        self.assertTrue(a_id.is_foreign_key)
        self.assertFalse(a_id.is_primary_key)
        self.assertEqual(a_id.data_type, "INT(11)")
        self.assertEqual(a_id.comment, "points at A")
        self.assertTrue(a.find_column("id").is_primary_key)
        self.assertFalse(a.find_column("id").is_nullable)
        self.assertEqual(b.find_column("label").default_value, "x")

    def test_import_lays_out_tables_without_overlap(self):
        info = ConnectionInfo(db_type="MySQL", database="shop")
        result = import_schema(info, session_factory=session_factory_for(mysql_session()))
        a, b = result.schema.tables
        ra = Rect(a.x, a.y, *estimate_table_size(a))
        rb = Rect(b.x, b.y, *estimate_table_size(b))
        self.assertEqual((a.x, a.y), (50, 50))
        self.assertFalse(rects_overlap(ra, rb, 20))

    def test_import_result_converts_to_model(self):
        info = ConnectionInfo(db_type="MySQL", database="shop")
        result = import_schema(info, session_factory=session_factory_for(mysql_session()))
        model = result.schema.to_model()
        self.assertEqual(model.database_name, "shop")
        self.assertEqual([t.name for t in model.tables], ["A", "B"])

    def test_duplicate_foreign_key_rows_collapse(self):
        session = mysql_session()
        adapter = get_adapter("MySQL")
        session.responses[adapter.FOREIGN_KEYS_SQL] = [("B", "a_id", "A", "id"), ("B", "A_ID", "A", "ID")]
        result = import_schema(ConnectionInfo(database="shop"), session_factory=session_factory_for(session))
        self.assertEqual(len(result.schema.relationships), 1)

    def test_foreign_key_to_unlisted_table_is_skipped(self):
        session = mysql_session()
        adapter = get_adapter("MySQL")
        session.responses[adapter.FOREIGN_KEYS_SQL] = [("B", "a_id", "OTHER", "id")]
        result = import_schema(ConnectionInfo(database="shop"), session_factory=session_factory_for(session))
        self.assertTrue(result.is_success)
        self.assertEqual(result.schema.relationships, [])

    def test_query_failure_returns_failure_and_closes_session(self):
        class Broken:
            def execute(self, stmt, params=None):
                raise RuntimeError("connection reset")

        state = {}
        result = import_schema(
            ConnectionInfo(database="shop"), session_factory=session_factory_for(Broken(), state)
        )
        self.assertFalse(result.is_success)
        self.assertIsNone(result.schema)
        self.assertIsInstance(result.error, IntrospectionError)
        self.assertIn("connection reset", result.error_message)
        self.assertTrue(state["closed"])

    def test_unsupported_database_type(self):
        state = {}
        result = import_schema(
            ConnectionInfo(db_type="Access"), session_factory=session_factory_for(None, state)
        )
        self.assertFalse(result.is_success)
        self.assertIn("Unsupported database type: Access", result.error_message)
        self.assertNotIn("opened", state)

    def test_postgresql_import_uppercases_names(self):
        adapter = get_adapter("PostgreSQL")
        columns = {
            "users": [
                ("id", "integer", None, 32, 0, "NO", None, "", True),
                ("email", "character varying", 120, None, None, "YES", None, "login", False),
                ("balance", "numeric", None, 12, 2, "YES", "0", "", False),
            ],
            "posts": [
                ("id", "integer", None, 32, 0, "NO", None, "", True),
                ("user_id", "integer", None, 32, 0, "NO", None, "", False),
            ],
        }
        session = FakeSession(
            {
                adapter.TABLES_SQL: [("posts", ""), ("users", "accounts")],
                adapter.COLUMNS_SQL: lambda params: columns[params["table"]],
                adapter.FOREIGN_KEYS_SQL: [("posts", "user_id", "users", "id")],
            }
        )
        info = ConnectionInfo(db_type="PostgreSQL", database="blog", schema="")
        result = import_schema(info, session_factory=session_factory_for(session))
        self.assertTrue(result.is_success, result.error_message)

        self.assertEqual(session.calls[0][1], {"schema": "public"})
        posts, users = result.schema.tables
        self.assertEqual((posts.name, users.name), ("POSTS", "USERS"))
        self.assertEqual(
            [c.data_type for c in users.columns],
            ["INTEGER(32)", "CHARACTER VARYING(120)", "NUMERIC(12,2)"],
        )
        self.assertEqual(users.columns[1].name, "EMAIL")
        rel = result.schema.relationships[0]
        self.assertEqual((rel.source_column_name, rel.target_column_name), ("ID", "USER_ID"))
        self.assertTrue(posts.find_column("USER_ID").is_foreign_key)

    def test_oracle_import_uses_upper_owner(self):
        adapter = get_adapter("Oracle")
        session = FakeSession(
            {
                adapter.TABLES_SQL: [("DEPT", "departments")],
                adapter.COLUMNS_SQL: [
                    ("DEPTNO", "NUMBER", 22, 2, 0, "N", None, None, "Y"),
                    ("DNAME", "VARCHAR2", 14, None, None, "Y", "'NONE'  ", "name", "N"),
                    ("BUDGET", "NUMBER", 22, 10, 2, "Y", None, None, "N"),
                    ("CREATED", "DATE", 7, None, None, "Y", None, None, "N"),
                ],
                adapter.FOREIGN_KEYS_SQL: [],
            }
        )
        info = ConnectionInfo(db_type="oracle", database="scott")
        result = import_schema(info, session_factory=session_factory_for(session))
        self.assertTrue(result.is_success, result.error_message)
        self.assertEqual(session.calls[0][1], {"schema": "SCOTT"})
        (dept,) = result.schema.tables
        self.assertEqual(
            [c.data_type for c in dept.columns],
            ["NUMBER(2)", "VARCHAR2(14)", "NUMBER(10,2)", "DATE"],
        )
        self.assertEqual(dept.columns[1].default_value, "'NONE'")
        self.assertTrue(dept.columns[0].is_primary_key)
        self.assertFalse(dept.columns[0].is_nullable)

    def test_columns_differing_only_by_case_are_collapsed(self):
        adapter = get_adapter("PostgreSQL")
        session = FakeSession(
            {
                adapter.TABLES_SQL: [("t", "")],
                adapter.COLUMNS_SQL: [
                    ("id", "integer", None, 32, 0, "NO", None, "", True),
                    ("ID", "integer", None, 32, 0, "YES", None, "", False),
                ],
                adapter.FOREIGN_KEYS_SQL: [],
            }
        )
        result = import_schema(
            ConnectionInfo(db_type="PostgreSQL", database="db"),
            session_factory=session_factory_for(session),
        )
        self.assertTrue(result.is_success, result.error_message)
        (table,) = result.schema.tables
        self.assertEqual([c.name for c in table.columns], ["ID"])
        self.assertTrue(table.columns[0].is_primary_key)
        model = result.schema.to_model()
        self.assertEqual(model.find_table("T").columns, table.columns)

    def test_invalid_imported_schema_is_a_failure(self):
        adapter = get_adapter("MySQL")
        session = FakeSession(
            {
                adapter.TABLES_SQL: [("A", "")],
                adapter.COLUMNS_SQL: [("", "int", "int", "NO", "", None, "")],
                adapter.FOREIGN_KEYS_SQL: [],
            }
        )
        result = import_schema(ConnectionInfo(database="shop"), session_factory=session_factory_for(session))
        self.assertFalse(result.is_success)
        self.assertIsNone(result.schema)
        self.assertIn("column without a name", result.error_message)

    def test_foreign_key_on_primary_key_column_keeps_primary_key(self):
        adapter = get_adapter("MySQL")
        columns = {
            "USERS": [("id", "int", "int", "NO", "PRI", None, "")],
            "ROLES": [("id", "int", "int", "NO", "PRI", None, "")],
            "USER_ROLES": [
                ("user_id", "int", "int", "NO", "PRI", None, ""),
                ("role_id", "int", "int", "NO", "PRI", None, ""),
                ("granted_by", "int", "int", "YES", "MUL", None, ""),
            ],
        }
        session = FakeSession(
            {
                adapter.TABLES_SQL: [("ROLES", ""), ("USERS", ""), ("USER_ROLES", "")],
                adapter.COLUMNS_SQL: lambda params: columns[params["table"]],
                adapter.FOREIGN_KEYS_SQL: [
                    ("USER_ROLES", "role_id", "ROLES", "id"),
                    ("USER_ROLES", "user_id", "USERS", "id"),
                    ("USER_ROLES", "granted_by", "USERS", "id"),
                ],
            }
        )
        result = import_schema(ConnectionInfo(database="auth"), session_factory=session_factory_for(session))
        self.assertTrue(result.is_success, result.error_message)
        junction = result.schema.tables[2]
        user_id, role_id, granted_by = junction.columns
        self.assertTrue(user_id.is_primary_key and role_id.is_primary_key)
        self.assertFalse(user_id.is_foreign_key or role_id.is_foreign_key)
        self.assertTrue(granted_by.is_foreign_key)
        self.assertEqual(len(result.schema.relationships), 3)

        sql = generate_model_ddl(result.schema.to_model(), "MySQL")
        self.assertIn("CONSTRAINT PK_USER_ROLES PRIMARY KEY (`user_id`, `role_id`)", sql)
        self.assertIn("FOREIGN KEY (`user_id`) REFERENCES `USERS`(`id`);", sql)

    def test_tibero_import_uses_oracle_catalog(self):
        adapter = get_adapter("Tibero")
        session = FakeSession(
            {
                adapter.TABLES_SQL: [("EMP", "employees"), ("DEPT", "")],
                adapter.COLUMNS_SQL: lambda params: {
                    "EMP": [
                        ("EMPNO", "NUMBER", 22, 4, 0, "N", None, None, "Y"),
                        ("DEPTNO", "NUMBER", 22, 2, 0, "Y", None, None, "N"),
                    ],
                    "DEPT": [("DEPTNO", "NUMBER", 22, 2, 0, "N", None, None, "Y")],
                }[params["table"]],
                adapter.FOREIGN_KEYS_SQL: [("EMP", "DEPTNO", "DEPT", "DEPTNO")],
            }
        )
        info = ConnectionInfo(db_type="tibero", database="scott")
        result = import_schema(info, session_factory=session_factory_for(session))
        self.assertTrue(result.is_success, result.error_message)
        self.assertEqual(session.calls[0], (adapter.TABLES_SQL, {"schema": "SCOTT"}))
        self.assertIn((adapter.COLUMNS_SQL, {"schema": "SCOTT", "table": "EMP"}), session.calls)
        emp, dept = result.schema.tables
        self.assertEqual([c.data_type for c in emp.columns], ["NUMBER(4)", "NUMBER(2)"])
        self.assertTrue(emp.find_column("DEPTNO").is_foreign_key)
        rel = result.schema.relationships[0]
        self.assertEqual((rel.source_table_id, rel.target_table_id), (dept.id, emp.id))

    def test_import_schema_async(self):
        info = ConnectionInfo(db_type="MySQL", database="shop")
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = import_schema_async(
                info, executor, session_factory=session_factory_for(mysql_session())
            )
            result = future.result(timeout=10)
        self.assertTrue(result.is_success)
        self.assertEqual(len(result.schema.tables), 2)


class TestConnectionUrls(unittest.TestCase):
    def test_mysql_url(self):
        info = ConnectionInfo(db_type="MySQL", host="db", port=3306, user_id="app", password="s3cret", database="shop")
        url = get_adapter("MySQL").build_url(info)
        self.assertEqual(url.drivername, "mysql+pymysql")
        self.assertEqual((url.host, url.port, url.database), ("db", 3306, "shop"))
        self.assertEqual(url.query["charset"], "utf8mb4")
        self.assertNotIn("s3cret", repr(info))

    def test_oracle_and_tibero_service_names(self):
        info = ConnectionInfo(db_type="Oracle", host="db", port=1521, database="scott")
        self.assertEqual(get_adapter("Oracle").build_url(info).query["service_name"], "ORCL")
        self.assertEqual(get_adapter("Tibero").build_url(info).query["service_name"], "tibero")
        self.assertEqual(get_adapter("Tibero").connect_args(10), {})
        self.assertEqual(get_adapter("PostgreSQL").connect_args(10), {"connect_timeout": 10})


    def test_default_port_accepts_any_spelling(self):
        expected = {"postgres": 5432, "postgresql": 5432, "mysql": 3306, "ORACLE": 1521, " Tibero ": 8629}
        for db_type, port in expected.items():
            with self.subTest(db_type=db_type):
                self.assertEqual(default_port(db_type), port)
                self.assertEqual(ConnectionRequest(DbType=db_type).resolved_port(), port)
        self.assertEqual(default_port("Access"), 0)
        self.assertEqual(ConnectionRequest(DbType="postgres", Port=6543).resolved_port(), 6543)


class TestRenderType(unittest.TestCase):
    def test_length_wins(self):
        self.assertEqual(render_type("VARCHAR", 50, 10, 2), "VARCHAR(50)")

    def test_precision_and_positive_scale(self):
        self.assertEqual(render_type("NUMERIC", None, 10, 2), "NUMERIC(10,2)")

    def test_zero_scale_uses_precision_only(self):
        self.assertEqual(render_type("NUMBER", None, 5, 0), "NUMBER(5)")

    def test_no_size(self):
        self.assertEqual(render_type("DATE"), "DATE")


if __name__ == "__main__":
    unittest.main()
