"""
Tests for the ask pipeline
"""
from sqlalchemy import create_engine, text

from conftest import API
from querypilot.core.exceptions import SqlGenerationError
from querypilot.models import AuditLog


def ask(client, headers, connection_id, question="list customers"):
    return client.post(
        f"{API}/query/ask",
        json={"connectionId": connection_id, "question": question},
        headers=headers
    )


def grant(client, headers, user_id, connection_id):
    client.post(
        f"{API}/admin/permissions",
        json={"userId": user_id, "connectionId": connection_id},
        headers=headers
    )


class TestAskPassed:
    """Allowed, safe questions return rows"""

    def test_admin_ask_returns_rows(self, client, admin_headers, target_connection, fake_generator):
        response = ask(client, admin_headers, target_connection.id)

        assert response.status_code == 200
        body = response.json()
        assert body["safetyCheck"] == "PASSED"
        assert body["sql"] == "SELECT id, name FROM customers ORDER BY id LIMIT 100"
        assert body["result"] == [
            {"id": 1, "name": "Ada"},
            {"id": 2, "name": "Grace"},
            {"id": 3, "name": "Linus"},
        ]
        assert fake_generator.calls == [("list customers", target_connection.id)]

    def test_zero_rows_is_success(self, client, admin_headers, target_connection, fake_generator):
        fake_generator.sql = "SELECT id FROM customers WHERE id > 100"

        body = ask(client, admin_headers, target_connection.id).json()

        assert body["safetyCheck"] == "PASSED"
        assert body["result"] == []

    def test_existing_limit_is_kept(self, client, admin_headers, target_connection, fake_generator):
        fake_generator.sql = "SELECT name FROM customers ORDER BY id LIMIT 2;"

        body = ask(client, admin_headers, target_connection.id).json()

        assert body["sql"] == "SELECT name FROM customers ORDER BY id LIMIT 2"
        assert [row["name"] for row in body["result"]] == ["Ada", "Grace"]

    def test_values_are_json_safe(self, client, admin_headers, target_connection, fake_generator):
        fake_generator.sql = "SELECT balance, active FROM customers WHERE id = 2"

        body = ask(client, admin_headers, target_connection.id).json()

        assert body["result"] == [{"balance": None, "active": 0}]


class TestAskAuthorization:
    """The gateway is consulted on every ask"""

    def test_alice_without_grant_is_denied(self, client, analyst_headers, target_connection, fake_generator):
        response = ask(client, analyst_headers, target_connection.id)

        assert response.status_code == 403
        assert response.json()["error"] is True
        assert fake_generator.calls == []

    def test_alice_with_grant_is_allowed(
        self, client, admin_headers, analyst_headers, analyst_user, target_connection, fake_generator
    ):
        grant(client, admin_headers, analyst_user.id, target_connection.id)

        response = ask(client, analyst_headers, target_connection.id)

        assert response.status_code == 200
        assert response.json()["safetyCheck"] == "PASSED"

    def test_revoke_mid_session_denies_next_ask(
        self, client, admin_headers, analyst_headers, analyst_user, target_connection, fake_generator
    ):
        grant(client, admin_headers, analyst_user.id, target_connection.id)
        assert ask(client, analyst_headers, target_connection.id).status_code == 200

        client.delete(
            f"{API}/admin/permissions",
            params={"userId": analyst_user.id, "connectionId": target_connection.id},
            headers=admin_headers
        )

        assert ask(client, analyst_headers, target_connection.id).status_code == 403

    def test_admin_unknown_connection_is_not_found(self, client, admin_headers, fake_generator):
        assert ask(client, admin_headers, 999).status_code == 404

    def test_anonymous_ask_is_401(self, client, target_connection, fake_generator):
        assert ask(client, {}, target_connection.id).status_code == 401

    def test_denied_ask_is_audited(self, client, db, analyst_headers, target_connection, fake_generator):
        ask(client, analyst_headers, target_connection.id)

        entry = db.query(AuditLog).filter(AuditLog.action == "query_ask").one()
        assert entry.status == "denied"
        assert entry.username == "alice"


class TestAskSafety:
    """Unsafe SQL comes back BLOCKED, never executed"""

    def test_delete_is_blocked(self, client, admin_headers, target_connection, target_db_url, fake_generator):
        fake_generator.sql = "DELETE FROM customers"

        response = ask(client, admin_headers, target_connection.id, "remove everyone")

        assert response.status_code == 200
        body = response.json()
        assert body["safetyCheck"] == "BLOCKED"
        assert body["sql"] == "DELETE FROM customers"
        assert body["result"] == []
        assert "DELETE" in body["message"]

        engine = create_engine(target_db_url)
        with engine.connect() as conn:
            assert conn.execute(text("SELECT COUNT(*) FROM customers")).scalar() == 3
        engine.dispose()

    def test_stacked_statement_is_blocked(self, client, admin_headers, target_connection, fake_generator):
        fake_generator.sql = "SELECT 1; DROP TABLE customers"

        body = ask(client, admin_headers, target_connection.id).json()

        assert body["safetyCheck"] == "BLOCKED"

    def test_blocked_ask_is_audited(self, client, db, admin_headers, target_connection, fake_generator):
        fake_generator.sql = "UPDATE customers SET name = 'x'"

        ask(client, admin_headers, target_connection.id)

        entry = db.query(AuditLog).filter(AuditLog.action == "query_ask").one()
        assert entry.status == "blocked"
        assert entry.details["sql"] == "UPDATE customers SET name = 'x'"


class TestAskFailures:
    """Generation and execution errors are reported, not hidden"""

    def test_execution_error_is_400(self, client, admin_headers, target_connection, fake_generator):
        fake_generator.sql = "SELECT missing_column FROM customers"

        response = ask(client, admin_headers, target_connection.id)

        assert response.status_code == 400
        assert "Query execution failed" in response.json()["message"]
        assert response.json()["code"] == "QUERY_EXECUTION_FAILED"

    def test_generation_error_is_502(self, client, admin_headers, target_connection, fake_generator):
        fake_generator.error = SqlGenerationError("Failed to parse SQL from AI response")

        response = ask(client, admin_headers, target_connection.id)

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to parse SQL from AI response"
        assert response.json()["code"] == "SQL_GENERATION_FAILED"

    def test_blank_question_is_rejected(self, client, admin_headers, target_connection, fake_generator):
        response = ask(client, admin_headers, target_connection.id, "   ")

        assert response.status_code == 422
        assert fake_generator.calls == []

    def test_h2_connection_cannot_execute(self, client, admin_headers, fake_generator):
        created = client.post(
            f"{API}/admin/connections",
            json={"name": "legacy", "type": "H2", "url": "jdbc:h2:mem:legacy", "username": "sa", "password": "x"},
            headers=admin_headers
        ).json()

        response = ask(client, admin_headers, created["id"])
        assert response.status_code == 400
        assert response.json()["code"] == "UNSUPPORTED_DATABASE"
