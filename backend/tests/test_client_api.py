"""
End-to-end tests of the client library against the application
"""
import os

import httpx
import pytest

from querypilot.core.auth import create_access_token
from querypilot.core.exceptions import SqlGenerationError
from querypilot.client import (
    ConnectionDirectory, ExchangeState, QueryExchange, QueryPilotClient,
    Session, SessionExpiryPolicy, SessionStore, UserSnapshot,
    AuthenticationError, AuthorizationError, ExecutionError, NotFoundError, ValidationError
)
from querypilot.main import app

BASE_URL = "http://testserver/api/v1"


class RecordingNavigator:
    def __init__(self, current_path="/query"):
        self.current_path = current_path
        self.redirects = []

    def redirect(self, path):
        self.redirects.append(path)
        self.current_path = path


def make_client(store, navigator=None, transport=None):
    return QueryPilotClient(
        store,
        base_url=BASE_URL,
        policy=SessionExpiryPolicy(store, navigator),
        transport=transport or httpx.ASGITransport(app=app)
    )


@pytest.fixture
def alice_store(tmp_path):
    return SessionStore(str(tmp_path / "alice" / "session.json"))


@pytest.fixture
def admin_store(tmp_path):
    return SessionStore(str(tmp_path / "admin" / "session.json"))


class TestSessionLifecycle:
    """Login and register both end authenticated"""

    @pytest.mark.asyncio
    async def test_register_persists_analyst_session(self, alice_store):
        async with make_client(alice_store) as client:
            session = await client.register("alice", "alice-password")

        assert session.is_authenticated
        assert not session.is_admin
        assert SessionStore(alice_store.path).current == session

    @pytest.mark.asyncio
    async def test_login_admin(self, admin_store, admin_user):
        async with make_client(admin_store) as client:
            session = await client.login("admin", "admin-password")
            me = await client.me()

        assert session.is_admin
        assert me.username == "admin"

    @pytest.mark.asyncio
    async def test_bad_login_stays_anonymous_without_redirect(self, alice_store, analyst_user):
        navigator = RecordingNavigator(current_path="/login")

        async with make_client(alice_store, navigator) as client:
            with pytest.raises(AuthenticationError):
                await client.login("alice", "wrong-password")

        assert not alice_store.current.is_authenticated
        assert navigator.redirects == []

    @pytest.mark.asyncio
    async def test_duplicate_register_is_validation_error(self, alice_store, analyst_user):
        async with make_client(alice_store) as client:
            with pytest.raises(ValidationError) as exc_info:
                await client.register("alice", "alice-password")

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_logout_clears_locally(self, alice_store, analyst_user):
        async with make_client(alice_store) as client:
            await client.login("alice", "alice-password")
            client.logout()

        assert not alice_store.current.is_authenticated
        assert not os.path.exists(alice_store.path)


class TestExpiredCredential:
    """A 401 clears the session once and is not retried"""

    @pytest.mark.asyncio
    async def test_invalid_token_clears_once(self, alice_store):
        alice_store.replace(Session(token="forged", user=UserSnapshot(username="alice", role="ANALYST")))
        navigator = RecordingNavigator()
        requests = []

        async def counting_app(scope, receive, send):
            if scope["type"] == "http":
                requests.append(scope["path"])
            await app(scope, receive, send)

        async with make_client(alice_store, navigator, httpx.ASGITransport(app=counting_app)) as client:
            with pytest.raises(AuthenticationError):
                await client.accessible_connections()
            assert not alice_store.current.is_authenticated
            assert navigator.redirects == ["/login"]

            with pytest.raises(AuthenticationError):
                await client.accessible_connections()

        assert navigator.redirects == ["/login"]
        assert requests == ["/api/v1/query/connections", "/api/v1/query/connections"]


class TestAliceScenarios:
    """Grants govern what an analyst can list and ask"""

    @pytest.mark.asyncio
    async def test_grant_then_revoke(
        self, alice_store, admin_store, admin_user, analyst_user, target_connection, fake_generator
    ):
        admin_store.replace(Session(
            token=create_access_token(admin_user),
            user=UserSnapshot(username="admin", role="ADMIN")
        ))

        async with make_client(alice_store) as alice, make_client(admin_store) as admin:
            await alice.login("alice", "alice-password")
            directory = ConnectionDirectory(alice)
            exchange = QueryExchange(alice)

            assert await directory.refresh() == []
            assert not directory.has_selectable
            with pytest.raises(ValidationError):
                await exchange.submit(None, "top 10 users")

            await admin.grant_permission(analyst_user.id, target_connection.id)
            listed = await directory.refresh()
            assert [c.id for c in listed] == [target_connection.id]

            outcome = await exchange.submit(target_connection.id, "top 10 users")
            assert outcome.state == ExchangeState.COMPLETED
            assert outcome.safety_check == "PASSED"
            assert outcome.table.columns == ("id", "name")
            assert len(outcome.table) == 3

            await admin.revoke_permission(analyst_user.id, target_connection.id)
            # The directory still shows the stale list; the server decides
            assert directory.find(target_connection.id) is not None
            outcome = await exchange.submit(target_connection.id, "top 10 users")
            assert outcome.state == ExchangeState.REJECTED
            assert isinstance(outcome.error, AuthorizationError)

        assert alice_store.current.is_authenticated

    @pytest.mark.asyncio
    async def test_blocked_verdict_reaches_caller(
        self, admin_store, admin_user, target_connection, fake_generator
    ):
        fake_generator.sql = "DELETE FROM customers"

        async with make_client(admin_store) as admin:
            await admin.login("admin", "admin-password")
            outcome = await QueryExchange(admin).submit(target_connection.id, "remove all customers")

        assert outcome.state == ExchangeState.COMPLETED
        assert outcome.safety_check == "BLOCKED"
        assert outcome.table.is_empty
        assert "DELETE" in outcome.message

    @pytest.mark.asyncio
    async def test_database_rejection_is_execution_failure(
        self, admin_store, admin_user, target_connection, fake_generator
    ):
        fake_generator.sql = "SELECT missing_column FROM customers"

        async with make_client(admin_store) as admin:
            await admin.login("admin", "admin-password")
            exchange = QueryExchange(admin)
            outcome = await exchange.submit(target_connection.id, "anything")

        assert outcome.state == ExchangeState.FAILED
        assert isinstance(outcome.error, ExecutionError)
        assert outcome.error.status_code == 400
        assert "Query execution failed" in outcome.message
        assert exchange.transitions == [
            ExchangeState.SUBMITTED, ExchangeState.AUTHORIZED, ExchangeState.FAILED
        ]

    @pytest.mark.asyncio
    async def test_h2_ask_is_execution_failure(self, admin_store, admin_user, fake_generator):
        async with make_client(admin_store) as admin:
            await admin.login("admin", "admin-password")
            legacy = await admin.create_connection("legacy", "H2", "jdbc:h2:mem:legacy", "sa", "x")
            outcome = await QueryExchange(admin).submit(legacy.id, "anything")

        assert outcome.state == ExchangeState.FAILED
        assert isinstance(outcome.error, ExecutionError)

    @pytest.mark.asyncio
    async def test_generation_failure_is_execution_failure(
        self, admin_store, admin_user, target_connection, fake_generator
    ):
        fake_generator.error = SqlGenerationError("Failed to parse SQL from AI response")

        async with make_client(admin_store) as admin:
            await admin.login("admin", "admin-password")
            outcome = await QueryExchange(admin).submit(target_connection.id, "anything")

        assert outcome.state == ExchangeState.FAILED
        assert isinstance(outcome.error, ExecutionError)
        assert outcome.error.status_code == 502

    @pytest.mark.asyncio
    async def test_unknown_connection_is_rejected(self, admin_store, admin_user, fake_generator):
        async with make_client(admin_store) as admin:
            await admin.login("admin", "admin-password")
            outcome = await QueryExchange(admin).submit(999, "anything")

        assert outcome.state == ExchangeState.REJECTED
        assert isinstance(outcome.error, NotFoundError)


class TestAdminOperations:
    """Registry management through the client"""

    @pytest.mark.asyncio
    async def test_create_refresh_delete(self, admin_store, admin_user, target_db_url):
        async with make_client(admin_store) as admin:
            await admin.login("admin", "admin-password")

            created = await admin.create_connection("shop", "SQLITE", target_db_url)
            assert created.db_type == "SQLITE"
            assert "CREATE TABLE customers" in created.schema_ddl

            refreshed = await admin.refresh_schema(created.id)
            assert refreshed.id == created.id

            directory = ConnectionDirectory(admin)
            assert [c.name for c in await directory.refresh()] == ["shop"]

            await admin.delete_connection(created.id)
            with pytest.raises(NotFoundError):
                await admin.get_connection(created.id)

    @pytest.mark.asyncio
    async def test_grant_listing_and_users(self, admin_store, admin_user, analyst_user, target_connection):
        async with make_client(admin_store) as admin:
            await admin.login("admin", "admin-password")

            first = await admin.grant_permission(analyst_user.id, target_connection.id)
            second = await admin.grant_permission(analyst_user.id, target_connection.id)
            assert first.id == second.id

            assert [p.connection_id for p in await admin.permissions_by_user(analyst_user.id)] == [
                target_connection.id
            ]
            assert [p.user_id for p in await admin.permissions_by_connection(target_connection.id)] == [
                analyst_user.id
            ]
            assert [u.username for u in await admin.list_users()] == ["admin", "alice"]

            await admin.revoke_permission(analyst_user.id, target_connection.id)
            await admin.revoke_permission(analyst_user.id, target_connection.id)
            assert await admin.permissions_by_user(analyst_user.id) == []


class TestDegradedAndMalformed:
    """Transport trouble surfaces as ExecutionError; listing degrades"""

    @pytest.mark.asyncio
    async def test_directory_refresh_failure_degrades(self, alice_store):
        def handler(request):
            return httpx.Response(503, json={"error": True, "message": "down for maintenance"})

        alice_store.replace(Session(token="t", user=UserSnapshot(username="alice", role="ANALYST")))
        async with make_client(alice_store, transport=httpx.MockTransport(handler)) as client:
            directory = ConnectionDirectory(client)
            assert await directory.refresh() == []

        assert "down for maintenance" in directory.warning
        assert alice_store.current.is_authenticated

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body, expected", [
        ({"error": True, "message": "no such column", "code": "QUERY_EXECUTION_FAILED"}, ExecutionError),
        ({"error": True, "message": "H2 is not reachable", "code": "UNSUPPORTED_DATABASE"}, ExecutionError),
        ({"error": True, "message": "bad request", "code": "INVALID_REQUEST"}, ValidationError),
        ({"error": True, "message": "bad request"}, ValidationError),
    ])
    async def test_error_code_decides_over_status(self, alice_store, body, expected):
        def handler(request):
            return httpx.Response(400, json=body)

        async with make_client(alice_store, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(expected) as exc_info:
                await client.ask(1, "anything")

        assert type(exc_info.value) is expected
        assert exc_info.value.message == body["message"]

    @pytest.mark.asyncio
    async def test_connection_error(self, alice_store):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(alice_store, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ExecutionError):
                await client.login("alice", "alice-password")

    @pytest.mark.asyncio
    async def test_malformed_body(self, alice_store):
        def handler(request):
            return httpx.Response(200, content=b"<html>proxy page</html>")

        async with make_client(alice_store, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ExecutionError):
                await client.login("alice", "alice-password")

    @pytest.mark.asyncio
    async def test_unexpected_shape(self, alice_store):
        def handler(request):
            return httpx.Response(200, json={"unexpected": True})

        async with make_client(alice_store, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ExecutionError):
                await client.login("alice", "alice-password")

        assert not alice_store.current.is_authenticated
