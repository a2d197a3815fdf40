from unittest.mock import AsyncMock, MagicMock

import pytest
import sqlalchemy as sa
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from storefront.auth.sql_store import SqlRolePermissionStore
from storefront.auth.store import StoreUnavailableError
from storefront.crud.permission import PermissionRepository
from storefront.models import Base, Permission, Role, RolePermission, User, UserRole


@pytest.fixture
def sql_store() -> SqlRolePermissionStore:
    store = SqlRolePermissionStore(MagicMock())
    store.role_repo = MagicMock()
    store.permission_repo = MagicMock()
    return store


@pytest.mark.anyio
async def test_roles_of_returns_frozenset(sql_store: SqlRolePermissionStore) -> None:
    sql_store.role_repo.get_user_role_names = AsyncMock(return_value=["Editor", "Customer"])

    roles = await sql_store.roles_of(5)

    assert roles == frozenset({"Editor", "Customer"})
    sql_store.role_repo.get_user_role_names.assert_awaited_once_with(5)


@pytest.mark.anyio
async def test_has_grant_delegates(sql_store: SqlRolePermissionStore) -> None:
    sql_store.permission_repo.any_granted = AsyncMock(return_value=True)
    roles = frozenset({"Editor"})

    assert await sql_store.has_grant(roles, "Products", "Create") is True
    sql_store.permission_repo.any_granted.assert_awaited_once_with(roles, "Products", "Create")


@pytest.mark.anyio
async def test_database_error_on_roles_becomes_store_unavailable(
    sql_store: SqlRolePermissionStore,
) -> None:
    sql_store.role_repo.get_user_role_names = AsyncMock(
        side_effect=OperationalError("SELECT", {}, Exception("down"))
    )

    with pytest.raises(StoreUnavailableError):
        await sql_store.roles_of(5)


@pytest.mark.anyio
async def test_connection_error_on_grant_becomes_store_unavailable(
    sql_store: SqlRolePermissionStore,
) -> None:
    sql_store.permission_repo.any_granted = AsyncMock(side_effect=ConnectionRefusedError())

    with pytest.raises(StoreUnavailableError):
        await sql_store.has_grant(frozenset({"Editor"}), "Products", "Create")


@pytest.mark.anyio
async def test_programming_errors_are_not_masked(sql_store: SqlRolePermissionStore) -> None:
    sql_store.role_repo.get_user_role_names = AsyncMock(side_effect=TypeError("bug"))

    with pytest.raises(TypeError):
        await sql_store.roles_of(5)


class RecordingSession:
    def __init__(self) -> None:
        self.executed = 0

    async def execute(self, _query):  # type: ignore[no-untyped-def]
        self.executed += 1
        raise AssertionError("query should not run")


@pytest.mark.anyio
async def test_any_granted_short_circuits_empty_roles() -> None:
    session = RecordingSession()
    repo = PermissionRepository(session)  # type: ignore[arg-type]

    assert await repo.any_granted([], "Products", "Create") is False
    assert await repo.list_for_roles([]) == []
    assert session.executed == 0


def _unique_column_sets(table) -> set[tuple[str, ...]]:  # type: ignore[no-untyped-def]
    from sqlalchemy import UniqueConstraint

    return {
        tuple(column.name for column in constraint.columns)
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint)
    }


def test_schema_enforces_unique_grants_and_assignments() -> None:
    from storefront.models import Permission, RolePermission, UserRole

    assert ("resource", "action") in _unique_column_sets(Permission.__table__)
    assert ("role_id", "permission_id") in _unique_column_sets(RolePermission.__table__)
    assert ("user_id", "role_id") in _unique_column_sets(UserRole.__table__)


class AsyncSessionAdapter:
    def __init__(self, session: Session) -> None:
        self._session = session

    async def execute(self, *args, **kwargs):
        return self._session.execute(*args, **kwargs)

    async def get(self, *args, **kwargs):
        return self._session.get(*args, **kwargs)


EDITOR_ID = 1
AUDITOR_ID = 2
MULTI_ROLE_ID = 3
RETIRED_ID = 4


@pytest.fixture()
def db_session():
    engine = sa.create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=sa.pool.StaticPool,
    )
    Base.metadata.create_all(engine)
    session = Session(engine)

    products_create = Permission(
        id=1, name="Products.Create", resource="Products", action="Create"
    )
    orders_read = Permission(id=2, name="Orders.Read", resource="Orders", action="Read")
    reports_read = Permission(id=3, name="Reports.Read", resource="Reports", action="Read")

    editor = Role(id=1, name="Editor", is_active=True)
    auditor = Role(id=2, name="Auditor", is_active=True)
    retired = Role(id=3, name="Retired", is_active=False)

    session.add_all(
        [
            User(id=EDITOR_ID, email="editor@example.com", is_active=True),
            User(id=AUDITOR_ID, email="auditor@example.com", is_active=True),
            User(id=MULTI_ROLE_ID, email="multi@example.com", is_active=True),
            User(id=RETIRED_ID, email="retired@example.com", is_active=True),
            products_create,
            orders_read,
            reports_read,
            editor,
            auditor,
            retired,
            RolePermission(role=editor, permission=products_create),
            RolePermission(role=auditor, permission=orders_read),
            RolePermission(role=retired, permission=reports_read),
            UserRole(user_id=EDITOR_ID, role=editor),
            UserRole(user_id=AUDITOR_ID, role=auditor),
            UserRole(user_id=MULTI_ROLE_ID, role=editor),
            UserRole(user_id=MULTI_ROLE_ID, role=auditor),
            UserRole(user_id=RETIRED_ID, role=retired),
        ]
    )
    session.commit()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def seeded_store(db_session: Session) -> SqlRolePermissionStore:
    return SqlRolePermissionStore(AsyncSessionAdapter(db_session))  # type: ignore[arg-type]


class TestSqlQueries:
    @pytest.mark.anyio
    async def test_grant_match_is_exact_and_case_sensitive(
        self, seeded_store: SqlRolePermissionStore
    ) -> None:
        roles = await seeded_store.roles_of(EDITOR_ID)

        assert roles == frozenset({"Editor"})
        assert await seeded_store.has_grant(roles, "Products", "Create") is True
        assert await seeded_store.has_grant(roles, "products", "Create") is False
        assert await seeded_store.has_grant(roles, "Products", "create") is False
        assert await seeded_store.has_grant(roles, "Products", "Read") is False

    @pytest.mark.anyio
    async def test_grants_union_across_roles(self, seeded_store: SqlRolePermissionStore) -> None:
        roles = await seeded_store.roles_of(MULTI_ROLE_ID)

        assert roles == frozenset({"Editor", "Auditor"})
        assert await seeded_store.has_grant(roles, "Products", "Create") is True
        assert await seeded_store.has_grant(roles, "Orders", "Read") is True
        assert await seeded_store.has_grant(roles, "Reports", "Read") is False

    @pytest.mark.anyio
    async def test_grant_of_one_role_does_not_leak_to_another(
        self, seeded_store: SqlRolePermissionStore
    ) -> None:
        roles = await seeded_store.roles_of(AUDITOR_ID)

        assert await seeded_store.has_grant(roles, "Products", "Create") is False

    @pytest.mark.anyio
    async def test_inactive_role_is_ignored(self, seeded_store: SqlRolePermissionStore) -> None:
        assert await seeded_store.roles_of(RETIRED_ID) == frozenset()
        assert (
            await seeded_store.has_grant(frozenset({"Retired"}), "Reports", "Read") is False
        )

    @pytest.mark.anyio
    async def test_unknown_principal_has_no_roles(
        self, seeded_store: SqlRolePermissionStore
    ) -> None:
        assert await seeded_store.roles_of(999) == frozenset()

    @pytest.mark.anyio
    async def test_list_for_roles_skips_inactive_roles(self, db_session: Session) -> None:
        repo = PermissionRepository(AsyncSessionAdapter(db_session))  # type: ignore[arg-type]

        names = [p.name for p in await repo.list_for_roles(["Editor", "Auditor", "Retired"])]

        assert names == ["Orders.Read", "Products.Create"]

    @pytest.mark.anyio
    async def test_get_by_id(self, db_session: Session) -> None:
        repo = PermissionRepository(AsyncSessionAdapter(db_session))  # type: ignore[arg-type]

        found = await repo.get_by_id(2)

        assert found is not None
        assert (found.resource, found.action) == ("Orders", "Read")
        assert await repo.get_by_id(42) is None
