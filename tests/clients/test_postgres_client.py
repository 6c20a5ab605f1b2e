"""Tests for PostgresClient - pooled connections and explicit transactions."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from clients.postgres_client import PostgresClient, _convert_params


# =============================================================================
# UNIT: psycopg2 pool mocked, no DB needed
# =============================================================================


@pytest.fixture
def pool():
    with patch("clients.postgres_client.psycopg2.pool.ThreadedConnectionPool") as pool_cls:
        yield pool_cls.return_value
    for url in [u for u in PostgresClient._connection_pools if u.startswith("postgresql://test/")]:
        del PostgresClient._connection_pools[url]


@pytest.fixture
def conn(pool):
    conn = MagicMock()
    pool.getconn.return_value = conn
    return conn


@pytest.fixture
def cursor(conn):
    cur = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cur
    conn.cursor.return_value.__exit__.return_value = False
    return cur


class TestConvertParams:

    def test_uuids_become_strings(self):
        a, b = uuid4(), uuid4()
        assert _convert_params((a, [b], 3)) == (str(a), [str(b)], 3)

    def test_none_passthrough(self):
        assert _convert_params(None) is None


class TestPool:

    def test_pool_shared_per_url(self, pool):
        with patch("clients.postgres_client.psycopg2.pool.ThreadedConnectionPool") as pool_cls:
            PostgresClient("postgresql://test/a")
            PostgresClient("postgresql://test/a")

        pool_cls.assert_called_once()

    def test_close_only_drops_its_own_pool(self, pool):
        kept = PostgresClient("postgresql://test/kept")
        closed = PostgresClient("postgresql://test/closed")

        closed.close()

        pool.closeall.assert_called_once()
        assert "postgresql://test/closed" not in PostgresClient._connection_pools
        assert kept._database_url in PostgresClient._connection_pools

    def test_connection_returned_to_pool(self, pool, conn, cursor):
        cursor.description = None
        client = PostgresClient("postgresql://test/pool")

        client.execute("SELECT 1 WHERE false")

        pool.putconn.assert_called_once_with(conn)

    def test_one_shot_statement_commits(self, pool, conn, cursor):
        cursor.description = [("stock",)]
        cursor.fetchall.return_value = [{"stock": 7}]
        client = PostgresClient("postgresql://test/pool")

        assert client.execute_scalar("SELECT stock FROM products") == 7
        conn.commit.assert_called_once()


class TestTransaction:

    def test_commits_on_success(self, pool, conn, cursor):
        cursor.description = None
        client = PostgresClient("postgresql://test/tx")

        with client.transaction() as tx:
            tx.execute("UPDATE products SET stock = stock + %s WHERE id = %s", (1, uuid4()))
            tx.execute("UPDATE products SET stock = stock + %s WHERE id = %s", (-1, uuid4()))

        assert cursor.execute.call_count == 2
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()

    def test_rolls_back_and_reraises(self, pool, conn, cursor):
        cursor.description = None
        client = PostgresClient("postgresql://test/tx")

        with pytest.raises(RuntimeError, match="boom"):
            with client.transaction() as tx:
                tx.execute("UPDATE products SET stock = 0")
                raise RuntimeError("boom")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        pool.putconn.assert_called_once_with(conn)

    def test_execute_single_returns_first_row(self, pool, conn, cursor):
        cursor.description = [("stock",)]
        cursor.fetchall.return_value = [{"stock": 8}]
        client = PostgresClient("postgresql://test/tx")

        with client.transaction() as tx:
            row = tx.execute_single("SELECT stock FROM products")

        assert row == {"stock": 8}

    def test_uuid_params_converted(self, pool, conn, cursor):
        cursor.description = None
        product_id = uuid4()
        client = PostgresClient("postgresql://test/tx")

        with client.transaction() as tx:
            tx.execute("DELETE FROM products WHERE id = %s", (product_id,))

        assert cursor.execute.call_args.args[1] == (str(product_id),)


# =============================================================================
# INTEGRATION: real database (skipped without DATABASE_URL)
# =============================================================================


class TestExecuteMethods:
    """Query execution methods."""

    def test_execute_returns_list_of_dicts(self, db):
        results = db.execute("SELECT 1 as num, 'hello' as word")
        assert results == [{"num": 1, "word": "hello"}]

    def test_execute_empty_returns_empty_list(self, db):
        assert db.execute("SELECT 1 WHERE false") == []

    def test_execute_single_no_rows_returns_none(self, db):
        assert db.execute_single("SELECT 1 WHERE false") is None

    def test_execute_scalar_returns_value(self, db):
        assert db.execute_scalar("SELECT 'test'") == "test"


class TestTransactionAgainstDatabase:

    def test_rollback_discards_every_statement(self, clean_db):
        product_id = uuid4()

        with pytest.raises(RuntimeError):
            with clean_db.transaction() as tx:
                tx.execute(
                    "INSERT INTO products (id, code, description, price, stock) VALUES (%s, %s, %s, %s, %s)",
                    (product_id, "X", "Rolled back", 1, 1),
                )
                raise RuntimeError("abort")

        assert clean_db.execute_single("SELECT * FROM products WHERE id = %s", (product_id,)) is None
