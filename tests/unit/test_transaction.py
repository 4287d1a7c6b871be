"""Unit tests for TransactionManager and ambient transactions."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from row_orm.core.engine import Engine
from row_orm.core.exceptions import DatabaseError, TransactionStateError
from row_orm.core.transaction import current_transaction
from row_orm.mapping.metadata import domain_model


@domain_model
@dataclass
class LedgerLine:
    id: int | None = None
    account: str = ""
    amount: int = 0


class Boom(Exception):
    pass


@pytest.fixture
def ledger(engine: Engine, run_ddl) -> Engine:
    run_ddl(
        "CREATE TABLE ledger_lines (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "account TEXT NOT NULL, amount INT)"
    )
    return engine


def _post(engine: Engine, account: str, amount: int) -> int:
    return engine.execute(
        LedgerLine, "INSERT INTO ledger_lines (account, amount) VALUES (?, ?)", account, amount
    )


def _count(engine: Engine) -> int:
    return engine.select(LedgerLine).count()


class TestTransactionManager:
    def test_commit_persists_changes(self, ledger: Engine) -> None:
        with ledger.transaction():
            _post(ledger, "cash", 10)
            _post(ledger, "bank", -10)
        assert _count(ledger) == 2

    def test_statements_inside_see_uncommitted_writes(self, ledger: Engine) -> None:
        with ledger.transaction():
            _post(ledger, "cash", 10)
            assert _count(ledger) == 1

    def test_rollback_on_exception_reraises_same_error(self, ledger: Engine) -> None:
        error = Boom("halfway")
        with pytest.raises(Boom) as exc_info, ledger.transaction():
            _post(ledger, "cash", 10)
            raise error
        assert exc_info.value is error
        assert _count(ledger) == 0

    def test_rollback_on_database_error(self, ledger: Engine) -> None:
        with pytest.raises(DatabaseError), ledger.transaction():
            _post(ledger, "cash", 10)
            ledger.execute(
                LedgerLine, "INSERT INTO ledger_lines (account, amount) VALUES (?, ?)", None, 5
            )
        assert _count(ledger) == 0

    def test_explicit_rollback(self, ledger: Engine) -> None:
        with ledger.transaction() as tx:
            _post(ledger, "cash", 10)
            tx.rollback()
        assert _count(ledger) == 0

    def test_explicit_commit(self, ledger: Engine) -> None:
        with ledger.transaction() as tx:
            _post(ledger, "cash", 10)
            tx.commit()
        assert _count(ledger) == 1

    def test_commit_after_rollback_raises(self, ledger: Engine) -> None:
        with ledger.transaction() as tx:
            tx.rollback()
            with pytest.raises(TransactionStateError, match="rolled_back"):
                tx.commit()

    def test_execute_after_rollback_raises(self, ledger: Engine) -> None:
        with pytest.raises(TransactionStateError), ledger.transaction() as tx:
            tx.rollback()
            _post(ledger, "cash", 10)

    def test_connection_outside_block_raises(self, ledger: Engine) -> None:
        tx = ledger.transaction()
        with pytest.raises(TransactionStateError, match="idle"):
            tx.connection  # noqa: B018

    def test_connection_released_after_failure(self, ledger: Engine) -> None:
        with pytest.raises(Boom), ledger.transaction():
            raise Boom()
        pool = ledger.datasources.get().initialize_pool()
        assert len(pool) == 1

    def test_context_cleared_after_exit(self, ledger: Engine) -> None:
        with ledger.transaction() as tx:
            assert current_transaction("default") is tx
        assert current_transaction("default") is None


class TestNestedTransactions:
    def test_inner_block_joins_outer(self, ledger: Engine) -> None:
        with ledger.transaction() as outer, ledger.transaction() as inner:
            assert inner.nested
            assert not outer.nested
            assert inner.connection is outer.connection
            assert current_transaction("default") is outer

    def test_inner_exit_does_not_commit(self, ledger: Engine) -> None:
        with pytest.raises(Boom), ledger.transaction():
            with ledger.transaction():
                _post(ledger, "cash", 10)
            raise Boom()
        assert _count(ledger) == 0

    def test_inner_failure_rolls_back_everything(self, ledger: Engine) -> None:
        with pytest.raises(Boom), ledger.transaction():
            _post(ledger, "cash", 10)
            with ledger.transaction():
                _post(ledger, "bank", -10)
                raise Boom()
        assert _count(ledger) == 0

    def test_nested_commit_raises(self, ledger: Engine) -> None:
        with ledger.transaction(), ledger.transaction() as inner:
            with pytest.raises(TransactionStateError, match="nested"):
                inner.commit()
            with pytest.raises(TransactionStateError, match="nested"):
                inner.rollback()


class TestWithTransaction:
    def test_returns_unit_of_work_result(self, ledger: Engine) -> None:
        def transfer(amount: int) -> str:
            _post(ledger, "cash", -amount)
            _post(ledger, "bank", amount)
            return "done"

        assert ledger.with_transaction(transfer, 25) == "done"
        assert _count(ledger) == 2

    def test_passes_keyword_arguments(self, ledger: Engine) -> None:
        assert ledger.with_transaction(lambda *, amount: amount * 2, amount=4) == 8

    def test_failure_rolls_back_and_propagates(self, ledger: Engine) -> None:
        def failing() -> None:
            _post(ledger, "cash", 1)
            raise Boom("nope")

        with pytest.raises(Boom, match="nope"):
            ledger.with_transaction(failing)
        assert _count(ledger) == 0
