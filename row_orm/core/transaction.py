"""Transaction demarcation.

A transaction binds one pooled connection to the current context. Every
engine call for the same datasource made inside the ``with`` block picks that
connection up from a ``ContextVar`` instead of acquiring its own, so all
statements commit or roll back together.

Entering a transaction for a datasource that already has one open joins the
outer transaction: the inner block neither commits nor rolls back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextvars import ContextVar, Token
from enum import Enum
from types import MappingProxyType
from typing import Any

from row_orm.core.connection import ConnectionManager
from row_orm.core.exceptions import TransactionStateError

logger = logging.getLogger(__name__)

_active: ContextVar[Mapping[str, TransactionManager]] = ContextVar(
    "row_orm_active_transactions", default=MappingProxyType({})
)


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def current_transaction(datasource: str) -> TransactionManager | None:
    """The transaction bound to ``datasource`` in this context, if any."""
    return _active.get().get(datasource)


class TransactionManager:
    """Transaction context manager for one datasource.

    Commits on normal exit, rolls back when the block raises and lets the
    exception propagate unchanged. The connection goes back to the pool on
    every exit path.
    """

    def __init__(self, manager: ConnectionManager, datasource: str) -> None:
        self._manager = manager
        self._datasource = datasource
        self._connection: Any = None
        self._outer: TransactionManager | None = None
        self._token: Token[Mapping[str, TransactionManager]] | None = None
        self._state = _TxState.IDLE

    @property
    def datasource(self) -> str:
        return self._datasource

    @property
    def nested(self) -> bool:
        """True when this block joined an enclosing transaction."""
        return self._outer is not None

    @property
    def connection(self) -> Any:
        """The bound connection; only usable while the transaction is active."""
        if self._outer is not None:
            return self._outer.connection
        self._check_active()
        return self._connection

    def __enter__(self) -> TransactionManager:
        outer = current_transaction(self._datasource)
        if outer is not None:
            self._outer = outer
            self._state = _TxState.ACTIVE
            return self

        self._connection = self._manager.acquire()
        bound = dict(_active.get())
        bound[self._datasource] = self
        self._token = _active.set(MappingProxyType(bound))
        self._state = _TxState.ACTIVE
        logger.debug("Transaction started on datasource '%s'", self._datasource)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._outer is not None:
            return

        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    self._connection.rollback()
                    self._state = _TxState.ROLLED_BACK
                    logger.debug(
                        "Transaction on '%s' rolled back after %s",
                        self._datasource,
                        exc_type.__name__,
                    )
                else:
                    self._connection.commit()
                    self._state = _TxState.COMMITTED
                    logger.debug("Transaction on '%s' committed", self._datasource)
        finally:
            if self._token is not None:
                _active.reset(self._token)
                self._token = None
            self._manager.release(self._connection)

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        self._check_owner("commit")
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "commit")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "commit")
        self._connection.commit()
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        self._check_owner("rollback")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "rollback")
        self._connection.rollback()
        self._state = _TxState.ROLLED_BACK

    def _check_owner(self, action: str) -> None:
        if self._outer is not None:
            raise TransactionStateError("nested", action)

    def _check_active(self) -> None:
        if self._state == _TxState.IDLE:
            raise TransactionStateError("idle", "execute")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "execute")
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "execute")
