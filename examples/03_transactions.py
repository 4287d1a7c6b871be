"""
Example 03: Transactions and Validation

This example groups several writes into one unit of work. If any statement
fails, or a model fails validation, nothing in the unit is kept.
"""

from dataclasses import dataclass
import sqlite3
import tempfile
from pathlib import Path
from typing import Annotated

from pydantic import Field

from row_orm import ConnectionConfig, Engine, ValidationException, domain_model


@domain_model
@dataclass
class Account:
    id: int | None = None
    owner: Annotated[str, Field(min_length=1)] = ""
    balance: Annotated[int, Field(ge=0)] = 0


def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE accounts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner TEXT NOT NULL,
            balance INTEGER NOT NULL
        )
    """)
    conn.commit()
    conn.close()

    engine = Engine.from_config(ConnectionConfig(driver="sqlite", database=db_path))
    accounts = engine.repository(Account)
    alice, bob = accounts.save_all([Account(owner="alice", balance=100), Account(owner="bob")])

    def transfer(source: Account, target: Account, amount: int) -> None:
        source.balance -= amount
        target.balance += amount
        accounts.update(target)
        accounts.update(source)

    print("=== Successful transfer ===")
    engine.with_transaction(transfer, alice, bob, 40)
    print(f"  {accounts.query_all()}\n")

    print("=== Overdraft is rejected ===")
    alice, bob = accounts.query_all()
    try:
        engine.with_transaction(transfer, alice, bob, 500)
    except ValidationException as e:
        print(f"  rolled back: {e}")
    print(f"  {accounts.query_all()}\n")

    print("=== Explicit transaction block ===")
    with engine.transaction():
        accounts.save(Account(owner="carol", balance=5))
        print(f"  inside: {accounts.count()} accounts")
    print(f"  after commit: {accounts.count()} accounts")

    engine.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
