"""
Example 01: Declaring a Model and Using its Repository

This example declares a domain model, then inserts, looks up, counts,
updates and deletes rows through the model's Repository.
"""

from dataclasses import dataclass
import sqlite3
import tempfile
from pathlib import Path

from row_orm import ConnectionConfig, Engine, domain_model


@domain_model(primary_key="no")
@dataclass
class Member:
    no: str
    name: str | None = None
    gender: str | None = None
    mobile: str | None = None


def main():
    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE members (
            no TEXT PRIMARY KEY,
            name TEXT,
            gender TEXT,
            mobile TEXT
        )
    """)
    conn.commit()
    conn.close()

    engine = Engine.from_config(ConnectionConfig(driver="sqlite", database=db_path))
    members = engine.repository(Member)

    print("=== Repository ===\n")

    # save: INSERT built from the model's columns
    members.save(Member(no="M1", name="Ann", gender="f"))
    members.save_all([Member(no="M2", name="Bo", gender="m"), Member(no="M3", name="Cy")])

    # query_by_primary_key: None when nothing matches
    print(f"M1: {members.query_by_primary_key('M1')}")
    print(f"M9: {members.query_by_primary_key('M9')}\n")

    # query / count: predicates use ? placeholders
    for member in members.query("gender IS NOT NULL"):
        print(f"  - {member.no} {member.name} ({member.gender})")
    print(f"count: {members.count()} total, {members.count('gender = ?', 'm')} male\n")

    # update / destroy
    ann = members.query_by_primary_key("M1")
    ann.mobile = "555-0101"
    members.update(ann)
    members.destroy("M3")
    print(f"after update and destroy: {members.query_all()}")

    engine.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
