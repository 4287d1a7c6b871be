"""
Example 02: Loading Relations

This example declares a one-to-many relation and its inverse, then loads them
for a whole result set. Each relation costs one extra query regardless of how
many rows were loaded.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import sqlite3
import tempfile
from pathlib import Path

from row_orm import ConnectionConfig, Engine, belongs_to, column, domain_model, has_many


@domain_model
@dataclass
class Author:
    id: int | None = None
    name: str = ""
    books: list[Book] = has_many("Book")


@domain_model
@dataclass
class Book:
    id: int | None = None
    author_id: int | None = None
    title: str = ""
    published: int = column("published_year", default=0)
    author: Author | None = belongs_to(Author)


def main():
    # Show the statements the engine runs
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE authors (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    conn.execute("""
        CREATE TABLE books (
            id INTEGER PRIMARY KEY,
            author_id INTEGER REFERENCES authors(id),
            title TEXT NOT NULL,
            published_year INTEGER
        )
    """)
    conn.commit()
    conn.close()

    engine = Engine.from_config(ConnectionConfig(driver="sqlite", database=db_path))
    authors = engine.repository(Author)
    books = engine.repository(Book)

    austen, joyce = authors.save_all([Author(name="Jane Austen"), Author(name="James Joyce")])
    books.save_all(
        [
            Book(author_id=austen.id, title="Emma", published=1815),
            Book(author_id=austen.id, title="Persuasion", published=1817),
            Book(author_id=joyce.id, title="Ulysses", published=1922),
        ]
    )

    print("\n=== To-many ===\n")
    for author in authors.query_all(include=["books"]):
        titles = ", ".join(book.title for book in author.books)
        print(f"  - {author.name}: {titles}")

    print("\n=== Belongs-to ===\n")
    for book in engine.select(Book).order_by("published_year").include("author").execute():
        print(f"  - {book.title} ({book.published}) by {book.author.name}")

    engine.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
