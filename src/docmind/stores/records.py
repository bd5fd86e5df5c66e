"""SQLite-backed record store for users, documents, chunks and chat history."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from docmind.models import ChatMessage, ChatSession, Chunk, Document, User

_DOCUMENT_FIELDS = {"name", "mime_type", "size", "text", "processed"}


class RecordStore:
    """Keyed record store with generated integer ids.

    Each table supports add, get-by-id, lookup by one field, update and
    delete. Nothing spans tables in a transaction.
    """

    def __init__(self, db_path: str = "./data/docmind.db"):
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._init_tables()

    def _init_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                name          TEXT NOT NULL,
                email         TEXT NOT NULL,
                password_hash TEXT NOT NULL,
                role          TEXT NOT NULL,
                created_at    TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_user_email ON users(email);

            CREATE TABLE IF NOT EXISTS documents (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                name        TEXT NOT NULL,
                mime_type   TEXT NOT NULL,
                size        INTEGER NOT NULL,
                uploaded_at TEXT NOT NULL,
                text        TEXT,
                processed   INTEGER NOT NULL DEFAULT 0
            );
            CREATE INDEX IF NOT EXISTS idx_doc_uploaded ON documents(uploaded_at);

            CREATE TABLE IF NOT EXISTS chunks (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                document_id INTEGER NOT NULL,
                idx         INTEGER NOT NULL,
                text        TEXT NOT NULL,
                embedding   TEXT NOT NULL,
                embed_model TEXT NOT NULL DEFAULT ''
            );
            CREATE INDEX IF NOT EXISTS idx_chunk_doc ON chunks(document_id);

            CREATE TABLE IF NOT EXISTS sessions (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id    INTEGER NOT NULL,
                title      TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_session_user ON sessions(user_id, updated_at);

            CREATE TABLE IF NOT EXISTS messages (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id    INTEGER NOT NULL,
                role          TEXT NOT NULL,
                content       TEXT NOT NULL,
                timestamp     TEXT NOT NULL,
                relevant_docs TEXT NOT NULL DEFAULT '[]'
            );
            CREATE INDEX IF NOT EXISTS idx_message_session ON messages(session_id);
        """)
        self._conn.commit()

    def _insert(self, sql: str, params: tuple) -> int:
        cur = self._conn.execute(sql, params)
        self._conn.commit()
        return cur.lastrowid

    # -- Users ---------------------------------------------------------------

    def add_user(self, user: User) -> int:
        return self._insert(
            """
            INSERT INTO users (name, email, password_hash, role, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                user.name,
                user.email,
                user.password_hash,
                user.role.value,
                user.created_at.isoformat(),
            ),
        )

    def get_user(self, user_id: int) -> User | None:
        row = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> User | None:
        """First user registered with *email*, if any."""
        row = self._conn.execute(
            "SELECT * FROM users WHERE email = ? ORDER BY id LIMIT 1", (email,)
        ).fetchone()
        return self._row_to_user(row) if row else None

    # -- Documents -----------------------------------------------------------

    def add_document(self, doc: Document) -> int:
        """Insert a document record and return its generated id."""
        return self._insert(
            """
            INSERT INTO documents (name, mime_type, size, uploaded_at, text, processed)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                doc.name,
                doc.mime_type,
                doc.size,
                doc.uploaded_at.isoformat(),
                doc.text,
                int(doc.processed),
            ),
        )

    def get_document(self, doc_id: int) -> Document | None:
        row = self._conn.execute(
            "SELECT * FROM documents WHERE id = ?", (doc_id,)
        ).fetchone()
        return self._row_to_doc(row) if row else None

    def list_documents(self) -> list[Document]:
        """All documents, newest upload first."""
        rows = self._conn.execute(
            "SELECT * FROM documents ORDER BY uploaded_at DESC, id DESC"
        ).fetchall()
        return [self._row_to_doc(r) for r in rows]

    def update_document(self, doc_id: int, **fields) -> None:
        """Update selected columns of a document record."""
        unknown = set(fields) - _DOCUMENT_FIELDS
        if unknown:
            raise ValueError(f"Unknown document field(s): {', '.join(sorted(unknown))}")
        if not fields:
            return
        if "processed" in fields:
            fields["processed"] = int(fields["processed"])

        assignments = ", ".join(f"{name} = ?" for name in fields)
        self._conn.execute(
            f"UPDATE documents SET {assignments} WHERE id = ?",
            (*fields.values(), doc_id),
        )
        self._conn.commit()

    def delete_document(self, doc_id: int) -> int:
        """Delete a document and every chunk that references it.

        Returns the number of chunks removed.
        """
        self._conn.execute("DELETE FROM documents WHERE id = ?", (doc_id,))
        self._conn.commit()
        return self.delete_chunks_for_document(doc_id)

    # -- Chunks --------------------------------------------------------------

    def add_chunk(self, chunk: Chunk) -> int:
        return self._insert(
            """
            INSERT INTO chunks (document_id, idx, text, embedding, embed_model)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                chunk.document_id,
                chunk.index,
                chunk.text,
                json.dumps(chunk.embedding),
                chunk.embed_model,
            ),
        )

    def get_chunks_for_document(self, doc_id: int) -> list[Chunk]:
        """All chunks of a document, ordered by index."""
        rows = self._conn.execute(
            "SELECT * FROM chunks WHERE document_id = ? ORDER BY idx, id", (doc_id,)
        ).fetchall()
        return [self._row_to_chunk(r) for r in rows]

    def list_chunks(self) -> list[Chunk]:
        """Every stored chunk in insertion order."""
        rows = self._conn.execute("SELECT * FROM chunks ORDER BY id").fetchall()
        return [self._row_to_chunk(r) for r in rows]

    def count_chunks(self, doc_id: int | None = None) -> int:
        if doc_id is None:
            row = self._conn.execute("SELECT COUNT(*) FROM chunks").fetchone()
        else:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM chunks WHERE document_id = ?", (doc_id,)
            ).fetchone()
        return row[0]

    def delete_chunks_for_document(self, doc_id: int) -> int:
        cur = self._conn.execute("DELETE FROM chunks WHERE document_id = ?", (doc_id,))
        self._conn.commit()
        return cur.rowcount

    # -- Chat history --------------------------------------------------------

    def add_session(self, session: ChatSession) -> int:
        return self._insert(
            "INSERT INTO sessions (user_id, title, updated_at) VALUES (?, ?, ?)",
            (session.user_id, session.title, session.updated_at.isoformat()),
        )

    def get_session(self, session_id: int) -> ChatSession | None:
        row = self._conn.execute(
            "SELECT * FROM sessions WHERE id = ?", (session_id,)
        ).fetchone()
        if not row:
            return None
        return ChatSession(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            updated_at=row["updated_at"],
        )

    def touch_session(self, session_id: int, when: datetime) -> None:
        self._conn.execute(
            "UPDATE sessions SET updated_at = ? WHERE id = ?",
            (when.isoformat(), session_id),
        )
        self._conn.commit()

    def add_message(self, message: ChatMessage) -> int:
        return self._insert(
            """
            INSERT INTO messages (session_id, role, content, timestamp, relevant_docs)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                message.session_id,
                message.role.value,
                message.content,
                message.timestamp.isoformat(),
                json.dumps(message.relevant_docs),
            ),
        )

    def list_messages(self, session_id: int) -> list[ChatMessage]:
        """Messages of a session, oldest first."""
        rows = self._conn.execute(
            "SELECT * FROM messages WHERE session_id = ? ORDER BY id", (session_id,)
        ).fetchall()
        return [
            ChatMessage(
                id=r["id"],
                session_id=r["session_id"],
                role=r["role"],
                content=r["content"],
                timestamp=r["timestamp"],
                relevant_docs=json.loads(r["relevant_docs"]),
            )
            for r in rows
        ]

    # -- Lifecycle -----------------------------------------------------------

    def close(self) -> None:
        self._conn.close()

    # -- Helpers -------------------------------------------------------------

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=row["role"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _row_to_doc(row: sqlite3.Row) -> Document:
        return Document(
            id=row["id"],
            name=row["name"],
            mime_type=row["mime_type"],
            size=row["size"],
            uploaded_at=row["uploaded_at"],
            text=row["text"],
            processed=bool(row["processed"]),
        )

    @staticmethod
    def _row_to_chunk(row: sqlite3.Row) -> Chunk:
        return Chunk(
            id=row["id"],
            document_id=row["document_id"],
            index=row["idx"],
            text=row["text"],
            embedding=json.loads(row["embedding"]),
            embed_model=row["embed_model"],
        )
