"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Service, route and dependency code never touches SQL directly.

Passwords are hashed here, at write time: create_user() and update_password()
accept plaintext and persist only the salted hash plus its salt. Nothing above
this layer ever sees a hash it has to produce itself.

Security:
  All queries use bound parameters. No f-strings in SQL.
  email is UNIQUE at the DB level; create_user() raises IntegrityError on a
  duplicate, which is how a racing second activation surfaces.

Layer rule: no imports from api/, mail/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import ROLE_USER, User
from auth.passwords import hash_password, make_salt, verify_password

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(64), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("salt", String(64), nullable=False),
    Column("role", String(16), nullable=False, server_default=ROLE_USER),
    Column("reset_password_link", Text, nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block during writes."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///:memory:")
        uid = store.create_user("Ada", "ada@example.com", "s3cret!")
        user = store.get_by_email("ada@example.com")
        store.authenticate(user, "s3cret!")  # True
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, name: str, email: str, password: str, role: str = ROLE_USER) -> int:
        """Insert a new user and return its assigned ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists and
        PasswordTooLongError if the password exceeds bcrypt's byte limit.
        """
        salt = make_salt()
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    name=name,
                    email=email,
                    hashed_password=hash_password(password, salt),
                    salt=salt,
                    role=role,
                    reset_password_link="",
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def set_reset_link(self, user_id: int, token: str) -> bool:
        """Store token as the user's pending reset link, replacing any earlier one.

        Returns True if a row was updated, False if user_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(reset_password_link=token, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def reset_password(self, user_id: int, token: str, new_password: str) -> bool:
        """Set a new password and clear the reset link in one statement.

        The WHERE clause requires the stored link to still equal token, so of
        two concurrent resets presenting the same token only one can win.
        Returns False when the link no longer matches.
        """
        salt = make_salt()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where((_users.c.id == user_id) & (_users.c.reset_password_link == token))
                .values(
                    hashed_password=hash_password(new_password, salt),
                    salt=salt,
                    reset_password_link="",
                    updated_at=_now_iso(),
                )
            )
            conn.commit()
        return result.rowcount > 0

    def update_profile(self, user_id: int, name: str | None = None, password: str | None = None) -> bool:
        """Update name and/or password (rehashed with a fresh salt).

        Returns True if a row was updated, False if user_id was not found.
        """
        fields: dict = {"updated_at": _now_iso()}
        if name is not None:
            fields["name"] = name
        if password is not None:
            salt = make_salt()
            fields["salt"] = salt
            fields["hashed_password"] = hash_password(password, salt)
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def set_role(self, user_id: int, role: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(role=role, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_reset_link(self, token: str) -> User | None:
        """Return the user whose stored reset link equals token.

        An empty token never matches: "" is the cleared state of every record.
        """
        if not token:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.reset_password_link == token)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return result or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    @staticmethod
    def authenticate(user: User, password: str) -> bool:
        """Check password against the user's stored hash."""
        if not user.hashed_password:
            return False
        return verify_password(password, user.hashed_password)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        salt=row.salt,
        role=row.role,
        reset_password_link=row.reset_password_link or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
