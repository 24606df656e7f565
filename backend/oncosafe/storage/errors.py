"""Storage error taxonomy.

Only writes whose loss would matter raise; reads degrade to empty results
inside the stores and never surface these.
"""

# PostgreSQL SQLSTATE for "column ... does not exist"
UNDEFINED_COLUMN = "42703"


class StorageError(Exception):
    """Base class for storage failures surfaced to callers."""


class StorageWriteError(StorageError):
    """A write that callers must know about did not happen."""


def sqlstate_of(exc: BaseException) -> str | None:
    """SQLSTATE code carried by a SQLAlchemy or driver exception, if any.

    SQLAlchemy wraps the driver error in ``.orig``; asyncpg and psycopg
    expose ``sqlstate``, psycopg2 exposes ``pgcode``.
    """
    for candidate in (getattr(exc, "orig", None), exc):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if isinstance(code, str) and code:
            return code
    return None


def is_undefined_column(exc: BaseException, column: str) -> bool:
    """True if ``exc`` is an undefined-column error naming ``column``.

    The SQLSTATE decides the error class; the quoted column name in the
    server message decides which column it was about.
    """
    if sqlstate_of(exc) != UNDEFINED_COLUMN:
        return False
    orig = getattr(exc, "orig", None) or exc
    return f'"{column}"' in str(orig)
