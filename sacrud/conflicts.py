"""
Translation of raw unique-constraint violations into a field name

The database reports the violated index in a driver specific message.
The known formats are tried one by one, `None` is returned if none of them matches,
the caller then reports a generic conflict.

Known formats:
    sqlite:     UNIQUE constraint failed: users.email
    postgresql: duplicate key value violates unique constraint "users_email_key"
                DETAIL:  Key (email)=(a@b.c) already exists.
    mysql:      Duplicate entry 'a@b.c' for key 'users.email'
    mongodb:    E11000 duplicate key error collection: db.users index: email_1 dup key: { ... }
"""

import re
from typing import Iterable, Optional

_SQLITE_RE = re.compile(r"UNIQUE constraint failed: ([\w.]+)")
_POSTGRES_RE = re.compile(r"Key \(([^)]+)\)=")
_POSTGRES_CONSTRAINT_RE = re.compile(r'unique constraint "(\w+)"')
_MYSQL_RE = re.compile(r"Duplicate entry .* for key '([^']+)'")
_MONGO_RE = re.compile(r"index: (\S+) dup key")

UNIQUE_MARKERS = ("unique constraint", "duplicate entry", "duplicate key")


def is_unique_violation(detail: str) -> bool:
    """
    :param detail: raw database error message
    :return: whether the message reports a unique index violation
    """
    lowered = (detail or "").lower()
    return any(marker in lowered for marker in UNIQUE_MARKERS)


def _from_index_name(index_name: str, table: Optional[str], columns: Iterable[str]) -> Optional[str]:
    """
    Map an index name like "users_email_key", "ix_users_email" or "email_1" to a column name
    """
    index_name = index_name.split(".")[-1].lstrip("$")
    if index_name in columns:
        return index_name
    # mongodb: <field>_<direction>
    head, _, tail = index_name.rpartition("_")
    if tail in ("1", "-1") and head:
        return head
    # longest column name contained in the index name wins: "users_api_key_key" -> api_key
    for column in sorted(columns, key=len, reverse=True):
        if table and index_name in (f"{table}_{column}_key", f"ix_{table}_{column}", f"uq_{table}_{column}"):
            return column
    for column in sorted(columns, key=len, reverse=True):
        if f"_{column}_" in f"_{index_name}_":
            return column
    return None


def conflicting_field(detail: str, table: Optional[str] = None, columns: Iterable[str] = ()) -> Optional[str]:
    """
    :param detail: raw database error message
    :param table: table name of the record that was written
    :param columns: column names of the table, used to resolve index names
    :return: name of the column that caused the conflict, or None if the message can't be parsed
    """
    if not detail:
        return None
    columns = list(columns)

    match = _SQLITE_RE.search(detail)
    if match:
        # composite indexes are reported as "t.a, t.b": report the first column
        return match.group(1).split(".")[-1]

    match = _POSTGRES_RE.search(detail)
    if match:
        return match.group(1).split(",")[0].strip().strip('"')

    match = _POSTGRES_CONSTRAINT_RE.search(detail) or _MYSQL_RE.search(detail) or _MONGO_RE.search(detail)
    if match:
        return _from_index_name(match.group(1), table, columns)

    return None
