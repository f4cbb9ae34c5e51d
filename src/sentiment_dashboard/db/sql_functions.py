# src/sentiment_dashboard/db/sql_functions.py

# Dialect-specific SQL used by the aggregation queries.
# PostgreSQL is the production store, SQLite backs the test-suite.

from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import GenericFunction
from sqlalchemy.types import DateTime


class hour_bucket(GenericFunction):
    """
    Timestamp truncated to the UTC hour.
    On PostgreSQL the value is shifted to UTC first, `date_trunc` alone would
    truncate in the session TimeZone.
    """
    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(hour_bucket)
def _compile_hour_bucket_default(element, compiler, **kw):
    return "date_trunc('hour', timezone('UTC', %s))" % compiler.process(element.clauses, **kw)


@compiles(hour_bucket, "sqlite")
def _compile_hour_bucket_sqlite(element, compiler, **kw):
    # Format string goes in as a bound parameter.
    return compiler.process(func.strftime("%Y-%m-%d %H:00:00", *element.clauses.clauses), **kw)


def as_utc(value: Optional[Union[datetime, str]]) -> Optional[datetime]:
    """
    Normalizes a timestamp coming back from the driver to an aware UTC datetime.
    SQLite returns naive values (or strings for computed expressions), both are UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
