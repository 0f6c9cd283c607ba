from sqlalchemy.dialects import postgresql, sqlite
from factdesk.extensions import db

_INSERTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def _dialect_insert(model):
    dialect = db.session.get_bind().dialect.name
    try:
        return _INSERTS[dialect](model.__table__)
    except KeyError:
        raise RuntimeError(f"Upserts not supported on dialect {dialect!r}")


def insert_ignore(model, values, conflict_cols):
    """INSERT ... ON CONFLICT DO NOTHING. Returns True if this call created the row."""
    stmt = _dialect_insert(model).values(**values).on_conflict_do_nothing(index_elements=conflict_cols)
    result = db.session.execute(stmt)
    return result.rowcount == 1


def upsert(model, values, conflict_cols, update_cols):
    """INSERT ... ON CONFLICT DO UPDATE SET update_cols = excluded.update_cols."""
    stmt = _dialect_insert(model).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=conflict_cols,
        set_={col: getattr(stmt.excluded, col) for col in update_cols},
    )
    db.session.execute(stmt)
