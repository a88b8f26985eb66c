from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from gestao_financeira.core.config import settings
import logging
import threading
import contextvars

DATABASE_URL = settings.DATABASE_URL


def build_engine(url: str, **overrides):
    """Create the engine with pool settings suited to the backend.

    SQLite gets its own pool defaults (no pool_size/max_overflow); server
    databases get pre-ping and recycling so stale pooled connections to a
    hosted MySQL are replaced instead of failing the request.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
    else:
        kwargs = {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,
            "pool_recycle": settings.DB_POOL_RECYCLE,
        }
    kwargs.update(overrides)
    eng = create_engine(url, **kwargs)
    _attach_listeners(eng)
    return eng


SessionLocal = sessionmaker(autocommit=False, autoflush=False)

Base = declarative_base()

# --- Pool monitoring ---
_pool_logger = logging.getLogger("gestao_financeira.db.pool")
_pool_logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))
_connect_count = 0
_checkout_count = 0
_pool_lock = threading.Lock()

# Set to 0 by the request middleware; incremented on every cursor execute so
# the middleware can log DB roundtrips per HTTP request.
request_db_query_count = contextvars.ContextVar("request_db_query_count", default=None)
_global_db_query_count = 0


def _on_connect(dbapi_connection, connection_record):
    global _connect_count
    with _pool_lock:
        _connect_count += 1
        cnt = _connect_count
    if cnt % settings.DB_LOG_EVERY_N == 0:
        _pool_logger.info("SQLAlchemy Pool CONNECT events: total opened=%s", cnt)


def _on_checkout(dbapi_connection, connection_record, connection_proxy):
    global _checkout_count
    with _pool_lock:
        _checkout_count += 1
        cnt = _checkout_count
    if cnt % settings.DB_LOG_EVERY_N == 0:
        _pool_logger.info("SQLAlchemy Pool CHECKOUT events: total checkouts=%s", cnt)


def _on_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    current = request_db_query_count.get()
    if current is not None:
        request_db_query_count.set(current + 1)
    global _global_db_query_count
    with _pool_lock:
        _global_db_query_count += 1


def _on_sqlite_connect(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE / REFERENCES unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _attach_listeners(eng):
    event.listen(eng, "connect", _on_connect)
    event.listen(eng, "checkout", _on_checkout)
    event.listen(eng, "before_cursor_execute", _on_before_cursor_execute)
    if eng.url.get_backend_name() == "sqlite":
        event.listen(eng, "connect", _on_sqlite_connect)


engine = build_engine(DATABASE_URL)
SessionLocal.configure(bind=engine)


def get_global_db_queries_total() -> int:
    """Return the total number of DB roundtrips since process start."""
    return int(_global_db_query_count)


def get_db():
    """FastAPI dependency that provides a scoped SQLAlchemy Session.

    The session is always closed after the request so its connection goes
    back to the pool.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def import_models():
    # Registers every table on Base.metadata
    import gestao_financeira.models.user  # noqa: F401
    import gestao_financeira.models.session  # noqa: F401
    import gestao_financeira.models.company  # noqa: F401
    import gestao_financeira.models.category  # noqa: F401
    import gestao_financeira.models.transaction  # noqa: F401


def create_db(bind=None):
    """Create missing tables and seed the category lookup."""
    from gestao_financeira.models.category import seed_categories

    bind = bind or engine
    import_models()
    Base.metadata.create_all(bind=bind)
    db = SessionLocal(bind=bind)
    try:
        created = seed_categories(db)
        if created:
            _pool_logger.info("Seeded %s default categories", created)
    finally:
        db.close()
