def test_get_engine_kwargs_sqlite_has_check_same_thread(monkeypatch):
    # Import lazily so monkeypatch can affect env usage deterministically.
    from taskintel.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./taskintel.db")
    assert "connect_args" in kwargs
    assert kwargs["connect_args"]["check_same_thread"] is False
    # SQLite should not require pool sizing knobs.
    assert "pool_size" not in kwargs
    assert "max_overflow" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_reads_pool_settings(monkeypatch):
    from taskintel.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "7")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "3")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "12")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["pool_size"] == 7
    assert kwargs["max_overflow"] == 3
    assert kwargs["pool_timeout"] == 12


def test_debug_enables_echo(monkeypatch):
    from taskintel.database import database as db

    monkeypatch.setenv("DEBUG", "true")
    assert db.get_engine_kwargs("sqlite:///./taskintel.db")["echo"] is True
    monkeypatch.setenv("DEBUG", "false")
    assert db.get_engine_kwargs("sqlite:///./taskintel.db")["echo"] is False


def test_sqlite_pragmas_listener_is_guarded():
    from taskintel.database import database as db

    assert db._is_sqlite_url("sqlite:///./taskintel.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False


def test_metadata_declares_all_tables():
    from taskintel.database.database import Base
    from taskintel.database import models  # noqa: F401

    assert {"projects", "tasks", "task_dependencies"} <= set(Base.metadata.tables)
    constraint_names = {c.name for c in Base.metadata.tables["task_dependencies"].constraints}
    assert "uq_task_dependency_edge" in constraint_names
    assert "ck_task_dependency_not_self" in constraint_names


def _memory_engine():
    from sqlalchemy import create_engine
    from sqlalchemy.pool import StaticPool

    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def test_init_db_creates_tables_on_bind():
    from sqlalchemy import inspect
    from taskintel.database import database as db

    test_engine = _memory_engine()
    try:
        db.init_db(bind=test_engine)
        assert {"projects", "tasks", "task_dependencies"} <= set(inspect(test_engine).get_table_names())
    finally:
        test_engine.dispose()


def test_init_db_skips_migrations_on_sqlite(monkeypatch):
    from sqlalchemy import inspect
    from taskintel.database import database as db

    monkeypatch.setenv("RUN_MIGRATIONS", "true")
    monkeypatch.setattr(db, "DATABASE_URL", "sqlite:///:memory:")

    test_engine = _memory_engine()
    try:
        db.init_db(bind=test_engine)
        assert "tasks" in inspect(test_engine).get_table_names()
    finally:
        test_engine.dispose()


def test_get_db_yields_session_and_closes_it(monkeypatch):
    from sqlalchemy import text
    from sqlalchemy.orm import sessionmaker
    from taskintel.database import database as db

    test_engine = _memory_engine()
    closed = []

    class TrackingSession(db.Session):
        def close(self):
            closed.append(True)
            super().close()

    monkeypatch.setattr(db, "SessionLocal", sessionmaker(bind=test_engine, class_=TrackingSession))
    try:
        gen = db.get_db()
        session = next(gen)
        assert session.execute(text("SELECT 1")).scalar() == 1
        assert closed == []

        gen.close()
        assert closed == [True]
    finally:
        test_engine.dispose()
