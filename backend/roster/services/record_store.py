"""Relational employee record store (SQLAlchemy async)."""

from __future__ import annotations

import logging

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from roster.core.config import Settings
from roster.db.models import Employee
from roster.db.session import create_session_factory, ensure_tables
from roster.models.employee import EmployeeFields, EmployeeRecord
from roster.services.query_builder import FilterQuery

logger = logging.getLogger(__name__)

_LIST_SQL = "SELECT id, name, email, position, department, photo_url, created_at FROM employees {where}"


class RecordStore:
    def __init__(self) -> None:
        self.engine: AsyncEngine | None = None
        self.session_maker: async_sessionmaker[AsyncSession] | None = None
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.DATABASE_URL:
            logger.warning("DATABASE_URL missing, RecordStore not initialized")
            return

        self.engine, self.session_maker = create_session_factory(settings.DATABASE_URL, echo=settings.DB_ECHO)
        await ensure_tables(self.engine)
        self.initialized = True
        logger.info("RecordStore initialized (dialect=%s)", self.engine.dialect.name)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
        self.engine = None
        self.session_maker = None
        self.initialized = False

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        if not self.session_maker:
            raise RuntimeError("RecordStore not initialized")
        return self.session_maker

    async def create_employee(self, fields: EmployeeFields) -> EmployeeRecord:
        async with self._sessions()() as session, session.begin():
            row = Employee(
                name=fields.name,
                email=fields.email,
                position=fields.position,
                department=fields.department,
                photo_url=fields.photo_url or None,
            )
            session.add(row)
            await session.flush()
            # reload so created_at reads back exactly as stored
            await session.refresh(row)
            return self._to_record(row)

    async def list_employees(self, query: FilterQuery) -> list[EmployeeRecord]:
        where, binds = query.render()
        stmt = select(Employee).from_statement(text(_LIST_SQL.format(where=where)).bindparams(**binds))

        async with self._sessions()() as session:
            result = await session.execute(stmt)
            return [self._to_record(row) for row in result.scalars()]

    async def get_employee(self, employee_id: int) -> EmployeeRecord | None:
        async with self._sessions()() as session:
            row = await session.get(Employee, employee_id)
            if row is None:
                return None
            return self._to_record(row)

    async def update_employee(self, employee_id: int, fields: EmployeeFields) -> EmployeeRecord | None:
        async with self._sessions()() as session, session.begin():
            row = await session.get(Employee, employee_id)
            if row is None:
                return None

            row.name = fields.name
            row.email = fields.email
            row.position = fields.position
            row.department = fields.department
            row.photo_url = fields.photo_url or None
            await session.flush()
            return self._to_record(row)

    async def delete_employee(self, employee_id: int) -> EmployeeRecord | None:
        async with self._sessions()() as session, session.begin():
            row = await session.get(Employee, employee_id)
            if row is None:
                return None

            record = self._to_record(row)
            await session.delete(row)
            return record

    async def check_connection(self) -> bool:
        if not self.engine:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.exception("Database connection check failed")
            return False

    def _to_record(self, row: Employee) -> EmployeeRecord:
        return EmployeeRecord(
            id=row.id,
            name=row.name,
            email=row.email,
            position=row.position,
            department=row.department,
            photo_url=row.photo_url,
            created_at=row.created_at,
        )


record_store = RecordStore()
