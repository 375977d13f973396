from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, UploadFile, status
from sqlalchemy.exc import IntegrityError

from roster.core.config import settings
from roster.core.dependencies import get_filter_criteria
from roster.models.employee import EmployeeIn, EmployeeRecord, FilterCriteria
from roster.models.imports import ImportReport
from roster.services.import_pipeline import ImportPipelineError, import_pipeline
from roster.services.import_source import UploadImportSource
from roster.services.query_builder import query_builder
from roster.services.record_store import record_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


def _not_found(employee_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Employee {employee_id} not found",
    )


def _conflict(err: IntegrityError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Employee conflicts with an existing record: {err.orig}",
    )


@router.get("", response_model=list[EmployeeRecord])
async def list_employees(criteria: FilterCriteria = Depends(get_filter_criteria)):  # noqa: B008
    try:
        return await record_store.list_employees(query_builder.build(criteria))
    except Exception as err:
        logger.exception("Failed to list employees")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employees",
        ) from err


@router.post("/bulk-import", response_model=ImportReport)
async def bulk_import(file: UploadFile):
    source = UploadImportSource(
        file,
        chunk_size=settings.IMPORT_CHUNK_SIZE,
        max_bytes=settings.IMPORT_MAX_BYTES,
    )
    try:
        report = await import_pipeline.run(source)
    except ImportPipelineError as e:
        logger.error("Bulk import failed for file=%s: %s", file.filename, e)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    except Exception as err:
        logger.exception("Bulk import crashed for file=%s", file.filename)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to import employees",
        ) from err

    return report


@router.get("/{employee_id}", response_model=EmployeeRecord)
async def get_employee(employee_id: int):
    try:
        employee = await record_store.get_employee(employee_id)
    except Exception as err:
        logger.exception("Failed to get employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employee",
        ) from err

    if not employee:
        raise _not_found(employee_id)

    return employee


@router.post("", response_model=EmployeeRecord, status_code=status.HTTP_201_CREATED)
async def create_employee(payload: EmployeeIn):
    try:
        return await record_store.create_employee(payload)
    except IntegrityError as err:
        raise _conflict(err) from err
    except Exception as err:
        logger.exception("Failed to create employee")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create employee",
        ) from err


@router.put("/{employee_id}", response_model=EmployeeRecord)
async def update_employee(employee_id: int, payload: EmployeeIn):
    try:
        employee = await record_store.update_employee(employee_id, payload)
    except IntegrityError as err:
        raise _conflict(err) from err
    except Exception as err:
        logger.exception("Failed to update employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update employee",
        ) from err

    if not employee:
        raise _not_found(employee_id)

    return employee


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(employee_id: int):
    try:
        employee = await record_store.delete_employee(employee_id)
    except Exception as err:
        logger.exception("Failed to delete employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete employee",
        ) from err

    if not employee:
        raise _not_found(employee_id)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
