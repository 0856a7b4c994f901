"""Transaction import, sweep, listing and single-row endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Header, Query, Request, Response, status

from expense_ledger.api.deps import CurrentUser, DbSession
from expense_ledger.config import settings
from expense_ledger.core.exceptions import CsvInputError
from expense_ledger.schemas.ingestion import (
    AvailableYearsResponse,
    CsvImportResult,
    RecategorizeRequest,
    RecategorizeResult,
)
from expense_ledger.schemas.transaction import (
    TransactionCreateRequest,
    TransactionListQuery,
    TransactionListResult,
    TransactionResponse,
    TransactionSummaryResponse,
    TransactionUpdateRequest,
)
from expense_ledger.services.importer import CsvImportService
from expense_ledger.services.recategorization import RecategorizationService
from expense_ledger.services.transaction import TransactionService

router = APIRouter(prefix="/transactions", tags=["transactions"])


async def read_limited_body(request: Request, max_bytes: int) -> bytes:
    """Read the raw request body in memory, refusing anything over max_bytes.

    Raises:
        CsvInputError: API_002 (413) once the limit is crossed
    """
    buf = bytearray()
    async for chunk in request.stream():
        if not chunk:
            continue
        if len(buf) + len(chunk) > max_bytes:
            raise CsvInputError(
                "API_002",
                {"max_bytes": max_bytes},
                http_status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            )
        buf.extend(chunk)
    return bytes(buf)


@router.post(
    "/upload",
    response_model=CsvImportResult,
    status_code=status.HTTP_201_CREATED,
    summary="Import a CSV export",
    description="""
    Import transactions from a CSV export sent as the raw request body.

    ## Supported Formats
    - PayPay transaction history export
    - Generic `date,amount,description[,payment_method]`

    ## Behaviour
    - Rows already imported (same date, amount and description) are counted as duplicates
    - Malformed or non-expense rows are counted as skipped
    - The batch is stored all-or-nothing

    ## Error Codes
    - API_001: File name is not a .csv
    - API_002: File too large
    - CSV_001: Empty file
    - CSV_002: Unrecognized format
    - CSV_003: No expense rows
    - DB_001: Batch could not be stored (safe to retry)
    """,
)
async def upload_csv(
    request: Request,
    file_name: Annotated[str, Header(alias="X-File-Name", description="Original file name")],
    current_user: CurrentUser,
    db: DbSession,
) -> CsvImportResult:
    if not file_name.lower().endswith(".csv"):
        raise CsvInputError("API_001", {"file_name": file_name})

    body = await read_limited_body(request, settings.csv_max_size_mb * 1024 * 1024)
    csv_content = body.decode("utf-8", errors="replace")

    service = CsvImportService(db)
    return await service.import_csv(current_user.id, file_name, csv_content)


@router.post(
    "/recategorize",
    response_model=RecategorizeResult,
    summary="Re-apply rules to uncategorized transactions",
)
async def recategorize(
    body: RecategorizeRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> RecategorizeResult:
    """Move transactions out of Other using the current rules.

    Only transactions in the Other category or without a category are
    considered; manual categorizations are never overwritten.
    """
    service = RecategorizationService(db)
    return await service.recategorize(current_user.id, year=body.year, month=body.month)


@router.get(
    "/available-years",
    response_model=AvailableYearsResponse,
    summary="Years with imported data",
)
async def available_years(
    current_user: CurrentUser,
    db: DbSession,
) -> AvailableYearsResponse:
    years = await TransactionService(db).available_years(current_user.id)
    return AvailableYearsResponse(years=years)


@router.get("", response_model=TransactionListResult, summary="List transactions")
async def list_transactions(
    query: Annotated[TransactionListQuery, Query()],
    current_user: CurrentUser,
    db: DbSession,
) -> TransactionListResult:
    """Filter by period, category or description text; sort by date or amount.

    Pagination totals cover every matching transaction, not just the page.
    """
    return await TransactionService(db).list_transactions(current_user.id, query)


@router.get("/summary", response_model=TransactionSummaryResponse, summary="Spending summary")
async def transaction_summary(
    current_user: CurrentUser,
    db: DbSession,
    year: Annotated[int, Query(ge=1900, le=9999)],
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
) -> TransactionSummaryResponse:
    return await TransactionService(db).get_summary(current_user.id, year, month)


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an expense by hand",
    description="""
    Record an expense that is not in any export.

    ## Error Codes
    - API_003: Category not found
    - TXN_001: An expense with the same date, amount and description exists
    """,
)
async def create_transaction(
    body: TransactionCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> TransactionResponse:
    return await TransactionService(db).create_transaction(current_user.id, body)


@router.patch(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Recategorize a transaction",
)
async def update_transaction(
    transaction_id: UUID,
    body: TransactionUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> TransactionResponse:
    """Move a transaction to another own or system category.

    A transaction moved out of Other is never touched by later sweeps.
    """
    return await TransactionService(db).update_category(current_user.id, transaction_id, body.category_id)


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a transaction",
)
async def delete_transaction(
    transaction_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> Response:
    await TransactionService(db).delete_transaction(current_user.id, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
