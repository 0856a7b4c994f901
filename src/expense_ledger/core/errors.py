"""Error codes and user-friendly messages.

This module defines the error catalog for CSV ingestion, categorization
and the category, rule and transaction endpoints. Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

# Error catalog
ERROR_CATALOG: dict[str, dict] = {
    "CSV_001": {
        "code": "CSV_001",
        "message": "Uploaded CSV content is empty",
        "user_message": "The uploaded file is empty.",
        "suggestion": "Export your transaction history again and upload the new file.",
        "retry_allowed": False,
    },
    "CSV_002": {
        "code": "CSV_002",
        "message": "Unrecognized CSV header",
        "user_message": "We couldn't recognize the format of this CSV file.",
        "suggestion": "Upload a PayPay transaction export or a date,amount,description,payment_method CSV.",
        "retry_allowed": False,
    },
    "CSV_003": {
        "code": "CSV_003",
        "message": "CSV contains no parseable transaction rows",
        "user_message": "We couldn't find any expenses in this file.",
        "suggestion": "Check that the file contains payment rows and has not been edited by hand.",
        "retry_allowed": False,
    },
    "CFG_001": {
        "code": "CFG_001",
        "message": "No fallback (Other) category configured for user scope",
        "user_message": "Your categories are not set up correctly.",
        "suggestion": "Please contact support. Your data has not been changed.",
        "retry_allowed": False,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database transaction failed during batch persistence",
        "user_message": "We couldn't save your transactions due to a database error.",
        "suggestion": "Please try the upload again. Rows that were already saved will be detected as duplicates.",
        "retry_allowed": True,
    },
    "CAT_001": {
        "code": "CAT_001",
        "message": "The Other category cannot be deleted",
        "user_message": "The Other category can't be deleted.",
        "suggestion": "Uncategorized transactions always land in Other.",
        "retry_allowed": False,
    },
    "CAT_002": {
        "code": "CAT_002",
        "message": "Invalid category reorder request",
        "user_message": "The new category order is invalid.",
        "suggestion": "Refresh the page and try reordering again.",
        "retry_allowed": False,
    },
    "CAT_003": {
        "code": "CAT_003",
        "message": "Category name already exists",
        "user_message": "A category with this name already exists.",
        "suggestion": "Choose a different name.",
        "retry_allowed": False,
    },
    "CAT_004": {
        "code": "CAT_004",
        "message": "System categories cannot be modified",
        "user_message": "Built-in categories can't be changed.",
        "suggestion": "Create your own category instead.",
        "retry_allowed": False,
    },
    "TXN_001": {
        "code": "TXN_001",
        "message": "Transaction with the same date, amount and description already exists",
        "user_message": "This expense has already been recorded.",
        "suggestion": "Check the existing entry for that day instead of adding it again.",
        "retry_allowed": False,
    },
    "DB_002": {
        "code": "DB_002",
        "message": "Database constraint violated",
        "user_message": "This change conflicts with data that already exists.",
        "suggestion": "Refresh the page and try again.",
        "retry_allowed": False,
    },
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request failed validation",
        "user_message": "Some of the submitted values are invalid.",
        "suggestion": "Check the highlighted fields and try again.",
        "retry_allowed": False,
    },
    "SYS_001": {
        "code": "SYS_001",
        "message": "Unhandled server error",
        "user_message": "An unexpected error occurred.",
        "suggestion": "Please try again. Contact support if the problem persists.",
        "retry_allowed": True,
    },
    # API-specific errors
    "API_001": {
        "code": "API_001",
        "message": "Invalid file type uploaded",
        "user_message": "Only CSV files are supported.",
        "suggestion": "Please upload the .csv file exported from your payment app.",
        "retry_allowed": False,
    },
    "API_002": {
        "code": "API_002",
        "message": "File size exceeds maximum limit",
        "user_message": "The file is too large.",
        "suggestion": "Split the export into smaller date ranges and upload them separately.",
        "retry_allowed": False,
    },
    "API_003": {
        "code": "API_003",
        "message": "Category not found",
        "user_message": "We couldn't find this category.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "API_004": {
        "code": "API_004",
        "message": "Rule not found",
        "user_message": "We couldn't find this rule.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "API_005": {
        "code": "API_005",
        "message": "Transaction not found",
        "user_message": "We couldn't find this transaction.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details (a generic entry for unknown codes)
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable."""
    return get_error(error_code)["retry_allowed"]
