from app.schemas.base import (  # noqa: F401
    UNKNOWN_DATE,
    UNKNOWN_STORE,
    AccountMapping,
    Category,
    ParseRequest,
    ParseResponse,
    Receipt,
    ReceiptItem,
)
