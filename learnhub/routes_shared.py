from typing import Optional, TypeVar

from fastapi import HTTPException, status

T = TypeVar("T")


def or_404(row: Optional[T], entity: str) -> T:
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")
    return row


def deleted_or_404(found: bool, entity: str) -> None:
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")


# Action names written to the audit log
CREATE = "CREATE"
UPDATE = "UPDATE"
DELETE = "DELETE"
PUBLISH = "PUBLISH"
LINK_GAME = "LINK_GAME"
SET_STATUS = "SET_STATUS"
