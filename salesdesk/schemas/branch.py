"""Request/response schemas for branches."""

from pydantic import BaseModel


class BranchPayload(BaseModel):
    branch_name: str | None = None
    branch_address: str | None = None
    manager_id: str | None = None


class BranchOut(BaseModel):
    branch_id: int
    branch_name: str
    branch_address: str
    manager_id: str | None = None
    manager_name: str | None = None

    class Config:
        from_attributes = True
