from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


class PushEntityBody(BaseModel):
    id: Optional[str] = None
    baseKey: Optional[str] = None
    entityType: Optional[str] = None
    dataJson: Optional[str] = None
    previousId: Optional[str] = None


class PushBatchBody(BaseModel):
    batch: bool = False
    items: List[PushEntityBody] = []


class ReceiptSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blockNumber: Optional[int] = None
    blockHash: Optional[str] = None
    status: Optional[int] = None
    gasUsed: Optional[int] = None
    from_: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None


class PushResponse(BaseModel):
    success: bool
    txHash: Optional[str] = None
    txUrl: Optional[str] = None
    chainName: Optional[str] = None
    receipt: Optional[ReceiptSummary] = None
    error: Optional[str] = None


class EntityView(BaseModel):
    id: str = ""
    entityType: str = ""
    dataJson: str = ""
    version: str = ""
    previousId: str = ""
    timestamp: str = ""
    submitter: str = ""


class EventView(BaseModel):
    name: str
    id: Optional[str] = None
    entityType: Optional[str] = None
    submitter: Optional[str] = None
    version: Optional[str] = None


class TxDetailResponse(BaseModel):
    success: Literal[True] = True
    txHash: str
    txUrl: str
    chainName: str = ""
    events: List[EventView] = []
    entity: Optional[EntityView] = None
    receipt: Optional[ReceiptSummary] = None


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
