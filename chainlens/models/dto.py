from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Any, Dict

from chainlens.models.domain import ChartKind


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1, max_length=1000)
    session_id: Optional[str] = Field(default=None, alias="sessionId", max_length=100)


class ChartSeries(BaseModel):
    name: str
    values: List[float]
    x: Optional[List[float]] = None   # scatter only


class ChartConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Optional[ChartKind] = None  # None for the "no data" placeholder
    title: str
    labels: List[str]
    series: List[ChartSeries]
    placeholder: bool = False


class ChatData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    chart_data: Optional[ChartConfiguration] = Field(default=None, alias="chartData")
    intent: str
    timestamp: str
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ChatResponse(BaseModel):
    success: bool = True
    data: ChatData


class ChatHistory(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    messages: List[Dict[str, Any]] = []


class AllowanceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chain: str
    contract_address: str = Field(alias="contractAddress")
    owner_address: str = Field(alias="ownerAddress")
    spender_address: str = Field(alias="spenderAddress")


class BalanceChangesRequest(BaseModel):
    # extra keys (page, rpp, cursor, date range...) are forwarded to the provider
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    chain: str
    account_address: str = Field(alias="accountAddress")


class QueryRequest(BaseModel):
    chain: str
    category: str = Field(min_length=1)
    method: str = Field(min_length=1)
    params: List[Any] = []


class DataResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
