from typing import Dict, Literal, Optional, Union
from pydantic import BaseModel, Field


class StockLevelsOk(BaseModel):
    """Successful batched stock lookup."""
    status: Literal["ok"] = "ok"
    levels: Dict[str, int] = Field(default_factory=dict)


class DataServiceError(BaseModel):
    """Failed data service call."""
    status: Literal["error"] = "error"
    message: str


StockLevelsResult = Union[StockLevelsOk, DataServiceError]


class StockSnapshot(BaseModel):
    """Available stock per product id, as of the last refresh."""
    levels: Dict[str, int] = Field(default_factory=dict)

    def ceiling(self, item_id: str) -> Optional[int]:
        return self.levels.get(item_id)
