from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import List, Optional
import uuid

# Model for creating or refreshing a store (input)
class StoreCreate(BaseModel):
    domain: str
    access_token: str # Plain token; the model encrypts it on assignment
    scope: Optional[str] = None
    user_id: Optional[str] = None

# Compact store reference used by listings and "available stores" error bodies
class StoreSummary(BaseModel):
    id: uuid.UUID
    shop: str = Field(validation_alias=AliasChoices("shop", "shop_domain"))

    model_config = ConfigDict(from_attributes=True)

class StoreList(BaseModel):
    stores: List[StoreSummary]
