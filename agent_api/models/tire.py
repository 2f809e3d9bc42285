from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from agent_api.core.enums import DEFAULT_TIRE_LIMIT, VehicleType
from agent_api.models.product import Product


class TireSpec(BaseModel):
    """Tire size parsed from a product name.

    When ``parseable`` is False every size field is None.
    """

    model_config = ConfigDict(frozen=True)

    width: Optional[int] = None
    aspect_ratio: Optional[int] = None
    diameter: Optional[int] = None
    vehicle_type: Optional[VehicleType] = None
    parseable: bool = False

    @property
    def size_label(self) -> str:
        if not self.parseable:
            return ""
        if self.aspect_ratio is None:
            return f"{self.width} R{self.diameter}"
        return f"{self.width}/{self.aspect_ratio}R{self.diameter}"


class TireQuery(BaseModel):
    width: int = Field(..., ge=100, le=9999)
    aspect_ratio: Optional[int] = Field(default=None, ge=10, le=99)
    # Accept 16, "16" or "R16"
    diameter: Optional[Union[int, str]] = None
    exact_match: bool = False
    limit: int = DEFAULT_TIRE_LIMIT
    vehicle_type: Optional[VehicleType] = None


class TireMatch(BaseModel):
    product: Product
    tire_spec: TireSpec


class TireSearchResult(BaseModel):
    vehicle_type: VehicleType
    total: int
    matches: list[TireMatch]
