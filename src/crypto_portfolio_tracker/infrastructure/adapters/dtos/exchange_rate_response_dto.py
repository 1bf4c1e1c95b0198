from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ExchangeRateResponseDto(BaseModel):
    model_config = ConfigDict(extra="ignore")

    result: str | None = None
    base_code: str | None = None
    time_last_updated: int | None = Field(
        default=None, validation_alias=AliasChoices("time_last_update_unix", "time_last_updated")
    )
    rates: dict[str, Decimal] = Field(default_factory=dict)
