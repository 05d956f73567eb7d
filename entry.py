from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

END_OF_DAY = "24:00"
START_OF_DAY = "00:00"


class TimeEntry(BaseModel):
    id: int = Field(..., description="Process-unique id, assigned monotonically.")
    date: str = Field(
        ...,
        description="Stored calendar day in YYYY-MM-DD format.",
        pattern=r"^\d{4}-\d{2}-\d{2}$",
    )
    start: str = Field(
        ...,
        description="Start time in HH:MM format (24-hour).",
        pattern=r"^([01]\d|2[0-3]):[0-5]\d$",
    )
    end: Optional[str] = Field(
        None,
        description="End time in HH:MM format, or 24:00 for end of day. Absent while open.",
        pattern=r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$",
    )

    @property
    def is_open(self) -> bool:
        return self.end is None


class SplitPair(BaseModel):
    """Links the two records of one interval that crosses midnight."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Derived from the member ids as '<first>-<second>'.")
    first_id: int = Field(..., alias="firstId", description="Half that ends at 24:00.")
    second_id: int = Field(..., alias="secondId", description="Half that starts at 00:00.")

    @classmethod
    def link(cls, first_id: int, second_id: int) -> "SplitPair":
        return cls(id=f"{first_id}-{second_id}", first_id=first_id, second_id=second_id)

    @property
    def member_ids(self) -> tuple[int, int]:
        return self.first_id, self.second_id
