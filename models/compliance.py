"""
Data models for possession tracking and compliance verdicts.
"""

from pydantic import BaseModel, Field


class PossessionRecord(BaseModel):
    """What a patient already holds. Missing values count as zero."""

    flower_g: float = Field(default=0.0, ge=0)
    concentrate_g: float = Field(default=0.0, ge=0)
    thc_mg: float = Field(default=0.0, ge=0)


class ComplianceCheck(BaseModel):
    """Result of checking an order against the possession limits"""

    within_flower_limit: bool
    within_concentrate_limit: bool
    within_thc_limit: bool
    message: str
    total_flower_g: float = 0.0
    total_concentrate_g: float = 0.0
    total_thc_mg: float = 0.0

    @property
    def is_compliant(self) -> bool:
        return self.within_flower_limit and self.within_concentrate_limit and self.within_thc_limit
