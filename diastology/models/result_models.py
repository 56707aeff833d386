"""
Pydantic models for result catalog entries.
"""

from pydantic import BaseModel, ConfigDict, Field


class ResultDescriptor(BaseModel):
    """
    User-facing description of a terminal outcome.

    Attributes:
        message: Headline shown for the outcome.
        css_class: Severity class used by presentation layers (``class`` on the wire).
        description: Longer explanation.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str = Field(..., description="Outcome headline")
    css_class: str = Field(..., alias="class", description="Severity class")
    description: str = Field(default="", description="Explanation of the outcome")
