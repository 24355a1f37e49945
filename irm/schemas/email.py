"""
Pydantic schemas for email preview and send endpoints.
"""

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator

from irm.services.email_templates import TemplateName


class EmailPreviewRequest(BaseModel):
    """Render either a named template or an ad-hoc ``body``."""

    template: Optional[TemplateName] = None
    subject: Optional[str] = None
    body: Optional[str] = Field(default=None, examples=["Hi {{firstName}}"])
    fields: Dict[str, Any] = Field(default_factory=dict, examples=[{"firstName": "Ananya"}])

    @model_validator(mode="after")
    def _template_or_body(self) -> "EmailPreviewRequest":
        if (self.template is None) == (self.body is None):
            raise ValueError("provide exactly one of 'template' or 'body'")
        return self


class EmailPreviewResponse(BaseModel):
    subject: str
    body: str


class EmailSendResponse(BaseModel):
    to: str
    template: TemplateName
    sent: bool


class MonthlyReportsResponse(BaseModel):
    as_of: date
    sent: int
    failed: int
    skipped: int
