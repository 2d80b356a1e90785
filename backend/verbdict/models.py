from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ImportMode = Literal["skip", "update", "insert"]


class VerbRow(BaseModel):
    """One row as sent by the import wizard (short column keys)."""

    model_config = ConfigDict(populate_by_name=True)

    base: Optional[str] = None
    past: Optional[str] = None
    part: Optional[str] = None
    definition: Optional[str] = Field(default=None, alias="def")
    note: Optional[str] = None


class BatchAddRequest(BaseModel):
    rows: List[VerbRow]
    mode: ImportMode = "skip"


class BatchAddResponse(BaseModel):
    success: bool = True
    added: int
    skipped: int


class UpdateRequest(VerbRow):
    id: int


class DeleteRequest(BaseModel):
    id: int


class BatchDeleteRequest(BaseModel):
    ids: List[int]


class SuccessResponse(BaseModel):
    success: bool = True


class BatchDeleteResponse(SuccessResponse):
    deleted: int


class VerifyLoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    password: Optional[str] = None
    captcha_answer: Optional[Union[int, str]] = Field(default=None, alias="captchaAnswer")
    captcha_token: Optional[str] = Field(default=None, alias="captchaToken")


class CaptchaResponse(BaseModel):
    visual: str
    token: str


class SearchResponse(BaseModel):
    data: List[dict]
    total: int
    page: int
    limit: int


class PublicConfig(BaseModel):
    default_page_size: int
    max_page_size: int
    max_attempts: int
    captcha_required_for_export: bool = True
