# -------------------------------------------------------------------
# pixiv_schemas/endpoint_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# This module defines the **endpoint descriptor schema** used by the
# endpoint dispatcher, plus the enumerated query values the Pixiv API
# accepts (ranking modes, search targets, sort orders, ...).
#
# Instead of one hand-written method per API endpoint, each endpoint
# is declared once in parameters/config.yaml:
#
#   endpoints:
#     illust_detail:
#       method: GET
#       path: /v1/illust/detail
#       params:
#         - {name: illust_id, required: true}
#         - {name: filter, default: for_ios}
#       expects: [illust]
#
# and validated into an `EndpointDescriptor` here.
#
# PARAMETER STYLES
# ----------------
#   plain   -> value sent as-is                     word=cat
#   csv     -> list joined with ","                 bookmark_illust_ids=1,2,3
#   space   -> list joined with " "                 tags=a b c
#   indexed -> list expanded to name[i] entries     viewed[0]=1&viewed[1]=2
#
# WHAT THIS FILE IS NOT FOR
# ------------------------
# This module does NOT:
# - Load YAML
# - Encode values or perform HTTP calls
#
# It strictly defines **descriptor validation and typing**.
# -------------------------------------------------------------------

from __future__ import annotations

from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ParamStyle(str, Enum):
    PLAIN = "plain"
    CSV = "csv"
    SPACE = "space"
    INDEXED = "indexed"


class ParamSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    required: bool = False
    default: Optional[Any] = None
    style: ParamStyle = ParamStyle.PLAIN


class EndpointDescriptor(BaseModel):
    """
    One Pixiv API endpoint.

    `expects` lists the top-level keys a successful JSON object must carry.
    `security_headers` attaches a fresh x-client-time / x-client-hash pair.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"] = "GET"
    path: str
    params: List[ParamSpec] = Field(default_factory=list)
    expects: List[str] = Field(default_factory=list)
    security_headers: bool = False
    description: Optional[str] = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("path")
    @classmethod
    def _path_starts_with_slash(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("Endpoint path must start with '/'")
        return v

    @model_validator(mode="after")
    def _unique_param_names(self) -> "EndpointDescriptor":
        names = [p.name for p in self.params]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate parameter names: {', '.join(dupes)}")
        return self

    def param(self, name: str) -> Optional[ParamSpec]:
        for spec in self.params:
            if spec.name == name:
                return spec
        return None


# ---------------------------------------------------------------
# Enumerated query values
# ---------------------------------------------------------------
class Filter(str, Enum):
    FOR_IOS = "for_ios"
    NONE = ""


class FollowRestrict(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class SearchTarget(str, Enum):
    PARTIAL_MATCH_FOR_TAGS = "partial_match_for_tags"
    EXACT_MATCH_FOR_TAGS = "exact_match_for_tags"
    TITLE_AND_CAPTION = "title_and_caption"
    KEYWORD = "keyword"


class Sort(str, Enum):
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    POPULAR_DESC = "popular_desc"


class Duration(str, Enum):
    WITHIN_LAST_DAY = "within_last_day"
    WITHIN_LAST_WEEK = "within_last_week"
    WITHIN_LAST_MONTH = "within_last_month"


class ContentType(str, Enum):
    ILLUST = "illust"
    MANGA = "manga"


class RankingMode(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    DAY_MALE = "day_male"
    DAY_FEMALE = "day_female"
    WEEK_ORIGINAL = "week_original"
    WEEK_ROOKIE = "week_rookie"
    DAY_MANGA = "day_manga"
    DAY_R18 = "day_r18"
    DAY_MALE_R18 = "day_male_r18"
    DAY_FEMALE_R18 = "day_female_r18"
    WEEK_R18 = "week_r18"
    WEEK_R18G = "week_r18g"
