"""Pydantic models for SonarQube API responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SonarQubePaging(BaseModel):
    page_index: int = Field(alias="pageIndex", default=1)
    page_size: int = Field(alias="pageSize", default=100)
    total: int = 0

    model_config = {"populate_by_name": True}


class SonarQubeProject(BaseModel):
    key: str
    name: str = ""
    qualifier: str | None = None
    visibility: str | None = None
    last_analysis_date: str | None = Field(alias="lastAnalysisDate", default=None)
    revision: str | None = None
    managed: bool | None = None

    model_config = {"populate_by_name": True}


class SonarQubeProjectsResult(BaseModel):
    paging: SonarQubePaging = Field(default_factory=SonarQubePaging)
    projects: list[SonarQubeProject] = Field(alias="components", default_factory=list)

    model_config = {"populate_by_name": True}
