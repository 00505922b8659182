# snipvault_server/tools/library.py
from pydantic import BaseModel, Field


class InitialDataIn(BaseModel):
    pass


class ListBoardsIn(BaseModel):
    pass


class MigrateSnippetsIn(BaseModel):
    folder: str = Field("snippets", description="Folder whose .txt snippets are rewritten as .json")
    recursive: bool = Field(False, description="Also migrate sub-folders")


class SecurityStatsIn(BaseModel):
    monthsBack: int = Field(
        12, ge=1, le=36, description="How many months of security events to scan backwards"
    )
