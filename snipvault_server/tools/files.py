# snipvault_server/tools/files.py
from pydantic import BaseModel, Field


class ReadFileIn(BaseModel):
    path: str = Field(..., description="Relative path under the data root")


class WriteFileIn(BaseModel):
    path: str = Field(..., description="Relative path under the data root")
    content: str = Field(..., description="UTF-8 text content to write")


class RmIn(BaseModel):
    path: str = Field(..., description="Relative path of the file or folder to delete")
    recursive: bool = Field(False, description="Delete a folder and everything below it")
    force: bool = Field(
        True, description="Accepted for compatibility; deleting a missing path always succeeds"
    )


class RenameIn(BaseModel):
    oldPath: str = Field(..., description="Existing relative path")
    newPath: str = Field(..., description="Destination relative path (parents are created)")


class MkdirIn(BaseModel):
    path: str = Field(..., description="Relative folder path, created recursively")


class ReaddirIn(BaseModel):
    path: str = Field("", description="Relative folder path (empty for the data root)")


class StatIn(BaseModel):
    path: str = Field(..., description="Relative path under the data root")


class ExistsIn(BaseModel):
    path: str = Field(..., description="Relative path under the data root")
