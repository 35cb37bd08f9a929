from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DriveFileInfo(CamelModel):
	id: str
	name: str
	view_link: Optional[str] = None
	download_link: Optional[str] = None

	@classmethod
	def from_drive(cls, data: Dict[str, Any]) -> "DriveFileInfo":
		"""Build from a Drive ``files.create`` response."""
		return cls(
			id=data["id"],
			name=data.get("name", ""),
			view_link=data.get("webViewLink"),
			download_link=data.get("webContentLink"),
		)


class DriveFileEntry(CamelModel):
	id: str
	name: str
	created_time: Optional[str] = None
	mime_type: Optional[str] = None
	size: Optional[str] = None
	web_view_link: Optional[str] = None


class FileListResponse(BaseModel):
	success: bool = True
	files: List[DriveFileEntry]
