from typing import Any, List, Optional, Union
from pydantic import BaseModel


class CourseCreate(BaseModel):
    teacherId: str
    teacherName: str


class ChapterUpdate(BaseModel):
    chapterId: Optional[str] = None
    type: str = "Text"
    title: str
    content: str = ""
    video: Optional[str] = None


class SectionUpdate(BaseModel):
    sectionId: Optional[str] = None
    sectionTitle: str
    sectionDescription: Optional[str] = None
    chapters: List[ChapterUpdate] = []


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    # Whole currency units; stored as cents
    price: Optional[Union[str, int, float]] = None
    level: Optional[str] = None
    status: Optional[str] = None
    # A JSON string is accepted too, as sent by multipart forms
    sections: Optional[Union[str, List[SectionUpdate]]] = None


class VideoUploadRequest(BaseModel):
    fileName: Optional[str] = None
    fileType: Optional[str] = None


# Response Models
class CourseResponse(BaseModel):
    message: str
    data: Any


class CoursesResponse(BaseModel):
    message: str
    data: List[Any]
