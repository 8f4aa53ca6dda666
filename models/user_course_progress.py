from typing import List
from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr


class ChapterProgress(BaseModel):
    # Clients may send extra per-chapter fields; they survive merges.
    model_config = ConfigDict(extra="allow")

    chapterId: StrictStr
    completed: StrictBool


class SectionProgress(BaseModel):
    sectionId: StrictStr
    chapters: List[ChapterProgress] = []


class UserCourseProgress(BaseModel):
    """Persisted record in the UserCourseProgress table.

    userId is the hash key and courseId the range key. overallProgress is
    always recomputed from sections before a write.
    """

    userId: str
    courseId: str
    enrollmentDate: str
    overallProgress: float = 0
    sections: List[SectionProgress] = []
    lastAccessedTimestamp: str
