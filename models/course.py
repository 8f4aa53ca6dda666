from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class Comment(BaseModel):
    commentId: str
    userId: str
    text: str
    timestamp: str


class Chapter(BaseModel):
    chapterId: str
    type: Literal["Text", "Quiz", "Video"] = "Text"
    title: str
    content: str = ""
    comments: Optional[List[Comment]] = None
    video: Optional[str] = None


class Section(BaseModel):
    sectionId: str
    sectionTitle: str
    sectionDescription: Optional[str] = None
    chapters: List[Chapter] = []


class Enrollment(BaseModel):
    userId: str


class Course(BaseModel):
    courseId: str
    teacherId: str
    teacherName: str
    title: str
    description: Optional[str] = None
    category: str
    image: Optional[str] = None
    price: Optional[int] = None  # cents
    level: Literal["Beginner", "Intermediate", "Advanced"]
    status: Literal["Draft", "Published"]
    sections: List[Section] = []
    enrollments: List[Enrollment] = []
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


# Read-only projection used when bootstrapping progress: only ids matter.

class ChapterSkeleton(BaseModel):
    chapterId: str


class SectionSkeleton(BaseModel):
    sectionId: str
    chapters: List[ChapterSkeleton] = Field(default_factory=list)


class CourseSkeleton(BaseModel):
    courseId: str
    sections: List[SectionSkeleton] = Field(default_factory=list)

    @classmethod
    def from_course(cls, course: Course) -> "CourseSkeleton":
        return cls(
            courseId=course.courseId,
            sections=[
                SectionSkeleton(
                    sectionId=section.sectionId,
                    chapters=[ChapterSkeleton(chapterId=c.chapterId) for c in section.chapters],
                )
                for section in course.sections
            ],
        )
