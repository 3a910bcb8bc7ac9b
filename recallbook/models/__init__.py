from recallbook.models.import_data import (
    ImportData,
    ImportQuestion,
    ImportRequest,
    ImportResult,
)
from recallbook.models.project import (
    LearningSession,
    LearningSessionList,
    Project,
    ProjectList,
)
from recallbook.models.question import (
    ReviewQuestion,
    ReviewQuestionCreate,
    ReviewQuestionList,
)
from recallbook.models.review import (
    DueQuestion,
    DueQuestionList,
    ProjectReviewStats,
    RatingPreview,
    RatingPreviewList,
    ReviewHistory,
    ReviewHistoryList,
    ReviewRequest,
    ReviewResult,
    ReviewStats,
)

__all__ = [
    "DueQuestion",
    "DueQuestionList",
    "ImportData",
    "ImportQuestion",
    "ImportRequest",
    "ImportResult",
    "LearningSession",
    "LearningSessionList",
    "Project",
    "ProjectList",
    "ProjectReviewStats",
    "RatingPreview",
    "RatingPreviewList",
    "ReviewHistory",
    "ReviewHistoryList",
    "ReviewQuestion",
    "ReviewQuestionCreate",
    "ReviewQuestionList",
    "ReviewRequest",
    "ReviewResult",
    "ReviewStats",
]
