"""Exceptions raised by the planner's write paths."""


class StudyPlannerError(Exception):
    """Base exception for planner errors."""


class CourseNotSelectedError(StudyPlannerError):
    """A write needed a course but none was given and the user has no current course."""

    def __init__(self, user_id: str):
        super().__init__(f"No course selected for user {user_id}. Please select a course first.")
        self.user_id = user_id


class RecordNotFoundError(StudyPlannerError):
    """A targeted update referenced a subject, topic or subtopic that does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind.capitalize()} {record_id} not found")
        self.kind = kind
        self.record_id = record_id
