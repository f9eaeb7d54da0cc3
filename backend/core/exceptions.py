# backend/core/exceptions.py
from fastapi import HTTPException, status


class HabitNotFoundException(HTTPException):
    def __init__(self, habit_id: int):
        self.habit_id = habit_id
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Habit not found"
        )


class CompletionQueryException(HTTPException):
    """A completions lookup needs one day or a full date range."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide either 'date' or both 'start_date' and 'end_date'"
        )
