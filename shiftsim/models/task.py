"""Task and patient models."""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shiftsim.models.game_time import GameTime


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    NOT_YET = "not-yet"
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is possible."""
        return self in (TaskStatus.COMPLETED, TaskStatus.OVERDUE)


class TaskType(str, Enum):
    """Task type tags."""

    MEDICATION = "medication"
    ASSESSMENT = "assessment"
    PROCEDURE = "procedure"
    DEFAULT = "default"

    @classmethod
    def _missing_(cls, value: object) -> "TaskType":
        # Tags come from content templates: case-insensitive, "med" shorthand,
        # anything unrecognized is handled as a default task
        if isinstance(value, str):
            tag = value.strip().lower()
            if tag == "med":
                return cls.MEDICATION
            for member in cls:
                if member.value == tag:
                    return member
        return cls.DEFAULT

    @property
    def display_name(self) -> str:
        """Human-readable name of the task type."""
        return TASK_TYPE_NAMES[self]


TASK_TYPE_NAMES = {
    TaskType.MEDICATION: "Medication",
    TaskType.ASSESSMENT: "Assessment",
    TaskType.PROCEDURE: "Procedure",
    TaskType.DEFAULT: "Task",
}


class TaskSpec(BaseModel):
    """Task declaration as supplied by the content-loading layer."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = Field(default=None, description="Task id; generated when missing")
    type: TaskType = Field(default=TaskType.DEFAULT, description="Task type tag")
    name: str = Field(min_length=1, description="Task name")
    scheduled_time: GameTime = Field(description="When the task becomes active (HHMM)")
    expire_time: Optional[Union[int, str]] = Field(
        default=None, description="Absolute HHMM, or '+N' minutes after scheduled time"
    )
    duration_minutes: int = Field(default=0, ge=0, description="Expected duration in minutes")
    patient_id: Optional[str] = Field(default=None, description="Owning patient")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Free-form task data")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> TaskType:
        """Map free-form type tags onto TaskType."""
        return TaskType(value)


class Task(BaseModel):
    """Registered task with live status."""

    model_config = ConfigDict(frozen=True)  # Immutable model

    task_id: str = Field(description="Unique task identifier")
    type: TaskType = Field(default=TaskType.DEFAULT, description="Task type")
    name: str = Field(description="Task name")
    scheduled_time: GameTime = Field(description="Scheduled game time (HHMM)")
    expire_time: Optional[GameTime] = Field(default=None, description="Resolved expiry (HHMM)")
    duration_minutes: int = Field(default=0, ge=0, description="Expected duration in minutes")
    status: TaskStatus = Field(default=TaskStatus.NOT_YET, description="Lifecycle status")
    patient_id: Optional[str] = Field(default=None, description="Owning patient")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Free-form task data")

    def with_status(self, status: TaskStatus) -> "Task":
        """Create new task with updated status (immutable update)."""
        return self.model_copy(update={"status": status})


class Patient(BaseModel):
    """Patient the tasks belong to."""

    model_config = ConfigDict(frozen=True)  # Immutable model

    patient_id: str = Field(
        validation_alias=AliasChoices("patient_id", "patientId", "id"), description="Unique patient identifier"
    )
    name: str = Field(description="Patient name")
    room: Optional[str] = Field(default=None, description="Room label")
    age: Optional[int] = Field(default=None, ge=0, description="Age in years")
    diagnosis: Optional[str] = Field(default=None, description="Admitting diagnosis")
    vitals: dict[str, Union[int, float, str]] = Field(default_factory=dict, description="Latest vitals")
