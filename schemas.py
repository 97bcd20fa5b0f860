from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


class TaskInSchema(BaseModel):
    """Request body for create/update.

    Every field is optional on the wire: missing or empty values are
    checked and defaulted by the service, not by the decoder. `id` and
    `subTasks` are accepted and ignored.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = ""
    description: Optional[str] = ""
    priority: str = ""
    status: str = ""
    start_date: str = Field("", alias="startDate")
    due_date: Optional[str] = Field(None, alias="dueDate")
    due_time: Optional[str] = Field(None, alias="dueTime")


# Для ответа (рекурсивная)
class TaskSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    title: str
    description: str
    priority: str
    status: str
    start_date: str = Field(alias="startDate")
    due_date: Optional[str] = Field(None, alias="dueDate")
    due_time: Optional[str] = Field(None, alias="dueTime")
    sub_tasks: List["TaskSchema"] = Field(default_factory=list, alias="subTasks")


class TaskCreatedSchema(BaseModel):
    status: str = "success"
    task: TaskSchema


class ErrorSchema(BaseModel):
    error: str


TaskSchema.model_rebuild()
