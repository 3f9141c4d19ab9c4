from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

JobType = Literal[
    "distribution",
    "consolidation",
    "script",
    "sync",
    "file_caching",
    "hybrid_work",
    "storage_tiering_and_archival",
]
JobStatus = Literal["running", "completed", "failed", "paused", "queued"]
Permission = Literal["ro", "rw", "sro", "srw"]
BindingRole = Literal["regular", "primary_storage", "caching_gateway", "enduser"]
PathMacro = Literal[
    "%FOLDERS_STORAGE%",
    "%HOME%",
    "%USERPROFILE%",
    "%DOWNLOADS%",
    "%USERDEFINED%",
    "%GETFILES%",
]

JOB_TYPES: tuple[str, ...] = get_args(JobType)
JOB_STATUSES: tuple[str, ...] = get_args(JobStatus)


# -------------------------
# Bindings
# -------------------------

class JobPath(BaseModel):
    macro: Optional[PathMacro] = None
    linux: Optional[str] = None
    linux_cache: Optional[str] = None
    win: Optional[str] = None
    osx: Optional[str] = None
    android: Optional[str] = None
    xbox: Optional[str] = None


class JobGroup(BaseModel):
    id: int
    permission: Permission
    path: JobPath = Field(default_factory=JobPath)
    role: Optional[BindingRole] = None
    file_policy_id: Optional[int] = None
    priority_agents: Optional[bool] = None
    lock_server: Optional[bool] = None


class JobAgent(BaseModel):
    id: int
    permission: Permission
    path: JobPath = Field(default_factory=JobPath)
    storage_config_id: Optional[int] = None
    role: Optional[BindingRole] = None
    file_policy_id: Optional[int] = None
    priority_agents: Optional[bool] = None
    lock_server: Optional[bool] = None


# -------------------------
# Triggers / scripts / scheduling
# -------------------------

class CommandDetails(BaseModel):
    script: str
    shell: Optional[str] = None
    ext: Optional[str] = None


class JobCommand(BaseModel):
    linux: Optional[CommandDetails] = None
    win: Optional[CommandDetails] = None
    osx: Optional[CommandDetails] = None
    android: Optional[CommandDetails] = None
    xbox: Optional[CommandDetails] = None


class JobTriggers(BaseModel):
    pre_indexing: Optional[JobCommand] = None
    pre_move: Optional[JobCommand] = None
    post_download: Optional[JobCommand] = None
    complete: Optional[JobCommand] = None


class JobScript(BaseModel):
    linux: Optional[CommandDetails] = None
    win: Optional[CommandDetails] = None
    osx: Optional[CommandDetails] = None


class MonthlyConfig(BaseModel):
    offset: int
    unit: Literal["day", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
    direction: Literal["month_beginning", "month_end"]
    time: int


class JobScheduler(BaseModel):
    type: Literal["once", "manually", "minutes", "hourly", "daily", "weekly", "monthly"]
    time: Optional[Union[int, list[int]]] = None
    every: Optional[int] = None
    days: Optional[list[int]] = None
    start: Optional[int] = None
    finish: Optional[int] = None
    skip_if_running: Optional[bool] = None
    config: Optional[list[MonthlyConfig]] = None


class TimeRange(BaseModel):
    max: Optional[int] = None
    min: Optional[int] = None


class JobSettings(BaseModel):
    # The upstream keeps adding job settings; unknown keys are forwarded as-is.
    model_config = ConfigDict(extra="allow")

    priority: Optional[int] = None
    use_ram_optimization: Optional[bool] = None
    reference_agent_id: Optional[int] = None
    delete_synced_files: Optional[bool] = None
    delete_synced_files_ttl: Optional[int] = None
    archive_by: Optional[Literal["path", "access_time", "modification_time"]] = None
    modification_time: Optional[TimeRange] = None
    access_time: Optional[TimeRange] = None
    use_file_locking: Optional[bool] = None
    file_locks_timeout: Optional[int] = None
    file_locks_allowed_access_when_no_server: Optional[Literal["no_access", "read_only", "full_access"]] = None
    profile_id: Optional[int] = None


class NotificationDestination(BaseModel):
    email: Optional[str] = None
    user_id: Optional[int] = None
    web_hook_id: Optional[int] = None


class NotificationSettings(BaseModel):
    error_code: Optional[str] = None
    notify_after_error_timeout: Optional[bool] = None
    error_timeout: Optional[int] = None
    notify_on_error_remove: Optional[bool] = None
    complete_timeout: Optional[int] = None
    dont_send_if_no_data_transferred: Optional[bool] = None


class JobNotification(BaseModel):
    destinations: list[NotificationDestination]
    trigger: Literal["JOB_RUN_FINISHED", "JOB_RUN_FAILED", "JOB_RUN_NOT_COMPLETE", "JOB_RUN_ERROR"]
    settings: NotificationSettings = Field(default_factory=NotificationSettings)


# -------------------------
# Job draft (POST /jobs body)
# -------------------------

class CreateJobRequest(BaseModel):
    name: str
    type: JobType = "sync"
    description: Optional[str] = None
    groups: list[JobGroup] = Field(default_factory=list)
    agents: list[JobAgent]
    triggers: Optional[JobTriggers] = None
    script: Optional[JobScript] = None
    scheduler: Optional[JobScheduler] = None
    settings: Optional[JobSettings] = None
    notifications: Optional[list[JobNotification]] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Job name is required")
        return value.strip()

    @field_validator("agents")
    @classmethod
    def _at_least_one_agent(cls, value: list[JobAgent]) -> list[JobAgent]:
        if not value:
            raise ValueError("At least one agent is required")
        return value

    def to_upstream(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# -------------------------
# Observed job
# -------------------------

class ResilioJob(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Union[str, int]
    name: str
    # Observed jobs may carry types from older upstream releases.
    type: str
    status: JobStatus
    progress: float = 0
    startTime: datetime
    endTime: Optional[datetime] = None
    lastUpdate: Optional[datetime] = None
    description: Optional[str] = None
    groups: list[JobGroup] = Field(default_factory=list)
    agents: list[JobAgent] = Field(default_factory=list)
    filesProcessed: int = 0
    totalFiles: int = 0
    bytesTransferred: int = 0
    totalBytes: int = 0
    errorMessage: Optional[str] = None
