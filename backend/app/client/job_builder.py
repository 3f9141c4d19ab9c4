"""
Draft state for the "create job" form.

The builder collects a job specification field by field, validates it on
submit and hands it to a submitter (normally ``ReadCache.create_job``, which
also invalidates the cached job list). A draft that fails validation never
reaches the submitter.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog
from pydantic import ValidationError

from app.client.dashboard_client import DashboardRequestError
from app.models.job import (
    CreateJobRequest,
    JobAgent,
    JobGroup,
    JobNotification,
    JobPath,
    JobScheduler,
    JobScript,
    JobSettings,
    JobTriggers,
)

log = structlog.get_logger()

Submitter = Callable[[CreateJobRequest], Awaitable[Any]]


class BuilderState(str, Enum):
    EMPTY = "empty"
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class JobBuilderError(Exception):
    pass


class JobRequestBuilder:
    def __init__(self, submitter: Submitter) -> None:
        self._submitter = submitter
        self.state = BuilderState.EMPTY
        self.errors: dict[str, str] = {}
        self.submit_error: Optional[str] = None
        self.result: Any = None
        self._clear_draft()

    def _clear_draft(self) -> None:
        self.name = ""
        self.type = "sync"
        self.description: Optional[str] = None
        self.groups: list[JobGroup] = []
        self.agents: list[JobAgent] = []
        self.triggers: Optional[JobTriggers] = None
        self.script: Optional[JobScript] = None
        self.scheduler: Optional[JobScheduler] = None
        self.settings: Optional[JobSettings] = None
        self.notifications: list[JobNotification] = []
        self.selected_group_id: Optional[int] = None
        self.selected_agent_id: Optional[int] = None

    def _touch(self, field_name: Optional[str] = None) -> None:
        if self.state is BuilderState.SUBMITTING:
            raise JobBuilderError("Draft cannot change while it is being submitted.")
        self.state = BuilderState.EDITING
        self.submit_error = None
        if field_name:
            self.errors.pop(field_name, None)

    # -------------------------
    # Editing
    # -------------------------

    def set_name(self, name: str) -> None:
        self._touch("name")
        self.name = name

    def set_type(self, job_type: str) -> None:
        self._touch("type")
        self.type = job_type

    def set_description(self, description: Optional[str]) -> None:
        self._touch("description")
        self.description = description or None

    def set_scheduler(self, scheduler: Optional[JobScheduler]) -> None:
        self._touch("scheduler")
        self.scheduler = scheduler

    def set_triggers(self, triggers: Optional[JobTriggers]) -> None:
        self._touch("triggers")
        self.triggers = triggers

    def set_script(self, script: Optional[JobScript]) -> None:
        self._touch("script")
        self.script = script

    def set_settings(self, settings: Optional[JobSettings]) -> None:
        self._touch("settings")
        self.settings = settings

    def add_notification(self, notification: JobNotification) -> None:
        self._touch("notifications")
        self.notifications.append(notification)

    def select_group(self, group_id: Optional[int]) -> None:
        self._touch()
        self.selected_group_id = group_id

    def select_agent(self, agent_id: Optional[int]) -> None:
        self._touch()
        self.selected_agent_id = agent_id

    @property
    def can_add_group(self) -> bool:
        return self.selected_group_id is not None

    @property
    def can_add_agent(self) -> bool:
        return self.selected_agent_id is not None

    def add_group(
        self,
        permission: str = "rw",
        path: Optional[JobPath] = None,
        role: Optional[str] = None,
    ) -> JobGroup:
        if not self.can_add_group:
            raise JobBuilderError("Select a group before adding it.")
        if any(g.id == self.selected_group_id for g in self.groups):
            raise JobBuilderError(f"Group {self.selected_group_id} is already part of this job.")
        self._touch("groups")
        group = JobGroup(id=self.selected_group_id, permission=permission, path=path or JobPath(), role=role)
        self.groups.append(group)
        self.selected_group_id = None
        return group

    def add_agent(
        self,
        permission: str = "rw",
        path: Optional[JobPath] = None,
        role: Optional[str] = None,
    ) -> JobAgent:
        if not self.can_add_agent:
            raise JobBuilderError("Select an agent before adding it.")
        if any(a.id == self.selected_agent_id for a in self.agents):
            raise JobBuilderError(f"Agent {self.selected_agent_id} is already part of this job.")
        self._touch("agents")
        agent = JobAgent(id=self.selected_agent_id, permission=permission, path=path or JobPath(), role=role)
        self.agents.append(agent)
        self.selected_agent_id = None
        return agent

    def update_group(self, group_id: int, **changes: Any) -> JobGroup:
        for index, group in enumerate(self.groups):
            if group.id == group_id:
                self._touch("groups")
                self.groups[index] = group.model_copy(update=changes)
                return self.groups[index]
        raise JobBuilderError(f"Group {group_id} is not part of this job.")

    def update_agent(self, agent_id: int, **changes: Any) -> JobAgent:
        for index, agent in enumerate(self.agents):
            if agent.id == agent_id:
                self._touch("agents")
                self.agents[index] = agent.model_copy(update=changes)
                return self.agents[index]
        raise JobBuilderError(f"Agent {agent_id} is not part of this job.")

    def remove_group(self, group_id: int) -> None:
        self._touch("groups")
        self.groups = [g for g in self.groups if g.id != group_id]

    def remove_agent(self, agent_id: int) -> None:
        self._touch("agents")
        self.agents = [a for a in self.agents if a.id != agent_id]

    # -------------------------
    # Validation / submission
    # -------------------------

    def _payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "groups": self.groups,
            "agents": self.agents,
            "triggers": self.triggers,
            "script": self.script,
            "scheduler": self.scheduler,
            "settings": self.settings,
            "notifications": self.notifications or None,
        }

    def validate(self) -> bool:
        errors: dict[str, str] = {}
        if not self.name.strip():
            errors["name"] = "Job name is required"
        if not self.agents:
            errors["agents"] = "Please add at least one agent"

        if not errors:
            try:
                CreateJobRequest.model_validate(self._payload())
            except ValidationError as exc:
                for err in exc.errors():
                    field_name = str(err["loc"][0]) if err["loc"] else "__root__"
                    errors.setdefault(field_name, err["msg"])

        self.errors = errors
        return not errors

    def build(self) -> CreateJobRequest:
        if not self.validate():
            raise JobBuilderError(f"Draft is invalid: {', '.join(sorted(self.errors))}")
        return CreateJobRequest.model_validate(self._payload())

    async def submit(self) -> Any:
        """
        Validate and submit the draft.

        Returns the submitter's result on success and None otherwise; the
        outcome is reflected in ``state``, ``errors`` and ``submit_error``.
        """
        if self.state is BuilderState.SUBMITTING:
            raise JobBuilderError("Draft is already being submitted.")

        self.state = BuilderState.VALIDATING
        if not self.validate():
            self.state = BuilderState.EDITING
            return None

        request = CreateJobRequest.model_validate(self._payload())
        self.state = BuilderState.SUBMITTING
        self.submit_error = None
        try:
            result = await self._submitter(request)
        except (DashboardRequestError, httpx.HTTPError) as exc:
            log.warning("job_submit_failed", name=request.name, error=str(exc))
            self.submit_error = str(exc) or "Failed to create job"
            self.state = BuilderState.ERROR
            return None
        except Exception as exc:
            log.exception("job_submit_error", name=request.name)
            self.submit_error = str(exc) or "Failed to create job"
            self.state = BuilderState.ERROR
            return None

        self._clear_draft()
        self.errors = {}
        self.result = result
        self.state = BuilderState.SUCCESS
        return result

    def reset(self) -> None:
        self._clear_draft()
        self.errors = {}
        self.submit_error = None
        self.result = None
        self.state = BuilderState.EMPTY
