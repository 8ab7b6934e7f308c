"""User and job lookups owned by other parts of the ERP.

Time entries only store user_id and job_id. Review and export screens need
display names, so they resolve ids through these protocols. A missing record
is not an error: entries keep rendering with placeholder labels.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from uuid import UUID


@dataclass(frozen=True)
class UserInfo:
    """Display fields for an employee."""

    name: str
    email: str | None = None


@dataclass(frozen=True)
class JobInfo:
    """Display fields for a job."""

    job_number: str
    title: str | None = None


UNKNOWN_USER = UserInfo(name="Unknown employee")


@runtime_checkable
class UserDirectory(Protocol):
    """Read-only lookup of employees by id."""

    def get(self, user_id: UUID) -> UserInfo | None:
        ...


@runtime_checkable
class JobDirectory(Protocol):
    """Read-only lookup of jobs by id."""

    def get(self, job_id: UUID) -> JobInfo | None:
        ...


class InMemoryUserDirectory:
    """Dict-backed UserDirectory for tests and single-process deployments."""

    def __init__(self, users: Mapping[UUID, UserInfo] | None = None):
        self._users: dict[UUID, UserInfo] = dict(users or {})

    def add(self, user_id: UUID, name: str, email: str | None = None) -> UserInfo:
        info = UserInfo(name=name, email=email)
        self._users[user_id] = info
        return info

    def get(self, user_id: UUID) -> UserInfo | None:
        return self._users.get(user_id)


class InMemoryJobDirectory:
    """Dict-backed JobDirectory."""

    def __init__(self, jobs: Mapping[UUID, JobInfo] | None = None):
        self._jobs: dict[UUID, JobInfo] = dict(jobs or {})

    def add(self, job_id: UUID, job_number: str, title: str | None = None) -> JobInfo:
        info = JobInfo(job_number=job_number, title=title)
        self._jobs[job_id] = info
        return info

    def get(self, job_id: UUID) -> JobInfo | None:
        return self._jobs.get(job_id)


def resolve_user(directory: UserDirectory, user_id: UUID) -> UserInfo:
    return directory.get(user_id) or UNKNOWN_USER


def resolve_job(directory: JobDirectory, job_id: UUID | None) -> JobInfo | None:
    if job_id is None:
        return None
    return directory.get(job_id)
