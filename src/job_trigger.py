"""
Agent Job Trigger
=================

Hands "generate and send invoices" work to the agent runner. A job is a
branch named ``job/<id>`` holding ``logs/<id>/job.md`` with the task text;
the runner picks up new job branches on push.
"""

import base64
import logging
import os
import uuid
from dataclasses import dataclass
from typing import Any, Dict

import requests

from config import DEFAULT_GH_BASE_BRANCH
from errors import ConfigurationError, JobTriggerError

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"


@dataclass(frozen=True)
class JobHandle:
    job_id: str
    branch: str


class GitHubJobTrigger:
    """Creates agent jobs as branches in a GitHub repository."""

    def __init__(self, token: str = None, owner: str = None, repo: str = None,
                 base_branch: str = None, session: requests.Session = None):
        self.token = token or os.getenv('GH_TOKEN')
        self.owner = owner or os.getenv('GH_OWNER')
        self.repo = repo or os.getenv('GH_REPO')
        self.base_branch = base_branch or os.getenv('GH_BASE_BRANCH') or DEFAULT_GH_BASE_BRANCH

        if not all([self.token, self.owner, self.repo]):
            raise ConfigurationError("Missing GitHub settings. Need GH_TOKEN, GH_OWNER, GH_REPO")

        self.session = session or requests.Session()

    @property
    def repo_url(self) -> str:
        return f"{GITHUB_API_BASE}/repos/{self.owner}/{self.repo}"

    def _call(self, method: str, path: str, payload: Dict[str, Any] = None) -> Dict[str, Any]:
        response = self.session.request(
            method,
            f"{self.repo_url}{path}",
            headers={
                'Authorization': f'Bearer {self.token}',
                'Accept': 'application/vnd.github+json',
            },
            json=payload,
            timeout=30,
        )

        if not response.ok:
            raise JobTriggerError(
                f"GitHub API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                response_text=response.text,
            )
        return response.json()

    def create_job(self, description: str) -> JobHandle:
        """
        Create a new job branch carrying the task description.

        Args:
            description (str): Instructions for the agent

        Returns:
            JobHandle: The job id and its branch name
        """
        job_id = str(uuid.uuid4())
        branch = f"job/{job_id}"

        base = self._call('GET', f"/git/ref/heads/{self.base_branch}")
        self._call('POST', '/git/refs', {
            'ref': f"refs/heads/{branch}",
            'sha': base['object']['sha'],
        })

        content = base64.b64encode(description.encode('utf-8')).decode('ascii')
        self._call('PUT', f"/contents/logs/{job_id}/job.md", {
            'message': f"job: {job_id}",
            'content': content,
            'branch': branch,
        })

        logger.debug(f"Created job branch {branch}")
        return JobHandle(job_id=job_id, branch=branch)
