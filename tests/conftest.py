"""Pytest fixtures for gitlab-branch-keeper tests"""
from unittest.mock import Mock

import pytest
import requests

from gitlab_branch_keeper.models.branch import BranchRecord
from gitlab_branch_keeper.services.gitlab_service import GitLabService


def make_response(status=200, json_data=None, text=""):
    """Build a fake requests.Response."""
    response = Mock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


def branch_entry(name, sha="a" * 40, committed_date="2024-01-01T10:00:00.000+00:00", **flags):
    """A branch entry as returned by the GitLab branches API."""
    entry = {
        "name": name,
        "merged": False,
        "protected": False,
        "default": False,
        "developers_can_push": False,
        "developers_can_merge": False,
        "can_push": True,
        "commit": {"id": sha, "committed_date": committed_date},
    }
    entry.update(flags)
    return entry


@pytest.fixture
def mock_config():
    """Create a mock configuration dictionary."""
    return {
        'gitlab_url': 'https://gitlab.example.com',
        'api_token': 'test_token_for_testing',
        'verify_ssl': True,
        'timeout': 10.0,
        'page_size': 100,
        'archive_prefix': 'archive/',
        'target_branch': None,
        'ignore_patterns': [],
        'verbose': False,
        'debug': False,
        'sequential': True,  # Deterministic call order in tests
        'workers': None,
    }


@pytest.fixture
def make_record():
    """Factory for BranchRecord objects."""
    counter = {"n": 0}

    def _make(name, date="2024-01-01", sha=None, **kwargs):
        counter["n"] += 1
        if sha is None:
            sha = f"{counter['n']:040x}"
        timestamp = f"{date}T12:00:00.000+00:00" if date else ""
        return BranchRecord(
            name=name,
            last_commit_sha=sha,
            last_commit_timestamp=timestamp,
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_records(make_record):
    """A small project: default branch, protected release branch and features."""
    return [
        make_record("main", "2024-06-01", is_protected=True, is_default=True),
        make_record("release/1.0", "2024-03-15", is_protected=True),
        make_record("feature/login", "2024-01-10"),
        make_record("Feature/Search", "2024-02-20"),
        make_record("bugfix/crash", "2023-12-31"),
    ]


@pytest.fixture
def mock_gateway():
    """A GitLabService double with every call succeeding."""
    gateway = Mock(spec=GitLabService)
    gateway.list_branches.return_value = []
    gateway.is_merged_into.return_value = False
    gateway.create_branch_ref.return_value = {}
    gateway.delete_branch_ref.return_value = None
    return gateway


@pytest.fixture
def fake_session():
    """A real requests.Session whose request method is mocked."""
    session = requests.Session()
    session.request = Mock(return_value=make_response(json_data=[]))
    return session


@pytest.fixture
def gitlab_service(mock_config, fake_session):
    """GitLabService wired to the fake session."""
    return GitLabService(mock_config, session=fake_session)
