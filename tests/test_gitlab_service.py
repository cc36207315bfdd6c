"""Tests for GitLabService"""
import pytest
import requests

from conftest import branch_entry, make_response
from gitlab_branch_keeper.exceptions import TransportError
from gitlab_branch_keeper.models.project import Project
from gitlab_branch_keeper.services.gitlab_service import GitLabService, encode_path_segment

API = "https://gitlab.example.com/api/v4"


class TestGitLabServiceInit:
    """Test GitLabService initialization."""

    def test_sets_bearer_token(self, gitlab_service):
        assert gitlab_service.session.headers["Authorization"] == "Bearer test_token_for_testing"

    def test_api_url(self, mock_config, fake_session):
        mock_config['gitlab_url'] = "https://gitlab.example.com/"
        service = GitLabService(mock_config, session=fake_session)

        assert service.api_url == API

    def test_verify_ssl_disabled(self, mock_config, fake_session):
        mock_config['verify_ssl'] = False
        service = GitLabService(mock_config, session=fake_session)

        assert service.session.verify is False


class TestPathEncoding:
    """Branch names and project paths are encoded exactly once."""

    def test_slash_and_comma(self):
        assert encode_path_segment("feature/a,b") == "feature%2Fa%2Cb"

    def test_percent_is_encoded_once(self):
        assert encode_path_segment("100%") == "100%25"

    def test_numeric_project_id(self):
        assert encode_path_segment(42) == "42"

    def test_get_branch_url(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(json_data=branch_entry("feature/a,b"))

        gitlab_service.get_branch("group/project", "feature/a,b")

        method, url = fake_session.request.call_args[0]
        assert method == "GET"
        assert url == f"{API}/projects/group%2Fproject/repository/branches/feature%2Fa%2Cb"


class TestListBranches:
    """Test paginated branch listing."""

    def test_single_short_page(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(
            json_data=[branch_entry("a"), branch_entry("b")]
        )

        branches = gitlab_service.list_branches(7)

        assert [b["name"] for b in branches] == ["a", "b"]
        assert fake_session.request.call_count == 1
        kwargs = fake_session.request.call_args[1]
        assert kwargs["params"] == {"per_page": 100, "page": 1}
        assert kwargs["timeout"] == 10.0

    def test_stops_on_short_page(self, mock_config, fake_session):
        mock_config['page_size'] = 2
        service = GitLabService(mock_config, session=fake_session)
        fake_session.request.side_effect = [
            make_response(json_data=[branch_entry("a"), branch_entry("b")]),
            make_response(json_data=[branch_entry("c"), branch_entry("d")]),
            make_response(json_data=[branch_entry("e")]),
        ]

        branches = service.list_branches(7)

        assert len(branches) == 5
        pages = [c[1]["params"]["page"] for c in fake_session.request.call_args_list]
        assert pages == [1, 2, 3]

    def test_stops_on_empty_page(self, mock_config, fake_session):
        mock_config['page_size'] = 2
        service = GitLabService(mock_config, session=fake_session)
        fake_session.request.side_effect = [
            make_response(json_data=[branch_entry("a"), branch_entry("b")]),
            make_response(json_data=[]),
        ]

        assert len(service.list_branches(7)) == 2
        assert fake_session.request.call_count == 2

    def test_http_error_raises_transport_error(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(status=500, text="boom")

        with pytest.raises(TransportError) as exc_info:
            gitlab_service.list_branches(7)

        assert exc_info.value.status == 500
        assert exc_info.value.body == "boom"
        assert exc_info.value.operation == "list_branches"

    def test_network_error_raises_transport_error(self, gitlab_service, fake_session):
        fake_session.request.side_effect = requests.ConnectionError("unreachable")

        with pytest.raises(TransportError) as exc_info:
            gitlab_service.list_branches(7)

        assert exc_info.value.status is None
        assert "unreachable" in str(exc_info.value)

    def test_non_list_payload(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(json_data={"message": "nope"})

        with pytest.raises(TransportError):
            gitlab_service.list_branches(7)

    def test_invalid_json(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(json_data=ValueError("bad json"))

        with pytest.raises(TransportError):
            gitlab_service.list_branches(7)


class TestIsMergedInto:
    """Test merge request lookups."""

    def test_same_branch_makes_no_request(self, gitlab_service, fake_session):
        assert gitlab_service.is_merged_into(7, "main", "main") is False
        fake_session.request.assert_not_called()

    def test_merged_when_page_not_empty(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(json_data=[{"iid": 3}])

        assert gitlab_service.is_merged_into(7, "feature/x", "main") is True

        method, url = fake_session.request.call_args[0]
        params = fake_session.request.call_args[1]["params"]
        assert url == f"{API}/projects/7/merge_requests"
        assert params["state"] == "merged"
        assert params["source_branch"] == "feature/x"
        assert params["target_branch"] == "main"

    def test_not_merged_when_no_results(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(json_data=[])

        assert gitlab_service.is_merged_into(7, "feature/x", "main") is False

    def test_error_propagates(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(status=401, text="unauthorized")

        with pytest.raises(TransportError):
            gitlab_service.is_merged_into(7, "feature/x", "main")


class TestBranchRefs:
    """Test branch creation and deletion."""

    def test_create_uses_explicit_sha(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(status=201, json_data=branch_entry("archive/x"))

        gitlab_service.create_branch_ref(7, "archive/x", "c" * 40)

        method, url = fake_session.request.call_args[0]
        assert method == "POST"
        assert url == f"{API}/projects/7/repository/branches"
        assert fake_session.request.call_args[1]["params"] == {"branch": "archive/x", "ref": "c" * 40}

    def test_create_failure(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(status=400, text="Branch already exists")

        with pytest.raises(TransportError) as exc_info:
            gitlab_service.create_branch_ref(7, "archive/x", "c" * 40)

        assert exc_info.value.status == 400

    def test_delete_encodes_name(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(status=204)

        gitlab_service.delete_branch_ref(7, "feature/x")

        method, url = fake_session.request.call_args[0]
        assert method == "DELETE"
        assert url == f"{API}/projects/7/repository/branches/feature%2Fx"

    def test_delete_not_found(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(status=404, text="404 Branch Not Found")

        with pytest.raises(TransportError) as exc_info:
            gitlab_service.delete_branch_ref(7, "gone")

        assert exc_info.value.is_not_found


class TestProjects:
    """Test project listing and connection checks."""

    def test_list_projects(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(json_data=[
            {"id": 1, "name": "Api", "path": "api", "namespace": {"full_path": "team/backend"}},
            {"id": 2, "name": "Web", "path": "web", "path_with_namespace": "team/web"},
        ])

        projects = gitlab_service.list_projects()

        assert projects == [
            Project(1, "Api", "api", "team/backend"),
            Project(2, "Web", "web", "team"),
        ]
        assert projects[0].path_name == "team/backend/api"
        assert fake_session.request.call_args[1]["params"]["membership"] == "true"

    def test_test_connection(self, gitlab_service, fake_session):
        fake_session.request.return_value = make_response(json_data={"username": "dev"})

        assert gitlab_service.test_connection() == {"username": "dev"}
        assert fake_session.request.call_args[0] == ("GET", f"{API}/user")
