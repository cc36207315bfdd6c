"""Tests for the BranchKeeper session facade"""
import threading
from unittest.mock import patch

import pytest

from conftest import branch_entry
from gitlab_branch_keeper.core import BranchKeeper
from gitlab_branch_keeper.exceptions import (
    BatchInProgressError,
    ConfigurationError,
    GitLabBranchKeeperError,
)
from gitlab_branch_keeper.models.branch import MergeState
from gitlab_branch_keeper.models.operation import OperationMode


@pytest.fixture
def project_gateway(mock_gateway):
    entries = [
        branch_entry("main", sha="1" * 40, protected=True, default=True),
        branch_entry("feature/b", sha="2" * 40),
        branch_entry("Feature/a", sha="3" * 40),
        branch_entry("old", sha="4" * 40, committed_date="2022-01-01T00:00:00Z"),
    ]
    current = {e["name"]: e["commit"]["id"] for e in entries}
    mock_gateway.list_branches.return_value = entries
    mock_gateway.get_branch.side_effect = lambda pid, name: {"name": name, "commit": {"id": current[name]}}
    mock_gateway.is_merged_into.side_effect = lambda pid, name, target: name == "old"
    return mock_gateway


@pytest.fixture
def keeper(mock_config, project_gateway):
    mock_config['target_branch'] = "main"
    keeper = BranchKeeper(mock_config, gateway=project_gateway)
    yield keeper
    keeper.close()


class TestInit:
    """Configuration is checked up front."""

    @patch.dict('os.environ', {}, clear=True)
    def test_missing_token(self, mock_config, mock_gateway):
        mock_config['api_token'] = None

        with pytest.raises(ConfigurationError):
            BranchKeeper(mock_config, gateway=mock_gateway)

    def test_missing_url(self, mock_config, mock_gateway):
        mock_config['gitlab_url'] = None

        with pytest.raises(ConfigurationError):
            BranchKeeper(mock_config, gateway=mock_gateway)

    def test_model_requires_project(self, keeper):
        with pytest.raises(GitLabBranchKeeperError):
            keeper.model


class TestLoadProject:
    """Loading and classifying a project."""

    def test_load_sorts_and_classifies(self, keeper, project_gateway):
        model = keeper.load_project(7)

        assert model.names() == ["Feature/a", "feature/b", "main", "old"]
        assert model.target_branch == "main"
        assert model.find("old").merge_state is MergeState.MERGED
        assert model.find("feature/b").merge_state is MergeState.NOT_MERGED
        project_gateway.list_branches.assert_called_once_with(7)

    def test_unknown_target_is_dropped(self, mock_config, project_gateway):
        mock_config['target_branch'] = "develop"
        keeper = BranchKeeper(mock_config, gateway=project_gateway)

        model = keeper.load_project(7)

        assert model.target_branch is None
        project_gateway.is_merged_into.assert_not_called()
        keeper.close()

    def test_refresh_keeps_selection(self, keeper, project_gateway):
        model = keeper.load_project(7)
        model.toggle_selected(model.find("old"))

        keeper.refresh()

        assert [r.name for r in keeper.model.selected()] == ["old"]
        assert project_gateway.list_branches.call_count == 2

    def test_set_target_refused_while_busy(self, keeper):
        keeper.load_project(7)
        keeper.model.busy = True

        with pytest.raises(BatchInProgressError):
            keeper.set_target_branch(None)

    def test_list_projects(self, keeper, project_gateway):
        project_gateway.list_projects.return_value = ["p"]

        assert keeper.list_projects() == ["p"]


class TestBatches:
    """Submitting batches through the facade."""

    def test_submit_batch_reconciles_then_completes(self, keeper):
        model = keeper.load_project(7)
        model.select_all()
        snapshot = keeper.create_snapshot()
        completed = []

        def on_complete(result):
            # The canonical model is already reconciled and free
            completed.append((result, model.names(), keeper.busy))

        future = keeper.submit_batch(snapshot.selected(), OperationMode.DELETE, on_complete=on_complete)
        result = future.result(timeout=5)

        assert len(result.succeeded) == 3
        assert completed[0][1] == ["main"]
        assert completed[0][2] is False
        assert not keeper.busy

    def test_submit_while_busy(self, keeper):
        keeper.load_project(7)
        keeper.model.busy = True

        with pytest.raises(BatchInProgressError):
            keeper.submit_batch([], OperationMode.DELETE)

    def test_run_batch_archive(self, keeper):
        model = keeper.load_project(7)
        model.toggle_selected(model.find("old"))
        snapshot = keeper.create_snapshot()

        result = keeper.run_batch(snapshot.selected(), OperationMode.ARCHIVE)

        assert result.succeeded[0].new_name == "archive/old"
        assert "archive/old" in model.names()
        assert model.find("archive/old").is_selected

    def test_snapshot_changes_do_not_leak(self, keeper):
        model = keeper.load_project(7)
        model.select_all()
        snapshot = keeper.create_snapshot()
        snapshot.toggle_selected(snapshot.find("old"))

        result = keeper.run_batch(snapshot.selected(), OperationMode.DELETE)

        assert len(result.confirmed_branches) == 2
        assert model.find("old").is_selected

    def test_cancel_mid_batch(self, keeper):
        model = keeper.load_project(7)
        model.select_all()

        def on_progress(done, total, entry):
            if done == 1:
                keeper.cancel()

        result = keeper.run_batch(keeper.create_snapshot().selected(), OperationMode.DELETE, on_progress)

        assert result.processed_count == 1
        assert result.cancelled
        assert len(model) == 3

    def test_pause_and_resume(self, keeper):
        model = keeper.load_project(7)
        model.select_all()
        paused_at = []

        def on_progress(done, total, entry):
            if done == 1:
                keeper.pause()
                paused_at.append(keeper.paused)
                threading.Timer(0.2, keeper.resume).start()

        result = keeper.run_batch(keeper.create_snapshot().selected(), OperationMode.DELETE, on_progress)

        assert paused_at == [True]
        assert len(result.succeeded) == 3
        assert not keeper.paused

    def test_pause_between_batches_does_not_carry_over(self, keeper, project_gateway):
        model = keeper.load_project(7)
        model.select_all()
        keeper.pause()

        future = keeper.submit_batch(keeper.create_snapshot().selected(), OperationMode.DELETE)
        result = future.result(timeout=5)

        assert len(result.succeeded) == 3
        assert not keeper.paused

    def test_failing_progress_callback_still_reconciles(self, keeper, project_gateway):
        model = keeper.load_project(7)
        model.toggle_selected(model.find("old"))
        model.toggle_selected(model.find("feature/b"))

        def on_progress(done, total, entry):
            raise RuntimeError("display went away")

        result = keeper.run_batch(keeper.create_snapshot().selected(), OperationMode.DELETE, on_progress)

        assert project_gateway.delete_branch_ref.call_count == 2
        assert len(result.succeeded) == 2
        assert model.names() == ["Feature/a", "main"]
        assert not keeper.busy

    def test_close_closes_gateway(self, mock_config, project_gateway):
        keeper = BranchKeeper(mock_config, gateway=project_gateway)
        keeper.close()

        project_gateway.close.assert_called_once()
