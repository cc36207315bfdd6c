"""Tests for folding batch results back into the canonical model"""
from gitlab_branch_keeper.exceptions import TransportError
from gitlab_branch_keeper.models.branch import MergeState
from gitlab_branch_keeper.models.operation import (
    BranchFailure,
    BranchOutcome,
    FailureReason,
    OperationMode,
    OperationResult,
)
from gitlab_branch_keeper.services.batch_executor import BatchOperationExecutor
from gitlab_branch_keeper.services.reconciliation import reconcile
from gitlab_branch_keeper.services.selection_model import SelectionModel


class TestReconcile:
    """Minimal mutations instead of a re-fetch."""

    def test_delete_removes_succeeded(self, sample_records):
        model = SelectionModel(sample_records)
        login = model.find("feature/login")
        crash = model.find("bugfix/crash")
        result = OperationResult(
            confirmed_branches=[login, crash],
            mode=OperationMode.DELETE,
            succeeded=[BranchOutcome(login.name, login.last_commit_sha)],
            failed=[BranchFailure(crash.name, crash.last_commit_sha, FailureReason.TRANSPORT)],
        )

        assert reconcile(model, result) == 1
        assert model.find("feature/login") is None
        assert model.find("bugfix/crash") is crash

    def test_archive_renames_in_place(self, sample_records):
        model = SelectionModel(sample_records, target_branch="main")
        login = model.find("feature/login")
        login.is_selected = True
        login.merge_state = MergeState.MERGED
        result = OperationResult(
            confirmed_branches=[login],
            mode=OperationMode.ARCHIVE,
            succeeded=[BranchOutcome(login.name, login.last_commit_sha, "archive/feature/login")],
        )

        assert reconcile(model, result) == 1

        archived = model.find("archive/feature/login")
        assert archived is login
        assert archived.is_selected
        assert archived.merge_state is MergeState.MERGED
        assert model.target_branch == "main"
        assert len(model) == 5

    def test_identity_mismatch_is_skipped(self, sample_records):
        model = SelectionModel(sample_records)
        result = OperationResult(
            confirmed_branches=[],
            mode=OperationMode.DELETE,
            succeeded=[BranchOutcome("feature/login", "0" * 40)],
        )

        assert reconcile(model, result) == 0
        assert model.find("feature/login") is not None

    def test_partial_failure_leaves_original(self, make_record, mock_gateway, mock_config):
        """Archive of x creates the copy but cannot delete x: x stays as it was."""
        x = make_record("x", is_selected=True)
        model = SelectionModel([x, make_record("y")])
        snapshot = model.snapshot_copy()
        mock_gateway.get_branch.return_value = {"name": "x", "commit": {"id": x.last_commit_sha}}
        mock_gateway.delete_branch_ref.side_effect = TransportError("delete_branch", status=500)
        executor = BatchOperationExecutor(mock_gateway, 7, mock_config)

        result = executor.run(snapshot.selected(), OperationMode.ARCHIVE)
        reconcile(model, result)

        assert [f.reason for f in result.failed] == [FailureReason.PARTIAL_FAILURE]
        assert model.find("x") is x
        assert x.is_selected
        assert model.find("archive/x") is None
