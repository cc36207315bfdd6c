"""Fold batch results back into the canonical selection model"""

from gitlab_branch_keeper.logging_config import get_logger
from gitlab_branch_keeper.models.operation import OperationMode, OperationResult
from gitlab_branch_keeper.services.selection_model import SelectionModel

logger = get_logger(__name__)


def reconcile(model: SelectionModel, result: OperationResult) -> int:
    """Apply a batch result to model without re-fetching.

    Deleted branches are removed and archived branches are renamed in place,
    both matched by (name, sha). Failed branches are left as they are.

    Returns:
        Number of records that were removed or renamed
    """
    mutated = 0
    for outcome in result.succeeded:
        if result.mode is OperationMode.ARCHIVE:
            applied = model.rename(outcome.identity, outcome.new_name)
        else:
            applied = model.remove(outcome.identity)

        if applied:
            mutated += 1
        else:
            logger.warning(f"Branch {outcome.name} ({outcome.sha[:8]}) is no longer in the model")

    logger.debug(f"Reconciled {mutated} of {len(result.succeeded)} succeeded branches")
    return mutated
