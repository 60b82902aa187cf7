"""OmniPR: one pull-request workflow for GitHub, GitLab and Bitbucket.

The package reconciles a source branch against a target branch, commits a
changeset of whole-file creates, updates and deletes in a single commit, and
creates or updates the pull request for the pair.  See ``omnipr.reconcile``
for the entry operations.
"""

from .errors import (
    BranchAlreadyExists,
    BranchNotFound,
    BranchOperationFailed,
    CommitFailed,
    OmniPRError,
    PullRequestReconciliationFailed,
    ReadFailed,
    SetupFailed,
)
from .models import (
    Action,
    ActionKind,
    Branch,
    Commit,
    Content,
    Delete,
    FileInfo,
    PullRequest,
    ReconcileOptions,
    Resolve,
)
from .providers import BitbucketProvider, GithubProvider, GitlabProvider, get_provider
from .reconcile import open_pull_request, pull_files, reconcile

__all__ = [
    "__version__",
    "reconcile",
    "pull_files",
    "open_pull_request",
    "get_provider",
    "GithubProvider",
    "GitlabProvider",
    "BitbucketProvider",
    "ReconcileOptions",
    "Content",
    "Resolve",
    "Delete",
    "FileInfo",
    "Action",
    "ActionKind",
    "Branch",
    "Commit",
    "PullRequest",
    "OmniPRError",
    "SetupFailed",
    "BranchNotFound",
    "BranchAlreadyExists",
    "BranchOperationFailed",
    "ReadFailed",
    "CommitFailed",
    "PullRequestReconciliationFailed",
]
__version__ = "0.1.0"
