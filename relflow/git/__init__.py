"""Git collaborator.

- Repository: single-checkout git operations
- GitReleaseCollaborator: release tag and merge-back for a PromotionPlan
"""

from relflow.git.release import GitReleaseCollaborator
from relflow.git.repository import GitError, Repository

__all__ = [
    "GitError",
    "GitReleaseCollaborator",
    "Repository",
]
