"""Classification of failed Git invocations

A completed invocation is classified by its exit code and the text it wrote
to stderr. :data:`GIT_ERROR_RULES` is an ordered table of
:class:`ErrorRule` items; the first rule whose exit code is equal to the
actual exit code, and whose pattern is found anywhere in stderr, determines
the :class:`GitErrorKind`. A non-zero exit without a matching rule is
classified as :attr:`GitErrorKind.unclassified`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import (
    TYPE_CHECKING,
    NamedTuple,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from gitexec_core.runners.options import ExecResult

from datasalad.runners import CommandError


# TODO: Could be `StrEnum`, came with PY3.11
class GitErrorKind(Enum):
    """Enumeration of named kinds of Git failures"""

    # failures detected before Git could run
    git_not_found = 'git-not-found'
    repository_does_not_exist = 'repository-does-not-exist'
    # no rule matched a non-zero exit
    unclassified = 'unclassified'
    # remote access
    ssh_key_audit_unverified = 'ssh-key-audit-unverified'
    ssh_authentication_failed = 'ssh-authentication-failed'
    ssh_permission_denied = 'ssh-permission-denied'
    https_authentication_failed = 'https-authentication-failed'
    remote_disconnection = 'remote-disconnection'
    host_down = 'host-down'
    push_not_fast_forward = 'push-not-fast-forward'
    branch_deletion_failed = 'branch-deletion-failed'
    default_branch_deletion_failed = 'default-branch-deletion-failed'
    no_matching_remote_branch = 'no-matching-remote-branch'
    no_existing_remote_branch = 'no-existing-remote-branch'
    # history manipulation
    rebase_conflicts = 'rebase-conflicts'
    merge_conflicts = 'merge-conflicts'
    revert_conflicts = 'revert-conflicts'
    empty_rebase_patch = 'empty-rebase-patch'
    nothing_to_commit = 'nothing-to-commit'
    invalid_merge = 'invalid-merge'
    invalid_rebase = 'invalid-rebase'
    non_fast_forward_merge_into_empty_head = 'non-fast-forward-merge-into-empty-head'
    patch_does_not_apply = 'patch-does-not-apply'
    cannot_merge_unrelated_histories = 'cannot-merge-unrelated-histories'
    no_merge_to_abort = 'no-merge-to-abort'
    unresolved_conflicts = 'unresolved-conflicts'
    conflict_modify_deleted_in_branch = 'conflict-modify-deleted-in-branch'
    local_changes_overwritten = 'local-changes-overwritten'
    gpg_failed_to_sign_data = 'gpg-failed-to-sign-data'
    # submodules
    no_submodule_mapping = 'no-submodule-mapping'
    submodule_repository_does_not_exist = 'submodule-repository-does-not-exist'
    invalid_submodule_sha = 'invalid-submodule-sha'
    # local repository state
    local_permission_denied = 'local-permission-denied'
    branch_already_exists = 'branch-already-exists'
    branch_rename_failed = 'branch-rename-failed'
    bad_revision = 'bad-revision'
    not_a_git_repository = 'not-a-git-repository'
    lfs_attribute_does_not_match = 'lfs-attribute-does-not-match'
    path_does_not_exist = 'path-does-not-exist'
    invalid_object_name = 'invalid-object-name'
    outside_repository = 'outside-repository'
    lock_file_already_exists = 'lock-file-already-exists'
    bad_config_value = 'bad-config-value'
    # GitHub push policies
    push_with_file_size_exceeding_limit = 'push-with-file-size-exceeding-limit'
    hex_branch_name_rejected = 'hex-branch-name-rejected'
    force_push_rejected = 'force-push-rejected'
    invalid_ref_length = 'invalid-ref-length'
    protected_branch_requires_review = 'protected-branch-requires-review'
    protected_branch_force_push = 'protected-branch-force-push'
    protected_branch_delete_rejected = 'protected-branch-delete-rejected'
    protected_branch_required_status = 'protected-branch-required-status'
    push_with_private_email = 'push-with-private-email'


@dataclass(frozen=True)
class ErrorRule:
    """Map an exit code and a stderr pattern to a :class:`GitErrorKind`"""

    exit_code: int
    pattern: re.Pattern
    kind: GitErrorKind

    def matches(self, exit_code: int, stderr: str) -> bool:
        """Whether the rule applies to an invocation outcome

        The pattern is searched for, it need not match all of ``stderr``.
        """
        return exit_code == self.exit_code and self.pattern.search(stderr) is not None


def _rules(*specs: tuple[int, str, GitErrorKind]) -> tuple[ErrorRule, ...]:
    return tuple(ErrorRule(code, re.compile(p), kind) for code, p, kind in specs)


K = GitErrorKind

# order matters, the first matching rule wins
GIT_ERROR_RULES: tuple[ErrorRule, ...] = _rules(
    (
        128,
        r'ERROR: ([\s\S]+?)\n+\[EPOLICYKEYAGE\]\n+'
        r'fatal: Could not read from remote repository.',
        K.ssh_key_audit_unverified,
    ),
    (128, r"fatal: Authentication failed for 'https://", K.https_authentication_failed),
    (128, r'fatal: Authentication failed', K.ssh_authentication_failed),
    # must precede the generic SSH "could not read" rule below
    (128, r'ERROR: Repository not found', K.repository_does_not_exist),
    (128, r'fatal: Could not read from remote repository.', K.ssh_permission_denied),
    (128, r'The requested URL returned error: 403', K.https_authentication_failed),
    (128, r'fatal: [Tt]he remote end hung up unexpectedly', K.remote_disconnection),
    (
        128,
        r"fatal: unable to access '(.+)': Failed to connect to (.+): Host is down",
        K.host_down,
    ),
    (
        128,
        r"Cloning into '(.+)'...\nfatal: unable to access '(.+)': "
        r'Could not resolve host: (.+)',
        K.host_down,
    ),
    (1, r'Failed to merge in the changes.', K.rebase_conflicts),
    (
        1,
        r'(Merge conflict|Automatic merge failed; '
        r'fix conflicts and then commit the result)',
        K.merge_conflicts,
    ),
    (
        1,
        r"fatal: repository '(.+)' does not exist\n"
        r"fatal: clone of '.+' into submodule path '(.+)' failed",
        K.submodule_repository_does_not_exist,
    ),
    (
        128,
        r"fatal: repository (?:'.+' )?(?:does not exist|not found)",
        K.repository_does_not_exist,
    ),
    (
        1,
        r"\((non-fast-forward|fetch first)\)\n"
        r"error: failed to push some refs to '.*'",
        K.push_not_fast_forward,
    ),
    (
        1,
        r"error: unable to delete '(.+)': remote ref does not exist",
        K.branch_deletion_failed,
    ),
    (
        1,
        r'\[remote rejected\] (.+) \(deletion of the current branch prohibited\)',
        K.default_branch_deletion_failed,
    ),
    (
        1,
        r'error: could not revert .*\n'
        r'hint: after resolving the conflicts, mark the corrected paths\n'
        r"hint: with 'git add <paths>' or 'git rm <paths>'\n"
        r"hint: and commit the result with 'git commit'",
        K.revert_conflicts,
    ),
    (
        1,
        r"Applying: .*\nNo changes - did you forget to use 'git add'\?\n"
        r'If there is nothing left to stage, chances are that something else\n.*',
        K.empty_rebase_patch,
    ),
    (
        1,
        r'There are no candidates for (rebasing|merging) among the refs that '
        r'you just fetched.\nGenerally this means that you provided a wildcard '
        r'refspec which had no\nmatches on the remote end.',
        K.no_matching_remote_branch,
    ),
    (
        1,
        r"Your configuration specifies to merge with the ref '(.+)'\n"
        r'from the remote, but no such ref was fetched.',
        K.no_existing_remote_branch,
    ),
    (1, r'nothing to commit', K.nothing_to_commit),
    (
        128,
        r"No submodule mapping found in .gitmodules for path '(.+)'",
        K.no_submodule_mapping,
    ),
    (
        1,
        r"Fetched in submodule path '(.+)', but it did not contain (.+). "
        r'Direct fetching of that commit failed.',
        K.invalid_submodule_sha,
    ),
    (
        128,
        r"fatal: could not create work tree dir '(.+)'.*: Permission denied",
        K.local_permission_denied,
    ),
    (1, r'merge: (.+) - not something we can merge', K.invalid_merge),
    (128, r'invalid upstream (.+)', K.invalid_rebase),
    (
        128,
        r'fatal: Non-fast-forward commit does not make sense into an empty head',
        K.non_fast_forward_merge_into_empty_head,
    ),
    (
        1,
        r'error: (.+): (patch does not apply|already exists in working directory)',
        K.patch_does_not_apply,
    ),
    (128, r"fatal: [Aa] branch named '(.+)' already exists.?", K.branch_already_exists),
    (128, r"fatal: bad revision '(.*)'", K.bad_revision),
    (
        128,
        r'fatal: [Nn]ot a git repository \(or any of the parent directories\): (.*)',
        K.not_a_git_repository,
    ),
    (
        128,
        r'fatal: refusing to merge unrelated histories',
        K.cannot_merge_unrelated_histories,
    ),
    (1, r'The .+ attribute should be .+ but is .+', K.lfs_attribute_does_not_match),
    (128, r'fatal: Branch rename failed', K.branch_rename_failed),
    (128, r"fatal: Path '(.+)' does not exist .+", K.path_does_not_exist),
    (128, r"fatal: Invalid object name '(.+)'.", K.invalid_object_name),
    (128, r"fatal: .+: '(.+)' is outside repository", K.outside_repository),
    (
        128,
        r'Another git process seems to be running in this repository, e.g.',
        K.lock_file_already_exists,
    ),
    (128, r'fatal: There is no merge to abort', K.no_merge_to_abort),
    (
        1,
        r'error: (?:Your local changes to the following|The following untracked '
        r'working tree) files would be overwritten by checkout:',
        K.local_changes_overwritten,
    ),
    (
        1,
        r'You must edit all merge conflicts and then\n'
        r'mark them as resolved using git add',
        K.unresolved_conflicts,
    ),
    (
        128,
        r'fatal: Exiting because of an unresolved conflict',
        K.unresolved_conflicts,
    ),
    (128, r'error: gpg failed to sign the data', K.gpg_failed_to_sign_data),
    (
        1,
        r'CONFLICT \(modify/delete\): (.+) deleted in (.+) and modified in (.+)',
        K.conflict_modify_deleted_in_branch,
    ),
    (
        128,
        r"fatal: bad (?:numeric|boolean) config value '(.*)' for '(.+)'",
        K.bad_config_value,
    ),
    # GitHub-specific push rejections
    (1, r'error: GH001: ', K.push_with_file_size_exceeding_limit),
    (1, r'error: GH002: ', K.hex_branch_name_rejected),
    (
        1,
        r'error: GH003: Sorry, force-pushing to (.+) is not allowed.',
        K.force_push_rejected,
    ),
    (
        1,
        r'error: GH005: Sorry, refs longer than (.+) bytes are not allowed',
        K.invalid_ref_length,
    ),
    (
        1,
        r'error: GH006: Protected branch update failed for (.+)\n'
        r'remote: error: At least one approved review is required',
        K.protected_branch_requires_review,
    ),
    (
        1,
        r'error: GH006: Protected branch update failed for (.+)\n'
        r'remote: error: Cannot force-push to a protected branch',
        K.protected_branch_force_push,
    ),
    (
        1,
        r'error: GH006: Protected branch update failed for (.+)\n'
        r'remote: error: Cannot delete a protected branch',
        K.protected_branch_delete_rejected,
    ),
    (
        1,
        r'error: GH006: Protected branch update failed for (.+).\n'
        r'remote: error: Required status check "(.+)" is expected',
        K.protected_branch_required_status,
    ),
    (
        1,
        r'error: GH007: Your push would publish a private email address.',
        K.push_with_private_email,
    ),
)
"""Process-wide, ordered classification rules"""


_descriptions = {
    K.git_not_found: 'Git could not be found.',
    K.repository_does_not_exist: (
        'The repository does not exist. You may not have access, or it may '
        'have been deleted or renamed.'
    ),
    K.unclassified: 'Git exited with an unrecognized error.',
    K.ssh_key_audit_unverified: 'The SSH key is unverified.',
    K.ssh_authentication_failed: 'Authentication failed.',
    K.ssh_permission_denied: (
        'Authentication failed. Check that your SSH key is added to the '
        'ssh-agent and that you have access to the repository.'
    ),
    K.https_authentication_failed: (
        'Authentication failed. You may not be logged in, or you do not '
        'have permission to access this repository.'
    ),
    K.remote_disconnection: (
        'The remote disconnected. Check your Internet connection and try again.'
    ),
    K.host_down: 'The host is down. Check your Internet connection and try again.',
    K.rebase_conflicts: (
        'There were conflicts while trying to rebase. Resolve the conflicts '
        'before continuing.'
    ),
    K.merge_conflicts: (
        'There were conflicts while trying to merge. Resolve the conflicts '
        'and commit the changes.'
    ),
    K.push_not_fast_forward: (
        'The repository has been updated since you last pulled. Try pulling '
        'before pushing.'
    ),
    K.branch_deletion_failed: (
        'Could not delete the branch. It was probably already deleted.'
    ),
    K.default_branch_deletion_failed: (
        "The branch is the repository's default branch and cannot be deleted."
    ),
    K.revert_conflicts: 'To finish reverting, merge and commit the changes.',
    K.empty_rebase_patch: 'There are no changes left to apply.',
    K.no_matching_remote_branch: (
        'There are no remote branches that match the current branch.'
    ),
    K.no_existing_remote_branch: 'The remote branch does not exist.',
    K.nothing_to_commit: 'There are no changes to commit.',
    K.no_submodule_mapping: (
        'A submodule was removed from .gitmodules, but the folder still '
        'exists in the repository.'
    ),
    K.submodule_repository_does_not_exist: (
        'A submodule points to a location which does not exist.'
    ),
    K.invalid_submodule_sha: 'A submodule points to a commit which does not exist.',
    K.local_permission_denied: 'Permission denied.',
    K.invalid_merge: 'This is not something that can be merged.',
    K.invalid_rebase: 'This is not something that can be rebased.',
    K.non_fast_forward_merge_into_empty_head: (
        'The merge is not a fast-forward, so it cannot be performed on an '
        'empty branch.'
    ),
    K.patch_does_not_apply: (
        'The requested changes conflict with one or more files in the repository.'
    ),
    K.branch_already_exists: 'A branch with that name already exists.',
    K.bad_revision: 'Bad revision.',
    K.not_a_git_repository: 'This is not a Git repository.',
    K.cannot_merge_unrelated_histories: 'Unable to merge unrelated histories.',
    K.lfs_attribute_does_not_match: (
        'A Git LFS attribute in the global Git configuration does not match '
        'the expected value.'
    ),
    K.branch_rename_failed: 'The branch could not be renamed.',
    K.path_does_not_exist: 'The path does not exist on disk.',
    K.invalid_object_name: 'The object was not found in the Git repository.',
    K.outside_repository: 'This path is not a valid path inside the repository.',
    K.lock_file_already_exists: (
        'A lock file already exists in the repository, which blocks this '
        'operation from completing.'
    ),
    K.no_merge_to_abort: 'There is no merge in progress, nothing to abort.',
    K.local_changes_overwritten: (
        'Working directory changes would be overwritten. Commit or stash '
        'the changes first.'
    ),
    K.unresolved_conflicts: 'There are unresolved conflicts in the working directory.',
    K.gpg_failed_to_sign_data: 'GPG failed to sign the data.',
    K.conflict_modify_deleted_in_branch: (
        'A file was modified in one branch and deleted in the other.'
    ),
    K.bad_config_value: 'A Git configuration value is invalid.',
    K.push_with_file_size_exceeding_limit: (
        'The push includes a file which exceeds the file size limit of the remote.'
    ),
    K.hex_branch_name_rejected: (
        'The branch name cannot be a 40-character hexadecimal string.'
    ),
    K.force_push_rejected: 'The force push has been rejected for the current branch.',
    K.invalid_ref_length: 'A ref cannot be longer than 255 characters.',
    K.protected_branch_requires_review: (
        'This branch is protected and changes require an approved review.'
    ),
    K.protected_branch_force_push: (
        'This branch is protected from force-push operations.'
    ),
    K.protected_branch_delete_rejected: (
        'This branch is protected and cannot be deleted from the remote.'
    ),
    K.protected_branch_required_status: (
        'The push was rejected because a required status check has not '
        'been satisfied.'
    ),
    K.push_with_private_email: (
        'The commits contain an email address marked as private on the remote.'
    ),
}


def describe(kind: GitErrorKind) -> str:
    """Return a human-readable description of an error kind"""
    return _descriptions[kind]


def classify(
    exit_code: int,
    stderr: str,
    rules: Sequence[ErrorRule] = GIT_ERROR_RULES,
) -> GitErrorKind | None:
    """Classify the outcome of a Git invocation

    Returns ``None`` for a zero ``exit_code``, regardless of ``stderr``.
    Otherwise, the kind of the first matching rule is returned, or
    ``GitErrorKind.unclassified`` if no rule matches.
    """
    if exit_code == 0:
        return None
    for rule in rules:
        if rule.matches(exit_code, stderr):
            return rule.kind
    return GitErrorKind.unclassified


def parse_error(
    stderr: str,
    rules: Sequence[ErrorRule] = GIT_ERROR_RULES,
) -> GitErrorKind | None:
    """Return the kind of the first rule whose pattern is found in ``stderr``

    Unlike :func:`classify`, exit codes are not considered. This is
    useful for inspecting Git output that was obtained without an exit
    code, e.g. from a log.
    """
    for rule in rules:
        if rule.pattern.search(stderr):
            return rule.kind
    return None


class BadConfigValue(NamedTuple):
    key: str
    value: str


_bad_config_value_regex = re.compile(
    r"fatal: bad (?:numeric|boolean) config value '(?P<value>.*)' "
    r"for '(?P<key>.+)'"
)


def parse_bad_config_value(stderr: str) -> BadConfigValue | None:
    """Extract key and value of a configuration item Git refused

    Returns ``None`` if ``stderr`` does not report a bad config value.
    """
    m = _bad_config_value_regex.search(stderr)
    if m is None:
        return None
    return BadConfigValue(key=m.group('key'), value=m.group('value'))


class GitError(CommandError):
    """A failed Git invocation of a particular :class:`GitErrorKind`

    Besides the standard ``CommandError`` properties (``cmd``,
    ``returncode``, ``stdout``, ``stderr``, ``cwd``), the error kind is
    available as ``kind``, and the complete
    :class:`~gitexec_core.runners.ExecResult` as ``result``.
    """

    def __init__(
        self,
        kind: GitErrorKind,
        result: ExecResult,
        cmd: list[str],
        cwd: Path | str | None = None,
    ):
        super().__init__(
            cmd=cmd,
            msg=describe(kind),
            returncode=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
            cwd=cwd,
        )
        self.kind = kind
        self.result = result


class GitConfigurationError(ValueError):
    """Invalid configuration, detected before any process was started"""


class CommandCancelled(RuntimeError):
    """A Git invocation was aborted via its cancellation signal

    This is not a Git failure, hence not a :class:`GitError`.
    """

    def __init__(self, cmd: list[str], cwd: Path | str | None = None):
        super().__init__(f'Cancelled {cmd!r}')
        self.cmd = cmd
        self.cwd = cwd


def raise_for_result(
    result: ExecResult,
    cmd: list[str],
    cwd: Path | str | None = None,
) -> None:
    """Raise a :class:`GitError` for a result with a non-zero exit code"""
    kind = classify(result.exit_code, result.stderr)
    if kind is None:
        return
    raise GitError(kind, result, cmd=cmd, cwd=cwd)
