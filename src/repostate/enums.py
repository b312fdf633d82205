"""Enumeration types for repostate."""

from enum import StrEnum


class RefreshStrategy(StrEnum):
    """How init_repo() brings the local working copy up to date."""

    CLONE = "clone"
    INCREMENTAL_FETCH = "incremental_fetch"


class LookupStatus(StrEnum):
    """Outcome of a lookup against a remote-tracking ref."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


class RepositoryOperation(StrEnum):
    """Repository operations, used to label fatal failures."""

    CLONE = "clone"
    CONFIGURE = "configure"
    RESOLVE_BASE_BRANCH = "resolve_base_branch"
    CREATE_BRANCH = "create_branch"
    COMMIT_FILES = "commit_files"
    DELETE_BRANCH = "delete_branch"
    MERGE_BRANCH = "merge_branch"
    LIST_BRANCHES = "list_branches"
    CHECK_STALE = "check_stale"
    LIST_FILES = "list_files"
    GET_BRANCH_COMMIT = "get_branch_commit"
    GET_COMMIT_MESSAGES = "get_commit_messages"
