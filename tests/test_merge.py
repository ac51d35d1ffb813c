"""Tests for remote setup and the merge-to-main sequence."""

from unittest.mock import call

import pytest

from gitgenie.config import Config
from gitgenie.exceptions import GitCommandError, MergeAborted
from gitgenie.merge import MERGE_REMEDY, MergeAutomation, MergeOutcome, ensure_remote_origin


def git_error(*args):
    return GitCommandError(["git", *args], 1, "fatal: something went wrong")


@pytest.fixture
def automation(mock_repository, record_console):
    def _make(operator):
        return MergeAutomation(mock_repository, operator, Config(), record_console)
    return _make


class TestEnsureRemoteOrigin:

    def test_existing_remote(self, mock_repository, make_operator, record_console):
        operator = make_operator()
        assert ensure_remote_origin(mock_repository, operator, Config(), record_console)
        assert operator.questions == []

    def test_adds_remote_when_accepted(self, mock_repository, make_operator, record_console):
        mock_repository.has_remote.return_value = False
        operator = make_operator(confirms=[True], answers=["not a url", "https://github.com/u/r.git"])
        assert ensure_remote_origin(mock_repository, operator, Config(), record_console)
        mock_repository.add_remote.assert_called_once_with("origin", "https://github.com/u/r.git")

    def test_declined(self, mock_repository, make_operator, record_console):
        mock_repository.has_remote.return_value = False
        assert not ensure_remote_origin(mock_repository, make_operator(confirms=[False]),
                                        Config(), record_console)
        mock_repository.add_remote.assert_not_called()

    def test_add_failure(self, mock_repository, make_operator, record_console):
        mock_repository.has_remote.return_value = False
        mock_repository.add_remote.side_effect = git_error("remote", "add")
        operator = make_operator(confirms=[True], answers=["git@github.com:u/r.git"])
        assert not ensure_remote_origin(mock_repository, operator, Config(), record_console)
        assert "Failed to add remote origin" in record_console.file.getvalue()

    def test_listing_failure(self, mock_repository, make_operator, record_console):
        mock_repository.has_remote.side_effect = git_error("remote")
        assert not ensure_remote_origin(mock_repository, make_operator(), Config(), record_console)


class TestMergeAutomation:

    def test_full_sequence(self, automation, mock_repository, make_operator):
        outcome = automation(make_operator(confirms=[True])).merge_to_main_and_push("feature/x")

        assert outcome is MergeOutcome.MERGED_PUSHED_CLEANED_UP
        assert mock_repository.mock_calls == [
            call.checkout("main"),
            call.pull("origin", "main"),
            call.merge("feature/x"),
            call.has_remote("origin"),
            call.push("origin", "main"),
            call.delete_local_branch("feature/x"),
            call.delete_remote_branch("origin", "feature/x"),
        ]

    def test_pull_failure_is_tolerated(self, automation, mock_repository, make_operator, record_console):
        mock_repository.pull.side_effect = git_error("pull")
        outcome = automation(make_operator(confirms=[False])).merge_to_main_and_push("feature/x")
        assert outcome is MergeOutcome.MERGED_PUSHED
        mock_repository.merge.assert_called_once_with("feature/x")
        assert "Could not pull latest changes" in record_console.file.getvalue()

    def test_merge_conflict_aborts(self, automation, mock_repository, make_operator):
        mock_repository.merge.side_effect = git_error("merge", "feature/x")
        with pytest.raises(MergeAborted) as excinfo:
            automation(make_operator()).merge_to_main_and_push("feature/x")
        assert excinfo.value.remedy == MERGE_REMEDY
        mock_repository.push.assert_not_called()
        mock_repository.delete_local_branch.assert_not_called()

    def test_checkout_failure_aborts(self, automation, mock_repository, make_operator):
        mock_repository.checkout.side_effect = git_error("checkout", "main")
        with pytest.raises(MergeAborted):
            automation(make_operator()).merge_to_main_and_push("feature/x")
        mock_repository.merge.assert_not_called()

    def test_push_failure_aborts(self, automation, mock_repository, make_operator):
        mock_repository.push.side_effect = git_error("push")
        with pytest.raises(MergeAborted):
            automation(make_operator()).merge_to_main_and_push("feature/x")

    def test_no_remote_skips_only_the_push(self, automation, mock_repository, make_operator, record_console):
        mock_repository.has_remote.return_value = False
        operator = make_operator(confirms=[False, True])

        outcome = automation(operator).merge_to_main_and_push("feature/x")

        assert outcome is MergeOutcome.MERGED_PUSH_SKIPPED
        mock_repository.push.assert_not_called()
        mock_repository.delete_local_branch.assert_called_once_with("feature/x")
        assert operator.questions[-1] == "Do you want to delete the feature branch \"feature/x\"?"
        output = record_console.file.getvalue()
        assert "Skipping push of main" in output
        assert "merged to main and pushed" not in output

    def test_no_remote_and_cleanup_declined(self, automation, mock_repository, make_operator):
        mock_repository.has_remote.return_value = False
        outcome = automation(make_operator(confirms=[False, False])).merge_to_main_and_push("feature/x")
        assert outcome is MergeOutcome.MERGED_PUSH_SKIPPED
        mock_repository.delete_local_branch.assert_not_called()

    def test_local_delete_failure(self, automation, mock_repository, make_operator, record_console):
        mock_repository.delete_local_branch.side_effect = git_error("branch", "-d")
        outcome = automation(make_operator(confirms=[True])).merge_to_main_and_push("feature/x")
        assert outcome is MergeOutcome.MERGED_PUSHED
        mock_repository.delete_remote_branch.assert_not_called()
        assert "Failed to delete branch" in record_console.file.getvalue()

    def test_remote_delete_failure_is_tolerated(self, automation, mock_repository, make_operator,
                                                record_console):
        mock_repository.delete_remote_branch.side_effect = git_error("push", "origin", ":feature/x")
        outcome = automation(make_operator(confirms=[True])).merge_to_main_and_push("feature/x")
        assert outcome is MergeOutcome.MERGED_PUSHED_CLEANED_UP
        assert "may not exist" in record_console.file.getvalue()

    def test_main_is_never_deleted(self, automation, mock_repository, make_operator):
        operator = make_operator()
        outcome = automation(operator).merge_to_main_and_push("main")
        assert outcome is MergeOutcome.MERGED_PUSHED
        mock_repository.delete_local_branch.assert_not_called()
