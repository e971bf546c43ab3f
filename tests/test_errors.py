"""Tests for error messages."""

from promptsmith.errors import RefOutOfRangeError, VersionNotFoundError


def test_out_of_range_message_counts_versions():
    assert str(RefOutOfRangeError(1, 1)) == "HEAD~1 is beyond version history (only 1 version)"
    assert str(RefOutOfRangeError(3, 3)) == "HEAD~3 is beyond version history (only 3 versions)"

    error = RefOutOfRangeError(5, 2)
    assert (error.offset, error.history_length) == (5, 2)


def test_version_not_found_message():
    assert str(VersionNotFoundError("1.0.9")) == "version '1.0.9' not found"
    assert str(VersionNotFoundError("1.0.9", "greet")) == \
        "version '1.0.9' not found for prompt 'greet'"
