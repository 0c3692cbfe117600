import paramiko
import pytest

from sshdeck.core.exceptions import ConfigError
from sshdeck.core.utils import (
    build_host_key_policy,
    join_remote_path,
    last_segment,
    replace_last_segment,
)
from sshdeck.domain.files.models import RemoteFileEntry, sort_entries


class TestJoinRemotePath:
    def test_inserts_separator(self) -> None:
        assert join_remote_path("/home/u", "a.txt") == "/home/u/a.txt"

    def test_trailing_slash_appends_directly(self) -> None:
        assert join_remote_path("/home/u/", "a.txt") == "/home/u/a.txt"
        assert join_remote_path("/", "etc") == "/etc"

    def test_relative_parent_kept_as_is(self) -> None:
        assert join_remote_path(".", "sub") == "./sub"


class TestReplaceLastSegment:
    def test_preserves_parent(self) -> None:
        assert replace_last_segment("/home/u/old.txt", "new.txt") == "/home/u/new.txt"

    def test_root_child(self) -> None:
        assert replace_last_segment("/old.txt", "new.txt") == "/new.txt"

    def test_bare_name(self) -> None:
        assert replace_last_segment("old.txt", "new.txt") == "new.txt"


def test_last_segment() -> None:
    assert last_segment("/var/log/syslog") == "syslog"
    assert last_segment("/var/log/") == "log"
    assert last_segment("notes.md") == "notes.md"


def _entry(name: str, is_directory: bool = False) -> RemoteFileEntry:
    return RemoteFileEntry(
        name=name,
        path=f"/home/u/{name}",
        is_directory=is_directory,
        size=0,
        modified_time="Nov 14 22:13",
    )


class TestSortEntries:
    def test_directories_first_then_name(self) -> None:
        entries = [_entry("b.txt"), _entry("a.txt"), _entry("sub", is_directory=True)]
        assert [e.name for e in sort_entries(entries)] == ["sub", "a.txt", "b.txt"]

    def test_does_not_mutate_input(self) -> None:
        entries = [_entry("b"), _entry("a")]
        sort_entries(entries)
        assert [e.name for e in entries] == ["b", "a"]


class TestHostKeyPolicy:
    @pytest.mark.parametrize(
        "name,policy",
        [
            ("strict", paramiko.RejectPolicy),
            ("warn", paramiko.WarningPolicy),
            ("accept", paramiko.AutoAddPolicy),
        ],
    )
    def test_known_policies(self, name, policy) -> None:
        assert isinstance(build_host_key_policy(name), policy)

    def test_unknown_policy(self) -> None:
        with pytest.raises(ConfigError, match="Unknown host key policy"):
            build_host_key_policy("trust-me")
