import pytest

from autoclose.candidate_scorer import classify_process, partition_candidates, title_match_score, tokenize
from autoclose.models import MatchTier
from tests.helpers.process_fakes import make_handle, make_record


def test_tokenize_splits_on_delimiters_and_lowercases():
    assert tokenize("Foo Bar: The_Game (2024) [v1.2]") == ["foo", "bar", "the", "game", "2024", "v1", "2"]
    assert tokenize("") == []
    assert tokenize(None) == []


def test_title_score_counts_substring_matches_both_directions():
    tokens = tokenize("Foo Bar")
    assert title_match_score(tokens, "Foo Bar - Main Menu") == 2
    assert title_match_score(tokens, "Foo") == 1
    assert title_match_score(tokenize("Foobarian"), "foo") == 1
    assert title_match_score(tokens, "Unrelated") == 0
    assert title_match_score(tokens, "") == 0


def test_path_tier_is_case_insensitive_substring():
    record = make_record(install_directory=r"C:\Games\FooBar")
    process = make_handle(1, "foobar", title="Something", path=r"c:\games\foobar\bin\foobar.exe")

    assert classify_process(process, record, []).tier is MatchTier.PATH


def test_path_beats_name_and_title():
    record = make_record(install_directory=r"C:\Games\FooBar")
    process = make_handle(1, "foobar", title="Foo Bar", path=r"C:\Games\FooBar\foobar.exe")

    assert classify_process(process, record, ["foobar"]).tier is MatchTier.PATH


def test_name_tier_when_path_known_elsewhere():
    record = make_record(install_directory=r"C:\Games\FooBar")
    process = make_handle(2, "FOOBAR", title="Other", path=r"D:\Elsewhere\foobar.exe")

    assert classify_process(process, record, ["foobar"]).tier is MatchTier.NAME


def test_title_tier_carries_score():
    record = make_record()
    process = make_handle(3, "launcher", title="Foo Bar - Main Menu", path=r"D:\x\launcher.exe")

    match = classify_process(process, record, [])

    assert match.tier is MatchTier.TITLE
    assert match.score == 2


def test_inaccessible_only_when_path_unknown():
    record = make_record()
    unknown = make_handle(4, "svc", title="Window", path=None)
    known = make_handle(5, "svc", title="Window", path=r"C:\Windows\svc.exe")

    assert classify_process(unknown, record, []).tier is MatchTier.INACCESSIBLE
    assert classify_process(known, record, []).tier is MatchTier.NO_MATCH


def test_missing_install_directory_never_path_matches():
    record = make_record(install_directory=None)
    process = make_handle(6, "x", title="y", path=r"C:\Games\x.exe")

    assert classify_process(process, record, []).tier is MatchTier.NO_MATCH


def test_partition_is_disjoint_and_drops_no_match():
    record = make_record(install_directory=r"C:\Games\FooBar")
    by_path = make_handle(1, "foobar", title="Foo Bar", path=r"C:\Games\FooBar\foobar.exe")
    by_name = make_handle(2, "foobar", title="Foo Bar", path=r"D:\copy\foobar.exe")
    by_title = make_handle(3, "other", title="Foo", path=r"D:\other.exe")
    hidden = make_handle(4, "secret", title="Nope", path=None)
    dropped = make_handle(5, "notepad", title="Untitled", path=r"C:\Windows\notepad.exe")

    partition = partition_candidates([by_path, by_name, by_title, hidden, dropped], record, ["foobar"])

    assert partition.path == [by_path]
    assert partition.name == [by_name]
    assert partition.title == [(by_title, 1)]
    assert partition.inaccessible == [hidden]


def test_partition_skips_processes_that_raise():
    record = make_record()
    broken = make_handle(9, "x", title="Foo Bar", path=None)
    broken.name = 123  # type: ignore[assignment]
    healthy = make_handle(10, "other", title="Foo Bar", path=r"D:\other.exe")

    partition = partition_candidates([broken, healthy], record, [])

    assert partition.title == [(healthy, 2)]


@pytest.mark.parametrize("title", ["", "   ", "---"])
def test_blank_titles_never_score(title):
    assert title_match_score(["foo"], title) == 0
