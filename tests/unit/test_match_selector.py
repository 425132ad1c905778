from autoclose.candidate_scorer import partition_candidates
from autoclose.match_selector import select_best_match
from autoclose.models import CandidatePartition
from tests.helpers.process_fakes import make_handle, make_record


def test_empty_partition_returns_none():
    assert select_best_match(CandidatePartition()) is None


def test_path_tier_dominates_larger_name_match():
    record = make_record(install_directory=r"C:\Games\FooBar")
    in_dir = make_handle(1, "foobar", title="Foo Bar", path=r"C:\Games\FooBar\foobar.exe", memory_mb=150)
    same_name = make_handle(2, "foobar", title="Foo Bar", path=r"D:\Other\foobar.exe", memory_mb=900)

    partition = partition_candidates([same_name, in_dir], record, ["foobar"])

    assert select_best_match(partition).pid == 1


def test_title_prefers_higher_score_over_memory():
    record = make_record("Foo Bar")
    partial = make_handle(1, "a", title="Foo", path=r"D:\a.exe", memory_mb=800)
    full = make_handle(2, "b", title="Foo Bar - Main Menu", path=r"D:\b.exe", memory_mb=150)

    partition = partition_candidates([partial, full], record, [])

    assert select_best_match(partition).pid == 2


def test_title_tie_breaks_on_memory():
    partition = CandidatePartition()
    partition.title.extend([(make_handle(1, memory_mb=150), 1), (make_handle(2, memory_mb=300), 1)])

    assert select_best_match(partition).pid == 2


def test_path_tie_breaks_on_memory_then_snapshot_order():
    partition = CandidatePartition()
    partition.path.extend([make_handle(1, memory_mb=200), make_handle(2, memory_mb=400), make_handle(3, memory_mb=400)])

    assert select_best_match(partition).pid == 2


def test_inaccessible_prefers_previous_pid():
    partition = CandidatePartition()
    partition.inaccessible.extend([make_handle(7, memory_mb=900), make_handle(8, memory_mb=150)])

    assert select_best_match(partition, previous_pid=8).pid == 8


def test_inaccessible_falls_back_to_memory_when_previous_pid_absent():
    partition = CandidatePartition()
    partition.inaccessible.extend([make_handle(7, memory_mb=300), make_handle(8, memory_mb=150)])

    assert select_best_match(partition, previous_pid=42).pid == 7


def test_previous_pid_ignored_outside_inaccessible_tier():
    partition = CandidatePartition()
    partition.name.extend([make_handle(1, memory_mb=500), make_handle(2, memory_mb=150)])
    partition.inaccessible.append(make_handle(3))

    assert select_best_match(partition, previous_pid=2).pid == 1


def test_selection_is_deterministic():
    record = make_record("Foo Bar")
    snapshot = [
        make_handle(1, "a", title="Foo", path=r"D:\a.exe", memory_mb=300),
        make_handle(2, "b", title="Bar", path=r"D:\b.exe", memory_mb=300),
        make_handle(3, "c", title="Nope", path=None, memory_mb=600),
    ]

    picks = {select_best_match(partition_candidates(snapshot, record, [])).pid for _ in range(5)}

    assert picks == {1}


def test_foo_bar_installed_under_games_resolves_by_path():
    record = make_record("Foo Bar", install_directory=r"C:\Games\FooBar")
    game = make_handle(1, "foobar", title="Foo Bar", path=r"C:\Games\FooBar\bin\foobar.exe")
    other = make_handle(2, "browser", title="Foo Bar wiki - Browser", path=r"C:\Apps\browser.exe", memory_mb=2000)

    partition = partition_candidates([other, game], record, [])

    assert partition.path == [game]
    assert select_best_match(partition) is game
