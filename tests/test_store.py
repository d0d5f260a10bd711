"""Tests for board, list and card storage."""

import pytest

from koban.config import Config
from koban.errors import Ambiguous, BackendError, DuplicateId, InvalidId, NotFound
from koban.model.loader import load_board
from koban.models import Card
from koban.store import match_card, validate_id


# --- Boards ---


def test_create_then_get(store):
    created = store.create("foo")
    loaded = store.get("foo")

    assert loaded is not None
    assert loaded.id == "foo"
    assert loaded.created_at == created.created_at
    assert loaded.lists == []


def test_create_duplicate(store):
    store.create("foo")
    with pytest.raises(DuplicateId, match="already exists"):
        store.create("foo")


def test_get_missing(store):
    assert store.get("nope") is None
    with pytest.raises(NotFound, match="does not exist"):
        store.get_or_raise("nope")


def test_branch_without_board_record_is_not_a_board(store):
    backend = store.backend("plain")
    backend.create_branch("plain")
    assert store.get("plain") is None


@pytest.mark.parametrize("bad", ["", "master", "a b", "-x", "a..b", "x.lock", "a/b", ".hidden"])
def test_invalid_ids(bad):
    with pytest.raises(InvalidId):
        validate_id("board", bad)


def test_create_in_custom_repo(store, config, tmp_path):
    board = store.create("ext", custom_repo=str(tmp_path / "ext-repo"))

    assert config.custom_repos["ext"] == str((tmp_path / "ext-repo").resolve())
    assert not config.changed
    assert board.repo_path == (tmp_path / "ext-repo").resolve()
    assert store.backend("ext").has_branch("ext")
    assert not store.backend("other").has_branch("ext")


def test_failed_custom_create_rolls_back_override(store, config, tmp_path):
    backend = store.registry.open(tmp_path / "ext-repo")
    backend.create_branch("ext")

    with pytest.raises(DuplicateId, match="branch named"):
        store.create("ext", custom_repo=str(tmp_path / "ext-repo"))
    assert "ext" not in config.custom_repos
    assert not config.changed


def test_delete_non_current_board(store, config, registry):
    store.create("foo")
    store.create("bar")
    config.current_board_id = "bar"
    config.save()
    backend = registry.backend_for("foo")
    backend.edit("notes.txt", "wip")

    store.delete(store.get("foo"))

    assert store.get("foo") is None
    assert config.current_board_id == "bar"
    assert backend.local_changes == {"notes.txt": "wip"}
    assert backend.call_count("reset_hard") == 0


def test_delete_current_board(store, config, registry):
    store.create("foo")
    config.current_board_id = "foo"
    config.save()
    backend = registry.backend_for("foo")
    backend.checkout("foo")
    backend.edit("board.md", "scribbles")

    store.delete(store.get("foo"))

    assert store.get("foo") is None
    assert config.current_board_id is None
    assert not config.changed
    assert backend.active_branch() == "master"
    assert backend.local_changes == {}


def test_failed_write_removes_new_branch(store, config, registry, tmp_path, monkeypatch):
    backend = registry.open(tmp_path / "ext-repo")

    def refuse(*args):
        raise BackendError("git mktree failed: disk full")

    monkeypatch.setattr(backend, "write_files", refuse)

    with pytest.raises(BackendError, match="disk full"):
        store.create("ext", custom_repo=str(tmp_path / "ext-repo"))
    assert not backend.has_branch("ext")
    assert "ext" not in config.custom_repos


def test_cleared_pointer_is_saved_before_branch_delete(store, config, registry, monkeypatch):
    store.create("foo")
    config.current_board_id = "foo"
    config.save()
    backend = registry.backend_for("foo")
    backend.checkout("foo")

    def refuse(*args, **kwargs):
        raise BackendError("git branch failed: locked")

    monkeypatch.setattr(backend, "delete_branch", refuse)

    with pytest.raises(BackendError):
        store.delete(store.get("foo"))
    assert not config.changed
    assert Config.load(config.path).current_board_id is None


def test_delete_drops_custom_repo(store, config, tmp_path):
    board = store.create("ext", custom_repo=str(tmp_path / "ext-repo"))
    store.delete(board)
    assert "ext" not in config.custom_repos


def test_all_boards_in_creation_order(store, config, tmp_path):
    store.create("foo")
    store.create("bar")
    store.create("ext", custom_repo=str(tmp_path / "ext-repo"))
    store.backend("foo").create_branch("not-a-board")

    assert [b.id for b in store.all()] == ["foo", "bar", "ext"]


def test_is_published(store):
    board = store.create("foo")
    backend = store.backend(board)
    assert store.is_published(board) is False

    backend.add_remote("origin")
    backend.push("origin", "foo")
    assert store.is_published(board) is True


# --- Lists ---


def test_lists_keep_creation_order(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    store.create_list(board, "doing")
    store.create_list(board, "done")

    assert store.get("foo").list_ids() == ["todo", "doing", "done"]


def test_list_duplicate_within_board(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    with pytest.raises(DuplicateId):
        store.create_list(board, "todo")


def test_same_list_id_on_two_boards(store):
    foo = store.create("foo")
    bar = store.create("bar")
    store.create_list(foo, "todo")
    store.create_list(bar, "todo")

    assert store.get("foo").list_ids() == ["todo"]
    assert store.get("bar").list_ids() == ["todo"]


def test_delete_list(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    store.delete_list(board, "todo")
    assert store.get("foo").lists == []


def test_delete_missing_list(store):
    board = store.create("foo")
    with pytest.raises(NotFound):
        store.delete_list(board, "todo")


# --- Cards ---


def test_scenario_board_list_card(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    store.create_card(board, "todo", "Buy milk")

    cards = store.cards(store.get("foo"))
    assert [c.title for c in cards] == ["Buy milk"]

    store.delete(store.get("foo"))
    assert store.get("foo") is None
    assert not store.backend("foo").has_branch("foo")


def test_card_round_trips_through_branch(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    card = store.create_card(board, "todo", "Buy milk", "Two litres\n\nSemi-skimmed")

    loaded = store.get("foo").cards()[0]
    assert loaded == card


def test_created_card_matches_reloaded_card(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    card = store.create_card(board, "todo", "Buy milk", "\n\nTwo litres  \n\n")

    assert card.content == "Two litres"
    assert store.get("foo").cards()[0] == card


def test_card_requires_existing_list(store):
    board = store.create("foo")
    with pytest.raises(NotFound):
        store.create_card(board, "todo", "Buy milk")


def test_card_title_must_be_one_line(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    with pytest.raises(InvalidId):
        store.create_card(board, "todo", "two\nlines")


def test_find_card_by_prefix(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    milk = store.create_card(board, "todo", "Buy milk")
    store.create_card(board, "todo", "Buy eggs")
    store.create_card(board, "todo", "Call mum")

    assert store.find_card(board, "buy m") == milk
    assert store.find_card(board, milk.id) == milk
    assert store.find_card(board, milk.id[:8]) == milk

    with pytest.raises(Ambiguous) as excinfo:
        store.find_card(board, "Buy")
    assert len(excinfo.value.candidates) == 2

    with pytest.raises(NotFound):
        store.find_card(board, "Walk dog")


def test_exact_title_beats_prefix(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    short = store.create_card(board, "todo", "Buy milk")
    store.create_card(board, "todo", "Buy milk and bread")

    assert store.find_card(board, "Buy milk") == short


def test_duplicate_exact_titles_are_ambiguous(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    store.create_list(board, "done")
    store.create_card(board, "todo", "Buy milk")
    store.create_card(board, "done", "Buy milk")

    with pytest.raises(Ambiguous):
        store.find_card(board, "Buy milk")


def test_delete_card(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    store.create_card(board, "todo", "Buy milk")
    keep = store.create_card(board, "todo", "Call mum")

    deleted = store.delete_card(board, "Buy milk")

    assert deleted.title == "Buy milk"
    assert store.get("foo").cards() == [keep]


def test_delete_missing_card(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    with pytest.raises(NotFound):
        store.delete_card(board, "nothing")


def test_update_card(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    card = store.create_card(board, "todo", "Buy milk")

    assert store.update_card(board, card, content="Two litres") is True
    assert store.update_card(board, card, content="Two litres") is False
    assert store.get("foo").cards()[0].content == "Two litres"


def test_match_card_empty():
    with pytest.raises(NotFound):
        match_card([], "x")


def test_title_prefix_beats_id_prefix():
    milk = Card(id="c0ffee" + "0" * 26, title="Buy milk")
    mum = Card(id="b" * 32, title="Call mum")

    assert match_card([milk, mum], "c") == mum
    assert match_card([milk, mum], "C") == mum
    # no title starts with "c0", so the id prefix decides
    assert match_card([milk, mum], "c0") == milk


def test_id_prefix_ambiguous():
    cards = [Card(id="ab" + "0" * 30, title="Buy milk"), Card(id="ab" + "1" * 30, title="Call mum")]
    with pytest.raises(Ambiguous) as excinfo:
        match_card(cards, "ab")
    assert len(excinfo.value.candidates) == 2


# --- On-disk layout ---


def test_branch_layout(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    card = store.create_card(board, "todo", "Buy milk")

    files = store.backend(board).read_files("foo")
    assert set(files) == {"board.md", "lists/todo/index.md", f"lists/todo/{card.id}.md"}
    assert "# Buy milk" in files[f"lists/todo/{card.id}.md"]


def test_loader_tolerates_undeclared_files(store):
    board = store.create("foo")
    store.create_list(board, "todo")
    card = store.create_card(board, "todo", "Buy milk")
    files = store.backend(board).read_files("foo")
    files["lists/todo/index.md"] = "# todo\n"

    loaded = load_board("foo", files)
    assert [c.id for c in loaded.cards()] == [card.id]


# --- Real git ---


def test_git_scenario(git_store):
    board = git_store.create("foo")
    git_store.create_list(board, "todo")
    git_store.create_card(board, "todo", "Buy milk")

    assert [c.title for c in git_store.get("foo").cards()] == ["Buy milk"]

    git_store.delete(git_store.get("foo"))
    assert git_store.get("foo") is None


def test_git_delete_current_board_restores_master(git_store, config):
    board = git_store.create("foo")
    config.current_board_id = "foo"
    backend = git_store.backend(board)
    backend.checkout("foo")
    (backend.location / "board.md").write_text("scribbles\n")

    git_store.delete(board)

    assert backend.active_branch() == "master"
    assert not backend.is_dirty()
    assert config.current_board_id is None


def test_git_delete_checked_out_non_current_board_fails(git_store):
    board = git_store.create("foo")
    git_store.backend(board).checkout("foo")
    with pytest.raises(BackendError):
        git_store.delete(board)
