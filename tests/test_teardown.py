import psutil
import pytest

import tabprobe.executor.teardown as teardown_mod
from tabprobe.executor.request_filter import RequestFilter
from tabprobe.executor.teardown import Teardown, kill_process_tree
from tabprobe.models.session import Session, SessionState

from conftest import FakeContext, FakeHandle


def make_session(fast_config, browser_pid=None):
    session = Session(target_url="https://example.com")
    handle = FakeHandle(FakeContext(), browser_pid=browser_pid)
    handle.context.new_page("https://example.com/other")
    session.handle = handle
    session.advance(SessionState.LAUNCHED)
    return session, handle


def test_close_accelerator_sent_to_every_page(fast_config) -> None:
    session, handle = make_session(fast_config)
    pages = handle.pages()

    Teardown(fast_config).run(session)

    assert len(pages) == 2
    for page in pages:
        assert page.keyboard.events == [("down", "AltLeft"), ("press", "F4"), ("up", "AltLeft")]
    assert handle.playwright is None
    assert session.state == SessionState.TORN_DOWN


def test_browser_process_killed_when_pid_known(fast_config, monkeypatch) -> None:
    killed = []
    monkeypatch.setattr(teardown_mod, "kill_process_tree", lambda pid: killed.append(pid) or True)
    session, _ = make_session(fast_config, browser_pid=4242)

    Teardown(fast_config).run(session)

    assert killed == [4242]


def test_observers_removed_and_blocked_count_collected(fast_config) -> None:
    session, handle = make_session(fast_config)
    page = handle.page
    request_filter = RequestFilter(page).install()
    request_filter.blocked_requests = 7
    session.add_observer(request_filter)

    Teardown(fast_config).run(session)

    assert session.observers == []
    assert page.routes == []
    assert session.blocked_requests == 7


def test_second_run_is_a_noop(fast_config) -> None:
    session, handle = make_session(fast_config)
    playwright = handle.playwright
    page = handle.page
    teardown = Teardown(fast_config)

    teardown.run(session)
    teardown.run(session)

    assert playwright.stopped == 1
    assert page.keyboard.events.count(("press", "F4")) == 1


def test_failures_are_swallowed_and_later_steps_still_run(fast_config) -> None:
    session, handle = make_session(fast_config)
    handle.page.keyboard.fail_on_press = "F4"
    playwright = handle.playwright

    Teardown(fast_config).run(session)

    assert playwright.stopped == 1
    assert session.is_torn_down


def test_teardown_without_handle_still_cleans_temp(fast_config) -> None:
    session = Session(target_url="https://example.com")
    temp_dir = fast_config.temp_dir
    temp_dir.mkdir(parents=True)
    own = temp_dir / f"{fast_config.profile_prefix}{session.session_id}-abcd"
    own.mkdir()

    Teardown(fast_config).run(session)

    assert not own.exists()


def test_only_this_sessions_profiles_are_removed(fast_config) -> None:
    session, _ = make_session(fast_config)
    temp_dir = fast_config.temp_dir
    temp_dir.mkdir(parents=True)
    own = temp_dir / f"{fast_config.profile_prefix}{session.session_id}-x1"
    (own / "Default").mkdir(parents=True)
    other = temp_dir / f"{fast_config.profile_prefix}othersession-x2"
    other.mkdir()
    unrelated = temp_dir / "unrelated.txt"
    unrelated.write_text("keep")

    removed = Teardown(fast_config).clean_temp_files(session)

    assert removed == 1
    assert not own.exists()
    assert other.exists()
    assert unrelated.exists()


def test_shared_sweep_removes_every_profile(fast_config) -> None:
    fast_config.sweep_shared_profiles = True
    session, _ = make_session(fast_config)
    temp_dir = fast_config.temp_dir
    temp_dir.mkdir(parents=True)
    (temp_dir / f"{fast_config.profile_prefix}a-1").mkdir()
    (temp_dir / f"{fast_config.profile_prefix}b-2").mkdir()
    (temp_dir / "unrelated").mkdir()

    removed = Teardown(fast_config).clean_temp_files(session)

    assert removed == 2
    assert (temp_dir / "unrelated").exists()


def test_kill_process_tree_missing_process(monkeypatch) -> None:
    def no_such_process(pid):
        raise psutil.NoSuchProcess(pid)

    monkeypatch.setattr(psutil, "Process", no_such_process)

    assert kill_process_tree(999999) is False


def test_kill_process_tree_kills_children_first(monkeypatch) -> None:
    order = []

    class FakeProc:
        def __init__(self, pid, children=()):
            self.pid = pid
            self._children = list(children)

        def children(self, recursive=False):
            return self._children

        def kill(self):
            order.append(self.pid)

        def wait(self, timeout=None):
            return 0

    root = FakeProc(1, [FakeProc(2), FakeProc(3)])
    monkeypatch.setattr(psutil, "Process", lambda pid: root)

    assert kill_process_tree(1) is True
    assert order == [2, 3, 1]


def test_kill_process_tree_reports_stuck_process(monkeypatch) -> None:
    class StuckProc:
        def children(self, recursive=False):
            return []

        def kill(self):
            pass

        def wait(self, timeout=None):
            raise psutil.TimeoutExpired(timeout, pid=5)

    monkeypatch.setattr(psutil, "Process", lambda pid: StuckProc())

    with pytest.raises(teardown_mod.TeardownError):
        kill_process_tree(5)
