import pyperclip

from tabprobe.executor.result_resolver import ResultResolver
from tabprobe.models.result_payload import ClipboardText, NewTabUrl, to_response
from tabprobe.models.strategy import StrategyOutcome

from conftest import FakePage


def test_found_url_wins_over_clipboard(fast_config) -> None:
    page = FakePage()
    page.clipboard_text = "ignored"

    payload = ResultResolver(fast_config).resolve(StrategyOutcome(new_tab_url="https://b.example"), page)

    assert isinstance(payload, NewTabUrl)
    assert payload.to_body() == {"newTabUrl": "https://b.example"}


def test_clipboard_text_returned_when_no_tab(fast_config) -> None:
    page = FakePage()
    page.clipboard_text = "X"

    payload = ResultResolver(fast_config).resolve(StrategyOutcome(), page)

    assert isinstance(payload, ClipboardText)
    assert payload.to_body() == {"clipboardText": "X"}
    assert payload.read_failed is False


def test_clipboard_error_degrades_to_sentinel(fast_config) -> None:
    page = FakePage()
    page.clipboard_error = RuntimeError("Execution context was destroyed")

    payload = ResultResolver(fast_config).resolve(StrategyOutcome(), page)

    assert payload.to_body() == {"clipboardText": "nothing"}
    assert payload.read_failed is True
    assert to_response(payload)["statusCode"] == 200


def test_empty_clipboard_is_not_the_sentinel(fast_config) -> None:
    page = FakePage()
    page.clipboard_text = ""

    payload = ResultResolver(fast_config).resolve(StrategyOutcome(), page)

    assert payload.text == ""
    assert payload.read_failed is False


def test_host_clipboard_used_when_page_read_fails(fast_config, monkeypatch) -> None:
    fast_config.host_clipboard_fallback = True
    monkeypatch.setattr(pyperclip, "paste", lambda: "from host")
    page = FakePage()
    page.clipboard_error = RuntimeError("boom")

    payload = ResultResolver(fast_config).resolve(StrategyOutcome(), page)

    assert payload.text == "from host"
    assert payload.read_failed is False


def test_host_clipboard_failure_still_gives_sentinel(fast_config, monkeypatch) -> None:
    fast_config.host_clipboard_fallback = True

    def broken_paste():
        raise pyperclip.PyperclipException("no clipboard mechanism")

    monkeypatch.setattr(pyperclip, "paste", broken_paste)
    page = FakePage()
    page.clipboard_error = RuntimeError("boom")

    payload = ResultResolver(fast_config).resolve(StrategyOutcome(), page)

    assert payload.text == "nothing"
    assert payload.read_failed is True


def test_fallback_disabled_returns_none(fast_config) -> None:
    payload = ResultResolver(fast_config, clipboard_fallback=False).resolve(StrategyOutcome(), FakePage())

    assert payload is None


def test_empty_new_tab_url_still_counts_as_found(fast_config) -> None:
    page = FakePage()
    page.clipboard_text = "ignored"

    payload = ResultResolver(fast_config).resolve(StrategyOutcome(new_tab_url=""), page)

    assert payload == NewTabUrl(url="")
