from typing import Iterable

import pytest

import main
from yield_agent.engine import DialogueEngine
from yield_agent.settings import DEFAULT_GREETING


def _scripted(lines: Iterable[str]):
    queue = list(lines)

    def read(prompt: str) -> str:
        if not queue:
            raise EOFError
        return queue.pop(0)

    return read


def test_run_answers_and_handles_commands(capsys: pytest.CaptureFixture) -> None:
    engine = DialogueEngine(seed=3)
    main.run(engine, read=_scripted(["I'm conservative", "", "/context", "/reset", "/history", "/quit", "never read"]))
    out = capsys.readouterr().out
    assert out.count(f"AgentX: {DEFAULT_GREETING}") == 3
    assert "I understand you prefer a conservative approach." in out
    assert '"risk_tolerance": "conservative"' in out
    assert engine.get_history()[-1].text == DEFAULT_GREETING
    assert len(engine.get_history()) == 1


def test_run_stops_on_eof(capsys: pytest.CaptureFixture) -> None:
    engine = DialogueEngine(seed=3)
    main.run(engine, read=_scripted(["hello"]))
    assert len(engine.get_history()) == 3
