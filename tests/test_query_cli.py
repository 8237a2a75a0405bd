import json
import os
import subprocess
import sys
from pathlib import Path

from scripts import query_search

ROOT = Path(__file__).resolve().parents[1]


def test_intent_only_cli_runs_offline():
    cmd = [
        sys.executable,
        "-m",
        "scripts.query_search",
        "--q",
        "halal hospitals in Penang for joint surgery",
        "--intent-only",
        "--no-llm",
    ]
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(
        [str(ROOT), env.get("PYTHONPATH", "") or ""]
    ).rstrip(os.pathsep)

    proc = subprocess.run(cmd, cwd=ROOT, capture_output=True, text=True, check=True, env=env)

    intent = json.loads(proc.stdout)
    assert intent["searchType"] == "hospital"
    assert intent["filters"]["isHalal"] is True
    assert intent["filters"]["city"] == "Penang"
    assert intent["filters"]["specialty"] == "orthopedics"
    assert len(intent["actions"]) == 3


def test_typed_search_prints_ranked_lines(monkeypatch, capsys, dispatcher, index):
    monkeypatch.setattr(query_search, "build_dispatcher", lambda cfg=None: dispatcher)

    code = query_search.main(["--q", "heart surgery", "--type", "hospital", "--halal", "--no-llm"])

    assert code == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "1 result(s)"
    assert "87%" in out[1] and "Heart Centre KL" in out[1] and "Starting from $50" in out[1]
    assert index.calls[0][1]["filter_is_halal"] is True


def test_chat_search_json(monkeypatch, capsys, dispatcher):
    monkeypatch.setattr(query_search, "build_dispatcher", lambda cfg=None: dispatcher)

    code = query_search.main(["--q", "experienced heart doctors in Malaysia", "--no-llm", "--json"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["count"] == 2
    assert payload["intent"]["filters"]["minExperience"] == 10
    assert payload["results"][0]["experienceYears"] == 15


def test_backend_errors_exit_nonzero(monkeypatch, capsys, failing_embedder, index):
    from medifly.services.dispatcher import VectorSearchDispatcher

    broken = VectorSearchDispatcher(failing_embedder, index)
    monkeypatch.setattr(query_search, "build_dispatcher", lambda cfg=None: broken)

    code = query_search.main(["--q", "heart", "--type", "doctor", "--no-llm"])

    assert code == 1
    assert "Failed to generate embedding" in capsys.readouterr().err
