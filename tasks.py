# tasks.py
# Invoke is the source of truth.
# Primary:
#   invoke api       -> run the FastAPI search service
#   invoke index     -> embed hospitals/doctors JSONL into the offline FAISS snapshot
# Helpers:
#   invoke query | intent | test | clobber

from invoke import task
import os, sys, subprocess
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

PY        = sys.executable
API_HOST  = os.environ.get("HOST", "0.0.0.0")
API_PORT  = int(os.environ.get("PORT", "8000"))

# Paths
RAW_DIR       = Path("data/raw")
HOSPITALS_RAW = RAW_DIR / "hospitals.jsonl"
DOCTORS_RAW   = RAW_DIR / "doctors.jsonl"
INDEX_DIR     = Path(os.environ.get("SNAPSHOT_DIR", "data/index"))

def _run(cmd, env: dict | None = None, **kwargs):
    """Run shell cmd with repo root on PYTHONPATH, plus optional env overrides."""
    base = os.environ.copy()
    root = str(Path(".").resolve())
    base["PYTHONPATH"] = f'{root}{os.pathsep}{base.get("PYTHONPATH","")}'
    if env:
        base.update(env)
    print(f"$ {cmd}")
    return subprocess.run(cmd, shell=True, check=True, env=base, **kwargs)

def _jsonl_count(path: Path) -> int:
    if not Path(path).exists():
        return 0
    with open(path, "r", encoding="utf-8") as f:
        return sum(1 for line in f if line.strip())

@task
def api(c, reload=True):
    """Start the FastAPI search service."""
    reload_flag = "--reload" if str(reload).lower() != "false" else ""
    _run(f'{PY} -m uvicorn medifly.main:app --host {API_HOST} --port {API_PORT} {reload_flag}')

@task
def index(c, config=None):
    """Build the FAISS snapshot (data/raw/*.jsonl -> data/index/)."""
    for p in (HOSPITALS_RAW, DOCTORS_RAW):
        if _jsonl_count(p) == 0:
            raise SystemExit(f"No records at {p}. Export hospitals/doctors rows to JSONL first.")
    cfg = f"--config {config}" if config else ""
    _run(
        f'{PY} -m scripts.build_index '
        f'--hospitals {HOSPITALS_RAW} --doctors {DOCTORS_RAW} --out {INDEX_DIR} {cfg}'
    )

@task
def query(c, q, type=None, limit=12):
    """CLI search against the configured stack."""
    type_flag = f"--type {type}" if type else ""
    _run(f'{PY} -m scripts.query_search --q "{q}" {type_flag} --limit {limit}')

@task
def intent(c, q, no_llm=False):
    """Show how a message is understood (add --no-llm for the keyword rules only)."""
    flag = "--no-llm" if no_llm else ""
    _run(f'{PY} -m scripts.query_search --q "{q}" --intent-only {flag}')

@task
def test(c, k=None):
    """Run the pytest suite."""
    sel = f'-k "{k}"' if k else ""
    _run(f"{PY} -m pytest -q {sel}")

@task
def clobber(c):
    """Blow away the FAISS snapshot (dangerous)."""
    for name in ("hospitals", "doctors"):
        for suffix in (".faiss", ".jsonl"):
            p = INDEX_DIR / f"{name}{suffix}"
            if p.exists():
                p.unlink()
                print("deleted", p)
