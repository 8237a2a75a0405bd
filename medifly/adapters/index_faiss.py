"""
Offline vector index backed by FAISS FlatIP over a JSONL snapshot.

Implements VectorIndexPort with the same argument names and predicate semantics as the
Supabase RPCs, so the API can run without a database (local dev, demos, tests).

Snapshot layout (built by scripts/build_index.py):
  <dir>/hospitals.jsonl   denormalised rows shaped like search_hospitals_vector output
  <dir>/hospitals.faiss   one vector per row, same order
  <dir>/doctors.jsonl
  <dir>/doctors.faiss
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import faiss
import numpy as np

from medifly.ports import VectorIndexPort

logger = logging.getLogger(__name__)


class FaissFlatIP:
    """Inner-product index over L2-normalised vectors (IP == cosine)."""

    def __init__(self, dim: int):
        self.index = faiss.IndexFlatIP(dim)

    @staticmethod
    def _prep(vectors: np.ndarray) -> np.ndarray:
        vecs = np.ascontiguousarray(vectors, dtype=np.float32)
        if vecs.ndim == 1:
            vecs = vecs[None, :]
        faiss.normalize_L2(vecs)
        return vecs

    @property
    def size(self) -> int:
        return int(self.index.ntotal)

    def add(self, vectors: np.ndarray):
        self.index.add(self._prep(vectors))

    def search(self, qvecs: np.ndarray, k: int = 10) -> Tuple[np.ndarray, np.ndarray]:
        return self.index.search(self._prep(qvecs), k)

    def save(self, path: str | Path):
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        faiss.write_index(self.index, str(path))

    @classmethod
    def load(cls, path: str | Path):
        idx = faiss.read_index(str(path))
        obj = cls(idx.d)
        obj.index = idx
        return obj


# ---------- documents embedded per row ----------

def _names(items: Any, *keys: str) -> List[str]:
    out = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        for key in keys:
            if item.get(key):
                out.append(str(item[key]))
                break
    return out


def hospital_document(row: Dict[str, Any]) -> str:
    return "\n".join([
        f"Hospital: {row.get('hospital_name') or ''}",
        f"Country: {row.get('country') or ''}",
        f"City: {row.get('city') or ''}",
        f"Specialties: {', '.join(_names(row.get('services'), 'category', 'name'))}",
        f"Services: {', '.join(_names(row.get('services'), 'name'))}",
        f"Description: {row.get('description') or ''}",
        f"Facilities: {', '.join(_names(row.get('facilities'), 'name'))}",
        f"Halal: {'Yes' if row.get('is_halal') else 'No'}",
        f"Rating: {row.get('rating') or ''}",
    ])


def doctor_document(row: Dict[str, Any]) -> str:
    hospitals = [h for h in row.get("hospitals") or [] if isinstance(h, dict)]
    locations = [", ".join(x for x in (h.get("city"), h.get("country")) if x) for h in hospitals]
    return "\n".join([
        f"Doctor: {row.get('name') or ''}",
        f"Specialty: {', '.join(_names(row.get('services'), 'name', 'category'))}",
        f"Hospital: {', '.join(_names(hospitals, 'hospital_name'))}",
        f"Location: {'; '.join(loc for loc in locations if loc)}",
        f"Experience: {row.get('experience_years') or 0} years",
        f"Description: {row.get('bio') or ''}",
        f"Certifications: {', '.join(_names(row.get('certifications'), 'certification_name'))}",
        f"Languages: {', '.join(_names(row.get('languages'), 'name'))}",
    ])


# ---------- RPC-equivalent predicates ----------

def _same(a: Any, b: Any) -> bool:
    return isinstance(a, str) and isinstance(b, str) and a.strip().lower() == b.strip().lower()


def _mentions(items: Any, needle: str, *keys: str) -> bool:
    needle = needle.lower()
    for item in items or []:
        if not isinstance(item, dict):
            continue
        for key in keys:
            value = item.get(key)
            if isinstance(value, str) and needle in value.lower():
                return True
    return False


def _at_least(value: Any, minimum: float) -> bool:
    try:
        return float(value) >= float(minimum)
    except (TypeError, ValueError):
        return False


def hospital_matches(row: Dict[str, Any], params: Dict[str, Any]) -> bool:
    if params.get("filter_country") and not _same(row.get("country"), params["filter_country"]):
        return False
    if params.get("filter_city") and not _same(row.get("city"), params["filter_city"]):
        return False
    if params.get("filter_specialty") and not _mentions(row.get("services"), params["filter_specialty"], "category", "name"):
        return False
    if params.get("filter_is_halal") is not None and bool(row.get("is_halal")) != bool(params["filter_is_halal"]):
        return False
    if params.get("filter_min_rating") is not None and not _at_least(row.get("rating"), params["filter_min_rating"]):
        return False
    return True


def doctor_matches(row: Dict[str, Any], params: Dict[str, Any]) -> bool:
    hospitals = row.get("hospitals") or []
    if params.get("filter_country") and not any(
        isinstance(h, dict) and _same(h.get("country"), params["filter_country"]) for h in hospitals
    ):
        return False
    if params.get("filter_city") and not any(
        isinstance(h, dict) and _same(h.get("city"), params["filter_city"]) for h in hospitals
    ):
        return False
    if params.get("filter_specialty") and not _mentions(row.get("services"), params["filter_specialty"], "category", "name"):
        return False
    if params.get("filter_min_experience") is not None and not _at_least(
        row.get("experience_years") or 0, params["filter_min_experience"]
    ):
        return False
    if params.get("filter_min_rating") is not None and not _at_least(row.get("rating"), params["filter_min_rating"]):
        return False
    return True


def load_rows(path: str | Path) -> List[Dict[str, Any]]:
    rows = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            if line.strip():
                rows.append(json.loads(line))
    return rows


class _Collection:
    def __init__(self, index: FaissFlatIP, rows: List[Dict[str, Any]]):
        if index.size != len(rows):
            raise ValueError(f"index has {index.size} vectors but snapshot has {len(rows)} rows")
        self.index = index
        self.rows = rows

    def search(
        self,
        params: Dict[str, Any],
        predicate: Callable[[Dict[str, Any], Dict[str, Any]], bool],
    ) -> List[Dict[str, Any]]:
        if not self.rows:
            return []
        qvec = np.asarray(params["query_embedding"], dtype=np.float32)
        threshold = float(params.get("match_threshold") or 0.0)
        count = int(params.get("match_count") or 10)

        # filters are applied after retrieval, so scan everything
        D, I = self.index.search(qvec, k=len(self.rows))
        hits = []
        for score, idx in zip(D[0], I[0]):
            if idx < 0 or float(score) < threshold:
                continue
            row = self.rows[idx]
            if not predicate(row, params):
                continue
            hits.append({**row, "similarity": float(score)})
            if len(hits) >= count:
                break
        return hits


class FaissVectorIndex(VectorIndexPort):
    def __init__(self, snapshot_dir: str | Path):
        self.snapshot_dir = Path(snapshot_dir)
        self._hospitals: Optional[_Collection] = None
        self._doctors: Optional[_Collection] = None

    def _load(self, name: str) -> _Collection:
        index_path = self.snapshot_dir / f"{name}.faiss"
        rows_path = self.snapshot_dir / f"{name}.jsonl"
        for label, path in (("FAISS index", index_path), ("snapshot rows", rows_path)):
            if not path.exists():
                raise FileNotFoundError(f"{label} not found: {path}")
        logger.info("loading %s snapshot from %s", name, self.snapshot_dir)
        return _Collection(FaissFlatIP.load(index_path), load_rows(rows_path))

    def search_hospitals(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        if self._hospitals is None:
            self._hospitals = self._load("hospitals")
        return self._hospitals.search(params, hospital_matches)

    def search_doctors(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        if self._doctors is None:
            self._doctors = self._load("doctors")
        return self._doctors.search(params, doctor_matches)


def build_snapshot(
    rows: Iterable[Dict[str, Any]],
    vectors: np.ndarray,
    snapshot_dir: str | Path,
    name: str,
) -> Dict[str, Any]:
    """Write <name>.jsonl + <name>.faiss; vectors must be in row order."""
    rows = list(rows)
    vecs = np.asarray(vectors, dtype=np.float32)
    if vecs.ndim != 2 or vecs.shape[0] != len(rows):
        raise ValueError(f"Expected {len(rows)} x D embeddings, got shape {vecs.shape}")

    out = Path(snapshot_dir)
    out.mkdir(parents=True, exist_ok=True)
    idx = FaissFlatIP(vecs.shape[1])
    idx.add(vecs)
    idx.save(out / f"{name}.faiss")
    with open(out / f"{name}.jsonl", "w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False) + "\n")
    return {"name": name, "added": len(rows), "dim": int(vecs.shape[1]), "dir": str(out)}
