#!/usr/bin/env python
"""
Build the offline FAISS snapshot used by vector_index.adapter=faiss.

Inputs (JSONL, one denormalised record per line, shaped like the Supabase RPC rows):
  - hospitals.jsonl: id, hospital_name, city, country, is_halal, rating, doctor_count,
                     services[{name, category, base_price, ...}], facilities[{name, ...}], ...
  - doctors.jsonl:   id, name, bio, experience_years, rating,
                     services[{name, category, is_primary}], hospitals[{hospital_name, city, country, is_primary}], ...
Outputs:
  - <out>/hospitals.{jsonl,faiss}, <out>/doctors.{jsonl,faiss}

Embeds with the embedder selected in the runtime config so query and corpus vectors match.

Usage:
  python -m scripts.build_index --hospitals data/raw/hospitals.jsonl --doctors data/raw/doctors.jsonl --out data/index
"""

import argparse
import logging

import numpy as np

from medifly.adapters.index_faiss import build_snapshot, doctor_document, hospital_document, load_rows
from medifly.factory import build_embedder, load_runtime_config
from medifly.setting import settings

logger = logging.getLogger("build_index")


def _embed_rows(embedder, rows, to_text, batch: int):
    vecs = []
    for start in range(0, len(rows), batch):
        texts = [to_text(r) for r in rows[start:start + batch]]
        vecs.extend(embedder.embed_texts(texts))
        logger.info("embedded %d/%d", min(start + batch, len(rows)), len(rows))
    return np.asarray(vecs, dtype="float32")


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--hospitals", default="data/raw/hospitals.jsonl")
    ap.add_argument("--doctors", default="data/raw/doctors.jsonl")
    ap.add_argument("--out", default=str(settings.snapshot_dir))
    ap.add_argument("--config", default=None, help="runtime YAML selecting the embedder")
    ap.add_argument("--batch", type=int, default=64)
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    embedder = build_embedder(load_runtime_config(args.config), settings)

    for name, path, to_text in (
        ("hospitals", args.hospitals, hospital_document),
        ("doctors", args.doctors, doctor_document),
    ):
        # stored vectors are dropped; everything is re-embedded with the configured model
        rows = [{k: v for k, v in r.items() if k != "embedding"} for r in load_rows(path)]
        if not rows:
            raise SystemExit(f"No records found in {path}.")
        vecs = _embed_rows(embedder, rows, to_text, args.batch)
        print(build_snapshot(rows, vecs, args.out, name))


if __name__ == "__main__":
    main()
