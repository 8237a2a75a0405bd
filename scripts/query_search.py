#!/usr/bin/env python
"""
Query CLI that runs the same stack as the API (factory.build_dispatcher / build_understanding).

Two modes:
  --type hospital|doctor  -> direct vector search, like POST /api/search
  (no --type)             -> chat-style: understand the text first, like POST /api/assist

Usage:
  python -m scripts.query_search --q "cardiac surgery" --type hospital --country Malaysia
  python -m scripts.query_search --q "experienced heart doctors in Malaysia" --json
  python -m scripts.query_search --q "halal hospitals in Penang" --intent-only --no-llm

Example:
  >>> python -m scripts.query_search --q "heart hospital" --type hospital
   1  92%  Heart Centre KL  (Kuala Lumpur, Malaysia)  Starting from $1,200
"""

import argparse
import json
import logging
import sys

from medifly.errors import SearchError
from medifly.factory import build_dispatcher, build_understanding
from medifly.schemas import SearchFilters
from medifly.services.intent import QueryUnderstanding
from medifly.services.search import assist_service, search_service


def _print_result(rank: int, res) -> None:
    if res.type == "hospital":
        line = f"{rank:>2} {res.similarity:>3}%  {res.name}  ({res.location or '?'})  {res.price_range}"
        if res.specialties:
            more = f" +{res.more_specialties}" if res.more_specialties else ""
            line += f"  [{', '.join(res.specialties)}{more}]"
    else:
        line = f"{rank:>2} {res.similarity:>3}%  {res.name}  {res.specialty} @ {res.hospital} ({res.location})  {res.experience}"
    print(line)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Query the Medifly vector search")
    ap.add_argument("--q", required=True, help="query text")
    ap.add_argument("--type", choices=["hospital", "doctor"], help="skip query understanding and search this entity type")
    ap.add_argument("--config", default=None, help="runtime YAML (default: configs/runtime.yaml or $MEDIFLY_RUNTIME)")
    ap.add_argument("--country")
    ap.add_argument("--city")
    ap.add_argument("--specialty")
    ap.add_argument("--halal", action="store_true", help="halal-certified hospitals only")
    ap.add_argument("--min-rating", type=float)
    ap.add_argument("--min-experience", type=int)
    ap.add_argument("--threshold", type=float, help="similarity threshold (default 0.5)")
    ap.add_argument("--limit", type=int, help="max results (default 12)")
    ap.add_argument("--no-llm", action="store_true", help="use the rule-based query understanding only")
    ap.add_argument("--intent-only", action="store_true", help="print the understood intent and stop")
    ap.add_argument("--json", action="store_true", help="output JSON instead of pretty text")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    understanding = QueryUnderstanding() if args.no_llm else build_understanding(args.config)

    if args.intent_only:
        intent = understanding.understand(args.q)
        print(json.dumps(intent.model_dump(by_alias=True, exclude_none=True), ensure_ascii=False, indent=2))
        return 0

    try:
        dispatcher = build_dispatcher(args.config)
        if args.type:
            filters = SearchFilters(
                country=args.country,
                city=args.city,
                specialty=args.specialty,
                is_halal=True if args.halal else None,
                min_rating=args.min_rating,
                min_experience=args.min_experience,
                threshold=args.threshold,
                limit=args.limit,
            )
            out = search_service(dispatcher, args.q, args.type, filters)
        else:
            out = assist_service(understanding, dispatcher, args.q)
    except SearchError as e:
        print(f"[error] {e.message} ({e.detail})", file=sys.stderr)
        return 1

    if args.json:
        payload = {
            **out,
            "results": [r.model_dump(by_alias=True, exclude_none=True) for r in out["results"]],
        }
        if "intent" in out:
            payload["intent"] = out["intent"].model_dump(by_alias=True, exclude_none=True)
        print(json.dumps(payload, ensure_ascii=False))
        return 0

    if "intent" in out:
        intent = out["intent"]
        print(f"> {intent.response_text}")
        print(f"  [{intent.entity_type}] {intent.query_text!r} {intent.filters.model_dump(by_alias=True, exclude_none=True)}")
    print(f"{out['count']} result(s)")
    for rank, res in enumerate(out["results"], 1):
        _print_result(rank, res)
    if "intent" in out:
        print("Next:")
        for action in out["intent"].suggested_actions:
            print(f"  - {action.text}  ({action.entity_type}: {action.query!r})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
