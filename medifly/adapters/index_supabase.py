"""
Adapter for the Supabase/Postgres (pgvector) index.
Implements VectorIndexPort by calling the two similarity RPCs:
  - search_hospitals_vector(query_embedding, match_threshold, match_count, filter_*)
  - search_doctors_vector(query_embedding, match_threshold, match_count, filter_*)
Rows come back with a `similarity` column and JSONB sub-collections (services, facilities, ...).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from medifly.ports import VectorIndexPort

logger = logging.getLogger(__name__)

HOSPITAL_RPC = "search_hospitals_vector"
DOCTOR_RPC = "search_doctors_vector"


class SupabaseVectorIndex(VectorIndexPort):
    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[Client] = None,
        hospital_rpc: str = HOSPITAL_RPC,
        doctor_rpc: str = DOCTOR_RPC,
    ):
        if client is None:
            if not url or not key:
                raise ValueError("Missing Supabase environment variables (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")
            client = create_client(url, key)
        self.client = client
        self.hospital_rpc = hospital_rpc
        self.doctor_rpc = doctor_rpc

    def _call(self, fn: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        # postgrest raises APIError on RPC failures; the dispatcher wraps it
        resp = self.client.rpc(fn, params).execute()
        data = getattr(resp, "data", None)
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return list(data)

    def search_hospitals(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._call(self.hospital_rpc, params)

    def search_doctors(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._call(self.doctor_rpc, params)
