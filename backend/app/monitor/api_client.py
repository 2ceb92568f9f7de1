"""
Blocking HTTP client for the inventory backend.

The monitor runs these calls in the default executor; every method raises
`requests.RequestException` on connectivity or HTTP errors.
"""
import logging
from typing import List, Optional

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class InventoryApi:

    def __init__(
        self,
        base_url: str = settings.API_URL,
        timeout: float = settings.HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: Optional[dict] = None) -> dict:
        response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _post(self, path: str, json: Optional[dict] = None) -> dict:
        response = self.session.post(f"{self.base_url}{path}", json=json, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def fetch_medicines(self, page_size: int = PAGE_SIZE, active_only: bool = True) -> List[dict]:
        """Full medicine snapshot, paging through GET /medicines until `total` rows are read."""
        medicines: List[dict] = []
        page = 1
        while True:
            params = {"page": page, "limit": page_size}
            if active_only:
                params["is_active"] = "true"
            body = self._get("/medicines", params=params)
            rows = body.get("medicines", [])
            medicines.extend(rows)
            if not rows or len(medicines) >= body.get("total", 0):
                break
            page += 1
        logger.info(f"[InventoryApi] Fetched {len(medicines)} medicines in {page} page(s)")
        return medicines

    def get_stats(self) -> dict:
        return self._get("/notifications/stats")

    def trigger_inventory_check(self) -> dict:
        return self._post("/notifications/check-inventory")

    def close(self):
        self.session.close()
