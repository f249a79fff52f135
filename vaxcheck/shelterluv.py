"""Shelterluv REST API client.

Fetches the three feeds the vaccine check needs:

- in-custody animals (discovery, paginated)
- the org-wide scheduled vaccine list (feed a, paginated)
- one animal's full vaccine history (feed b)

Responses come either wrapped (``{"animals": [...], "has_more": true}``) or as
a bare list; both are accepted. Paging stops on an empty page, on
``has_more == false``, or on a short page.

**Error Handling:**
- Non-2xx responses raise ShelterluvError with the status and body
- Network errors propagate as requests.RequestException
- Retries are left to the caller
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional

import requests

from .data_models import AnimalIdentity, ShelterluvSettings

LOG = logging.getLogger(__name__)

ID_FIELDS = (
    "animal_id",
    "internal_id",
    "InternalID",
    "InternalId",
    "AnimalInternalId",
    "ID",
    "id",
)

_LONG_NUMERIC = re.compile(r"^\d{8,}$")
_NUMERIC = re.compile(r"^\d+$")


class ShelterluvError(RuntimeError):
    """Shelterluv answered with a non-success status."""

    def __init__(self, url: str, status_code: int, body: str) -> None:
        super().__init__(f"Shelterluv request to {url} failed with {status_code}: {body}")
        self.url = url
        self.status_code = status_code
        self.body = body


def resolve_vaccine_animal_id(animal: Mapping[str, Any]) -> Optional[str]:
    """Find the internal numeric ID the vaccines API keys an animal by.

    Candidates are the known ID fields in order, then every string or number
    value of the payload. The first candidate of eight or more digits wins;
    failing that, the first all-digit candidate; failing that, None.
    """
    explicit = [
        str(animal[key]).strip()
        for key in ID_FIELDS
        if animal.get(key) is not None and not isinstance(animal.get(key), bool)
    ]
    primitives = [
        str(value).strip()
        for value in animal.values()
        if isinstance(value, (str, int, float)) and not isinstance(value, bool)
    ]
    candidates = explicit + primitives

    for pattern in (_LONG_NUMERIC, _NUMERIC):
        for candidate in candidates:
            if pattern.match(candidate):
                return candidate
    return None


def animal_identity_from_payload(animal: Mapping[str, Any]) -> Optional[AnimalIdentity]:
    """Build the display identity of an animal, or None without a vaccine ID."""
    animal_id = resolve_vaccine_animal_id(animal)
    if animal_id is None:
        return None

    name = str(animal.get("Name") or "").strip() or f"Animal {animal_id}"
    photos = animal.get("Photos")
    photo_url = animal.get("CoverPhoto") or (
        photos[0] if isinstance(photos, list) and photos else None
    )
    return AnimalIdentity(animal_id=animal_id, name=name, photo_url=photo_url or None)


def extract_items(payload: Any, key: str) -> Optional[List[Any]]:
    """Items of a wrapped or bare-list response; None when neither."""
    if isinstance(payload, dict) and isinstance(payload.get(key), list):
        return payload[key]
    if isinstance(payload, list):
        return payload
    return None


class ShelterluvClient:
    """Thin client over the Shelterluv v1 API.

    Parameters
    ----------
    api_key : str
        Bearer token for the organization.
    settings : ShelterluvSettings, optional
        Base URL, page size and timeout.
    session : requests.Session, optional
        Session to reuse (tests pass a mock).
    """

    def __init__(
        self,
        api_key: str,
        settings: ShelterluvSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or ShelterluvSettings()
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            }
        )

    def _url(self, path: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _get_json(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        url = self._url(path)
        LOG.info("GET %s %s", url, params or "")
        response = self.session.get(url, params=params, timeout=self.settings.timeout_seconds)
        if not response.ok:
            raise ShelterluvError(url, response.status_code, response.text)
        return response.json()

    def _paginate(self, path: str, key: str, params: Dict[str, Any]) -> Iterator[Any]:
        limit = self.settings.page_limit
        offset = 0
        while True:
            payload = self._get_json(path, {**params, "limit": limit, "offset": offset})
            batch = extract_items(payload, key)
            if not batch:
                return

            yield from batch

            if isinstance(payload, dict) and payload.get("has_more") is False:
                return
            if len(batch) < limit:
                return
            offset += limit

    def fetch_in_custody_animals(self) -> List[Dict[str, Any]]:
        """All in-custody animals, filtered to the configured animal type."""
        animals = list(
            self._paginate("animals", "animals", {"status_type": self.settings.status_type})
        )
        LOG.info("Fetched %d in-custody animals", len(animals))

        animals = [animal for animal in animals if isinstance(animal, dict)]
        animal_type = self.settings.animal_type
        if animal_type:
            animals = [animal for animal in animals if animal.get("Type") == animal_type]
            LOG.info("%d in-custody animals of type %s", len(animals), animal_type)
        return animals

    def fetch_scheduled_vaccines(self) -> List[Any]:
        """Every scheduled vaccine across the organization."""
        vaccines = list(self._paginate("vaccines", "vaccines", {"status": "scheduled"}))
        LOG.info("Fetched %d scheduled vaccines", len(vaccines))
        return vaccines

    def fetch_animal_vaccines(self, animal_id: str) -> List[Any]:
        """Full vaccine history (completed and scheduled) of one animal."""
        payload = self._get_json(f"animals/{animal_id}/vaccines")
        return extract_items(payload, "vaccines") or []
