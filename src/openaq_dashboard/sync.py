"""Parameter sync: OpenAQ /v3/parameters -> local mirror."""

from typing import List

from pydantic import ValidationError

from openaq_dashboard.core.client import OpenAQClient
from openaq_dashboard.core.logging import get_logger
from openaq_dashboard.core.normalize import normalize_parameter, results
from openaq_dashboard.core.schemas import ParameterRecord
from openaq_dashboard.storage.parameter_store import ParameterStore

logger = get_logger(__name__)


def parameter_records(items: List[dict]) -> List[ParameterRecord]:
    """Normalize upstream parameter items; rows without id or name are dropped."""
    records = []
    for item in items:
        if not isinstance(item, dict):
            continue
        norm = normalize_parameter(item)
        if norm["id"] is None or not norm["name"]:
            continue
        try:
            records.append(
                ParameterRecord(
                    remote_id=norm["id"],
                    name=norm["name"],
                    display_name=norm["display_name"],
                    units=norm["units"],
                    description=norm["description"],
                )
            )
        except ValidationError as e:
            logger.warning(f"Skipping malformed parameter {item.get('id')}: {e}")
    return records


def sync_parameters(client: OpenAQClient, store: ParameterStore) -> int:
    """Fetch every parameter and upsert it. Upstream errors propagate."""
    envelope = client.parameters()
    records = parameter_records(results(envelope))
    written = store.upsert_many(records)
    logger.info(f"Parameters synced: {written}")
    return written
