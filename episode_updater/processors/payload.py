"""Update payload assembly."""

from typing import Any, Mapping

from ..exceptions import MissingPublishDate
from ..models.episode import EpisodeUpdateRequest
from ..models.field import FieldSchema
from ..utils.log import get_logger

logger = get_logger("payload")

PUBLISH_ON_FIELD = "publishOn"
WIZARD_PUBLISH_FIELD = "wizardDraftedToPublishOn"

# Keys that may hold the current publish date, in priority order
PUBLISH_DATE_KEYS = ("publishOn", "publishedAt", "releaseDate", "published")

# Wrapper keys the overview endpoint may nest the episode under
EPISODE_WRAPPER_KEYS = ("episode", "data")


def unwrap_episode_data(episode_data: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the episode object, unwrapping one 'episode' or 'data' level if present."""
    for key in EPISODE_WRAPPER_KEYS:
        nested = episode_data.get(key)
        if isinstance(nested, Mapping):
            return nested
    return episode_data


def find_publish_date(episode: Mapping[str, Any]) -> Any:
    """
    Return the first usable publish date found in the episode data.

    Strings must be non-empty and not "null"; numbers (epoch timestamps) are
    passed through as-is. Booleans such as `published: true` are not dates.
    """
    for key in PUBLISH_DATE_KEYS:
        value = episode.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, str) and value and value != "null":
            return value
        if isinstance(value, (int, float)):
            return value
    return None


class PayloadBuilder:
    """Merge CSV values with the fields the update endpoint always requires."""

    def __init__(self, schema: FieldSchema):
        self.schema = schema

    def build(self, request: EpisodeUpdateRequest, episode_data: Mapping[str, Any]) -> dict[str, Any]:
        """
        Build the JSON body for an update request.

        Only the CSV fields plus publishOn (and wizardDraftedToPublishOn when
        the episode has one) are sent; the API keeps every other field.

        Args:
            request: Validated values from the CSV row
            episode_data: Current episode data from the overview endpoint

        Returns:
            Payload dict with typed JSON values

        Raises:
            MissingPublishDate: If publishOn is neither in the row nor in the episode data
        """
        episode = unwrap_episode_data(episode_data)

        payload: dict[str, Any] = {}
        for update in request.updates:
            payload[update.field] = self.schema.coerce(update.field, update.value)

        if PUBLISH_ON_FIELD not in payload:
            publish_on = find_publish_date(episode)
            if publish_on is None:
                raise MissingPublishDate(request.episode_id, list(episode.keys()))
            logger.debug("Using current publishOn: %s", publish_on)
            payload[PUBLISH_ON_FIELD] = publish_on

        # Leaving this out clears a scheduled draft-to-publish date
        wizard_date = episode.get(WIZARD_PUBLISH_FIELD)
        if wizard_date is not None and wizard_date != "":
            logger.debug("Including %s: %s", WIZARD_PUBLISH_FIELD, wizard_date)
            payload[WIZARD_PUBLISH_FIELD] = wizard_date

        return payload
