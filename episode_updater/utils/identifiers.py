"""Episode identifier extraction."""

import re

EPISODE_PATH_PATTERN = re.compile(r"/episode/([^/?]+)")


def extract_episode_id(url: str) -> str:
    """
    Extract the episode ID from an episode URL.

    Values that are not https URLs are treated as already-extracted IDs and
    returned unchanged. An empty string means the URL has no /episode/<id> part.

    Examples:
        https://creators.spotify.com/pod/show/abc/episode/4xYz?si=1 -> "4xYz"
        4xYz -> "4xYz"
    """
    if "https://" not in url:
        return url

    match = EPISODE_PATH_PATTERN.search(url)
    if not match:
        return ""
    return match.group(1)
