from episode_updater.utils.identifiers import extract_episode_id


def test_extracts_id_from_url():
    assert extract_episode_id("https://x/episode/ABC123?x=1") == "ABC123"
    assert extract_episode_id(
        "https://creators.spotify.com/pod/show/myshow/episode/4xYzAbC/details"
    ) == "4xYzAbC"


def test_bare_id_is_returned_unchanged():
    assert extract_episode_id("ABC123") == "ABC123"
    # Only https URLs are parsed
    assert extract_episode_id("http://x/episode/ABC123") == "http://x/episode/ABC123"


def test_url_without_episode_segment():
    assert extract_episode_id("https://x/show/ABC123") == ""
    assert extract_episode_id("https://x/episode/") == ""
