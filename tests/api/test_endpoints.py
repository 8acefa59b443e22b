"""Tests for endpoint URL builders."""

from dndbeyond.api import endpoints


class TestCharacterEndpoints:
    """Test character-service URLs."""

    def test_character_get(self):
        assert endpoints.character_get(42) == (
            "https://character-service.dndbeyond.com/character/v5/character/42"
            "?includeCustomItems=true"
        )

    def test_character_list(self):
        assert endpoints.character_list(7).endswith("/characters/list?userId=7")

    def test_rests(self):
        assert endpoints.character_short_rest(3).endswith("/rest/short?characterId=3")
        assert endpoints.character_long_rest(3).endswith("/rest/long?characterId=3")

    def test_description_field(self):
        assert endpoints.character_description("name").endswith("/description/name")


class TestGameDataEndpoints:
    """Test game-data URLs."""

    def test_items_without_campaign(self):
        assert endpoints.game_data_items().endswith("/game-data/items?sharingSetting=2")

    def test_items_with_campaign(self):
        assert endpoints.game_data_items(99).endswith(
            "/game-data/items?sharingSetting=2&campaignId=99"
        )

    def test_always_known_spells_default_level(self):
        assert endpoints.game_data_always_known_spells(5).endswith(
            "always-known-spells?classId=5&classLevel=20&sharingSetting=2"
        )


class TestMonsterEndpoints:
    """Test monster-service URLs."""

    def test_search_encodes_query(self):
        url = endpoints.monster_search("ancient red dragon")
        assert url == (
            "https://monster-service.dndbeyond.com/v1/Monster"
            "?search=ancient%20red%20dragon&skip=0&take=20"
        )

    def test_search_with_homebrew_and_sources(self):
        url = endpoints.monster_search("orc", skip=20, show_homebrew=True, sources="1,2")
        assert url.endswith("?search=orc&skip=20&take=20&showHomebrew=t&sources=1%2C2")

    def test_get_by_ids(self):
        assert endpoints.monster_get_by_ids([1, 2]).endswith("/v1/Monster?ids=1&ids=2")


class TestCampaignEndpoints:
    """Test www.dndbeyond.com URLs."""

    def test_campaign_characters(self):
        assert endpoints.campaign_characters(5) == (
            "https://www.dndbeyond.com/api/campaign/stt/active-short-characters/5"
        )

    def test_config_json(self):
        assert endpoints.config_json() == "https://www.dndbeyond.com/api/config/json"
