"""
D&D Beyond endpoint URLs.

API hosts:
- character-service: characters, gameplay updates, game data (bearer token)
- monster-service: monster search (bearer token)
- www: campaigns and site config (cookies + bearer token)
"""

from urllib.parse import quote, urlencode

CHARACTER_SERVICE = "https://character-service.dndbeyond.com"
MONSTER_SERVICE = "https://monster-service.dndbeyond.com"
WATERDEEP = "https://www.dndbeyond.com"

_CHARACTER_V5 = f"{CHARACTER_SERVICE}/character/v5"
_GAME_DATA = f"{_CHARACTER_V5}/game-data"

# Sharing setting 2 includes content shared through campaigns
SHARING_SETTING = 2


# Characters


def character_get(character_id: int) -> str:
    return f"{_CHARACTER_V5}/character/{character_id}?includeCustomItems=true"


def character_list(user_id: int) -> str:
    return f"{_CHARACTER_V5}/characters/list?userId={user_id}"


def character_update_hp() -> str:
    return f"{_CHARACTER_V5}/life/hp/damage-taken"


def character_limited_use() -> str:
    return f"{_CHARACTER_V5}/action/limited-use"


def character_inspiration() -> str:
    return f"{_CHARACTER_V5}/character/inspiration"


def character_condition() -> str:
    return f"{_CHARACTER_V5}/condition"


def character_short_rest(character_id: int) -> str:
    return f"{_CHARACTER_V5}/character/rest/short?characterId={character_id}"


def character_long_rest(character_id: int) -> str:
    return f"{_CHARACTER_V5}/character/rest/long?characterId={character_id}"


def character_description(field: str) -> str:
    """Description fields: name, alignment, lifestyle, faith, traits, notes, ..."""
    return f"{_CHARACTER_V5}/description/{quote(field)}"


# Game data


def game_data_items(campaign_id: int | None = None) -> str:
    params = {"sharingSetting": SHARING_SETTING}
    if campaign_id:
        params["campaignId"] = campaign_id
    return f"{_GAME_DATA}/items?{urlencode(params)}"


def game_data_feats() -> str:
    return f"{_GAME_DATA}/feats"


def game_data_classes() -> str:
    return f"{_GAME_DATA}/classes"


def game_data_races() -> str:
    return f"{_GAME_DATA}/races"


def game_data_backgrounds() -> str:
    return f"{_GAME_DATA}/backgrounds"


def game_data_always_known_spells(class_id: int, class_level: int = 20) -> str:
    params = {
        "classId": class_id,
        "classLevel": class_level,
        "sharingSetting": SHARING_SETTING,
    }
    return f"{_GAME_DATA}/always-known-spells?{urlencode(params)}"


def game_data_always_prepared_spells(class_id: int, class_level: int = 20) -> str:
    params = {
        "classId": class_id,
        "classLevel": class_level,
        "sharingSetting": SHARING_SETTING,
    }
    return f"{_GAME_DATA}/always-prepared-spells?{urlencode(params)}"


# Monsters


def monster_search(
    search: str = "",
    skip: int = 0,
    take: int = 20,
    show_homebrew: bool = False,
    sources: str | None = None,
) -> str:
    params: dict[str, str | int] = {"search": search, "skip": skip, "take": take}
    if show_homebrew:
        params["showHomebrew"] = "t"
    if sources:
        params["sources"] = sources
    return f"{MONSTER_SERVICE}/v1/Monster?{urlencode(params, quote_via=quote)}"


def monster_get(monster_id: int) -> str:
    return f"{MONSTER_SERVICE}/v1/Monster/{monster_id}"


def monster_get_by_ids(ids: list[int]) -> str:
    return f"{MONSTER_SERVICE}/v1/Monster?{urlencode([('ids', i) for i in ids])}"


# Campaigns


def campaign_list() -> str:
    return f"{WATERDEEP}/api/campaign/stt/active-campaigns"


def campaign_user_campaigns() -> str:
    return f"{WATERDEEP}/api/campaign/stt/user-campaigns"


def campaign_characters(campaign_id: int) -> str:
    return f"{WATERDEEP}/api/campaign/stt/active-short-characters/{campaign_id}"


def config_json() -> str:
    return f"{WATERDEEP}/api/config/json"
