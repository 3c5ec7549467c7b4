"""Unit tests for the game-type registry and selectors."""

import pytest

from geoquiz.domain.enums import GameKind
from geoquiz.domain.errors import UnknownGameType
from geoquiz.domain.game_types import (
    build_default_registry,
    country_key,
    effective_game_type,
    game_type_from_country,
    image_map_id,
    is_image_game_type,
    is_world_game_type,
    kind_of,
    world_category,
)


class TestRegistry:
    def test_default_types_are_registered(self, registry):
        assert "country:switzerland" in registry
        assert "country:slovenia" in registry
        assert "image:garten" in registry
        assert len(registry.by_kind(GameKind.WORLD)) == 5

    def test_lookup_known(self, registry):
        config = registry.lookup("country:slovenia")
        assert config.timeout_penalty == 250
        assert config.score_scale_factor == 60

    def test_lookup_unknown_falls_back(self, registry, caplog):
        config = registry.lookup("country:atlantis")
        assert config.id == "country:switzerland"
        assert "country:atlantis" in caplog.text

    def test_lookup_none_is_default(self, registry):
        assert registry.lookup(None) is registry.default

    def test_lookup_strict_rejects_unknown(self, registry):
        with pytest.raises(UnknownGameType):
            registry.lookup_strict("world:oceans")

    def test_read_only(self, registry):
        with pytest.raises(TypeError):
            registry["country:austria"] = registry.default

    def test_configs_are_frozen(self, registry):
        with pytest.raises(AttributeError):
            registry.default.score_scale_factor = 1

    def test_configurable_default(self):
        registry = build_default_registry("country:slovenia")
        assert registry.lookup(None).id == "country:slovenia"

    def test_unregistered_default_rejected(self):
        with pytest.raises(ValueError):
            build_default_registry("country:atlantis")

    def test_localized_names(self, registry):
        name = registry["country:switzerland"].name
        assert name.get("de") == "Schweiz"
        assert name.get("sl") == "Švica"
        assert name.get("fr") == "Switzerland"


class TestSelectors:
    def test_legacy_country(self):
        assert game_type_from_country("slovenia") == "country:slovenia"

    def test_effective_prefers_game_type(self):
        assert effective_game_type("world:capitals", "slovenia") == "world:capitals"

    def test_effective_falls_back_to_country(self):
        assert effective_game_type(None, "slovenia") == "country:slovenia"
        assert effective_game_type(None, None) == "country:switzerland"

    def test_world_category(self):
        assert is_world_game_type("world:unesco")
        assert world_category("world:unesco") == "unesco"
        assert world_category("country:switzerland") is None

    def test_image_map_id(self):
        assert is_image_game_type("image:garten")
        assert image_map_id("image:garten") == "garten"
        assert image_map_id("world:capitals") is None

    def test_none_is_neither(self):
        assert not is_world_game_type(None)
        assert not is_image_game_type(None)

    def test_selector(self, registry):
        assert registry["world:highest-mountains"].selector == "highest-mountains"
        assert registry["image:garten"].selector == "garten"

    def test_kind_of(self):
        assert kind_of("world:capitals") == GameKind.WORLD
        assert kind_of("image:garten") == GameKind.IMAGE
        assert kind_of("country:atlantis") == GameKind.COUNTRY
        with pytest.raises(UnknownGameType):
            kind_of("moon:craters")

    def test_country_key(self):
        assert country_key("country:slovenia") == "slovenia"
        assert country_key("world:capitals") is None
