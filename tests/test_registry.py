"""Tests for the rating system registry."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from badminton_elo.core.config import RatingSystemConfig
from badminton_elo.core.errors import UnknownSystemError
from badminton_elo.models import MatchOutcome, Participant, ParticipantKind
from badminton_elo.ranking import RatingSystemRegistry, create_registry

CONFIGS_DIR = Path(__file__).parent.parent / "configs"


def rout():
    return MatchOutcome(
        21,
        5,
        side_a=(Participant(id="a", rating=1500, games_played=50),),
        side_b=(Participant(id="b", rating=1500, games_played=50),),
    )


@pytest.fixture
def registry():
    return RatingSystemRegistry()


class TestSelection:
    """Tests for selecting the active system."""

    def test_default_is_standard(self, registry):
        """Test a new registry starts on the standard system."""
        assert registry.current() == "standard"

    def test_select(self, registry):
        """Test selecting a registered system makes it active."""
        registry.select("fifa")
        assert registry.current() == "fifa"
        batch = registry.process(rout())
        assert batch.system == "fifa"

    def test_select_is_case_insensitive(self, registry):
        """Test names are matched case-insensitively."""
        registry.select(" FIFA ")
        assert registry.current() == "fifa"

    def test_unknown_system_keeps_selection(self, registry):
        """Test an unknown name raises and leaves the selection unchanged."""
        registry.select("linear")
        with pytest.raises(UnknownSystemError) as exc_info:
            registry.select("elo-9000")
        assert registry.current() == "linear"
        assert "fifa" in exc_info.value.available
        assert isinstance(exc_info.value, KeyError)

    def test_unknown_default_rejected(self):
        """Test the initial selection must be registered."""
        with pytest.raises(UnknownSystemError):
            RatingSystemRegistry(default="nope")

    def test_explicit_system_overrides_selection(self, registry):
        """Test passing a system name ignores the active selection."""
        registry.select("aggressive")
        assert registry.process(rout(), system="standard").system == "standard"
        assert registry.current() == "aggressive"


class TestListing:
    """Tests for listing and looking up systems."""

    def test_builtin_names(self, registry):
        """Test the built-in systems are registered in order."""
        assert registry.names == [
            "standard",
            "fifa",
            "conservative",
            "aggressive",
            "linear",
            "score_weighted",
        ]

    def test_list_systems(self, registry):
        """Test listing reports margin support per system."""
        infos = {info.name: info for info in registry.list_systems()}
        assert infos["standard"].supports_margin_scaling is False
        assert infos["fifa"].supports_margin_scaling is True
        assert infos["score_weighted"].supports_margin_scaling is True
        assert infos["fifa"].description

    def test_contains_and_get(self, registry):
        """Test membership and config lookup."""
        assert "Linear" in registry
        assert "nope" not in registry
        assert registry.get("linear").name == "linear"
        with pytest.raises(UnknownSystemError):
            registry.get("nope")


class TestRegister:
    """Tests for adding systems."""

    def test_register_new(self, registry):
        """Test a new system becomes selectable."""
        registry.register(RatingSystemConfig(name="Club"))
        registry.select("club")
        assert registry.current() == "club"

    def test_duplicate_rejected(self, registry):
        """Test an existing name is not silently replaced."""
        with pytest.raises(ValueError, match="already registered"):
            registry.register(RatingSystemConfig(name="standard"))

    def test_replace(self, registry):
        """Test replacing a system swaps its config."""
        registry.register(RatingSystemConfig(name="standard", description="house"), replace=True)
        assert registry.get("standard").description == "house"


class TestCompare:
    """Tests for comparing systems on one match."""

    def test_compare_all(self, registry):
        """Test every system rates the match and the selection is untouched."""
        registry.select("linear")
        batches = registry.compare(rout())
        assert set(batches) == set(registry.names)
        assert registry.current() == "linear"
        changes = {
            name: batch.update_for("a", ParticipantKind.PLAYER).rating_change
            for name, batch in batches.items()
        }
        assert changes["standard"] == 16
        assert changes["fifa"] > changes["conservative"] > changes["standard"]


class TestConcurrency:
    """Tests for concurrent use of one registry."""

    def test_selection_races_do_not_mix_systems(self, registry):
        """Test each call is computed entirely by one system."""
        expected = {
            name: registry.process(rout(), system=name).update_for("a", ParticipantKind.PLAYER)
            for name in registry.names
        }

        def flip(i):
            registry.select(registry.names[i % len(registry.names)])

        def rate(_):
            batch = registry.process(rout())
            update = batch.update_for("a", ParticipantKind.PLAYER)
            return batch.system, update

        with ThreadPoolExecutor(max_workers=8) as pool:
            flips = [pool.submit(flip, i) for i in range(200)]
            results = list(pool.map(rate, range(200)))
            for future in flips:
                future.result()

        for system, update in results:
            assert update == expected[system]


class TestCreateRegistry:
    """Tests for building a registry from YAML."""

    def test_builtins_only(self):
        """Test the default registry selects standard."""
        assert create_registry().current() == "standard"

    def test_custom_systems_file(self):
        """Test systems and the default are read from YAML."""
        registry = create_registry(CONFIGS_DIR / "rating_systems.yaml")
        assert "club" in registry
        assert registry.current() == "club"
        assert "fifa" in registry

    def test_explicit_default_wins(self):
        """Test an explicit default overrides the file's."""
        registry = create_registry(CONFIGS_DIR / "rating_systems.yaml", default="fifa")
        assert registry.current() == "fifa"

    def test_missing_file(self, tmp_path):
        """Test a missing systems file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            create_registry(tmp_path / "missing.yaml")
