"""
Tests for best-score storage.
"""

import json

import pytest

from bunny_bag.core.config_loader import load_config
from bunny_bag.core.persistence import JsonScoreStore, MemoryScoreStore, ScoreStore


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "best.json"


class TestJsonScoreStore:
    """Test the JSON-file store."""

    def test_missing_file_reads_zero(self, store_path, config):
        assert JsonScoreStore(store_path, config=config).load() == 0

    def test_save_then_load(self, store_path, config):
        store = JsonScoreStore(store_path, config=config)

        assert store.save(120) is True
        assert store.load() == 120

        data = json.loads(store_path.read_text())
        assert data == {config.storage.best_score_key: 120}

    def test_preserves_other_keys(self, store_path, config):
        store_path.write_text(json.dumps({"volume": 3}))
        store = JsonScoreStore(store_path, config=config)
        store.save(40)

        data = json.loads(store_path.read_text())
        assert data["volume"] == 3
        assert data[config.storage.best_score_key] == 40

    @pytest.mark.parametrize("content", [
        "not json{",
        "[1, 2, 3]",
        json.dumps({"bunnyBagBestScore": "lots"}),
        json.dumps({"bunnyBagBestScore": -5}),
        json.dumps({"bunnyBagBestScore": True}),
        json.dumps({"bunnyBagBestScore": 12.5}),
    ])
    def test_corrupt_values_read_zero(self, store_path, content):
        """Anything but a non-negative integer degrades to 0."""
        store_path.write_text(content)
        assert JsonScoreStore(store_path, key="bunnyBagBestScore").load() == 0

    def test_unwritable_location(self, tmp_path, config):
        """Save reports failure instead of raising."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = JsonScoreStore(blocker / "best.json", config=config)

        assert store.save(10) is False
        assert store.load() == 0

    def test_defaults_from_config(self, config):
        store = JsonScoreStore(config=config)
        assert store.path.name == "best_score.json"


class TestMemoryScoreStore:
    """Test the session-only store."""

    def test_round_trip(self):
        store = MemoryScoreStore(initial=7)
        assert store.load() == 7

        store.save(30)
        assert store.load() == 30
        assert store.writes == 1


class TestScoreStoreInterface:
    """Test the abstract store contract."""

    def test_base_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            ScoreStore()

    def test_subclass_must_implement_save(self):
        class ReadOnly(ScoreStore):
            def load(self):
                return 0

        with pytest.raises(TypeError):
            ReadOnly()
