from dataclasses import replace
from pathlib import Path

from lunchsquad.config import DEFAULT_APP_CONFIG
from lunchsquad.data_ingestion.config import IngestionConfig
from lunchsquad.data_ingestion.ingest import load_restaurants, main, run_ingestion
from lunchsquad.recommendations.models import DIETARY_RESTRICTIONS
from lunchsquad.store import build_store
from lunchsquad.store.memory import MemoryStore


def test_bundled_seed_loads():
    restaurants = load_restaurants()

    assert len(restaurants) == 10
    for r in restaurants:
        assert r.name
        assert r.cuisine_types
        assert 0.0 <= r.rating <= 5.0
        assert set(r.dietary_restrictions) <= set(DIETARY_RESTRICTIONS)

    olive = next(r for r in restaurants if r.name == "Olive & Fig")
    assert olive.cuisine_types == ["mediterranean", "greek"]


def test_values_are_normalized(tmp_path: Path):
    csv = tmp_path / "seed.csv"
    csv.write_text(
        "name,cuisine_types,dietary_restrictions,rating\n"
        "Noodle Hut,\"Chinese, Thai , chinese\",\"Gluten Free, paleo\",4.8/5\n"
        "Sky Bar,american,,9\n"
        "  ,italian,,4\n"
        "Noodle Hut,chinese,vegan,3.5\n"
    )

    restaurants = load_restaurants(IngestionConfig(seed_csv=csv))

    assert [r.name for r in restaurants] == ["Sky Bar", "Noodle Hut"]
    sky, noodle = restaurants
    assert sky.rating == 5.0
    assert sky.description is None
    assert sky.dietary_restrictions == []
    # later duplicate row wins
    assert noodle.rating == 3.5
    assert noodle.dietary_restrictions == ["vegan"]


def test_list_cells_are_split_and_cleaned(tmp_path: Path):
    csv = tmp_path / "seed.csv"
    csv.write_text(
        "name,cuisine_types,dietary_restrictions,rating\n"
        "Noodle Hut,\"Chinese, Thai , chinese\",\"Gluten Free, paleo\",4.8/5\n"
    )

    (noodle,) = load_restaurants(IngestionConfig(seed_csv=csv))

    assert noodle.cuisine_types == ["chinese", "thai"]
    assert noodle.dietary_restrictions == ["gluten_free"]
    assert noodle.rating == 4.8


def test_reingestion_updates_in_place():
    store = MemoryStore()
    config = IngestionConfig(seed_csv=Path(__file__).resolve().parent.parent / "data" / "restaurants.csv")

    assert run_ingestion(store, config) == 10
    assert run_ingestion(store, config) == 10
    assert len(store.list_restaurants()) == 10


def test_build_store_seeds_only_when_asked():
    seeded = build_store(replace(DEFAULT_APP_CONFIG, store_backend="memory", seed_demo_data=True))
    empty = build_store(replace(DEFAULT_APP_CONFIG, store_backend="memory", seed_demo_data=False))

    assert len(seeded.list_restaurants()) == 10
    assert empty.list_restaurants() == []


def test_main_ingests_once(monkeypatch):
    built = []

    def fake_build_store(config):
        built.append(config)
        return MemoryStore()

    monkeypatch.setattr("lunchsquad.store.build_store", fake_build_store)

    assert main() == 10
    assert len(built) == 1
    assert built[0].seed_demo_data is False
