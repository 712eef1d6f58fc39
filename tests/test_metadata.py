import json

import requests

from gameshelf.metadata import MetadataEnricher, SteamGridLookup, read_description
from gameshelf.models import ArtworkMatch, GameRecord

from conftest import touch, png


def _record(game_dir, name="Cool Game"):
    exe = touch(game_dir / "cool_game.x86_64")
    return GameRecord(id="cool-game-1", name=name, path=str(exe),
                      source_dir_name=game_dir.name, added_at="2026-01-01T00:00:00+00:00")


class CountingLookup:
    def __init__(self, match=None, error=None):
        self.match = match
        self.error = error
        self.calls = []

    def lookup(self, name):
        self.calls.append(name)
        if self.error:
            raise self.error
        return self.match


def test_description_sidecar_first_line_truncated(tmp_path):
    (tmp_path / "README.txt").write_text("\n\n   " + "x" * 300 + "\nsecond line\n")
    desc = read_description(tmp_path)
    assert len(desc) == 200
    assert desc.endswith("...")


def test_description_file_priority(tmp_path):
    (tmp_path / "readme.txt").write_text("from readme")
    (tmp_path / "about.txt").write_text("from about")
    assert read_description(tmp_path) == "from about"
    (tmp_path / "description.txt").write_text("  from description  ")
    assert read_description(tmp_path) == "from description"


def test_local_sources(tmp_path):
    game_dir = tmp_path / "Cool_Game"
    rec = _record(game_dir)
    touch(game_dir / "wide.png", png(1920, 1080))
    touch(game_dir / "box.jpg", b"")  # not a real image, skipped
    touch(game_dir / "poster.png", png(600, 900))
    (game_dir / "description.txt").write_text("A cool game.")
    lookup = CountingLookup(ArtworkMatch("Remote Name", "https://img/remote.png"))

    MetadataEnricher(lookup).enrich(rec)

    assert rec.icon_ref == str(game_dir / "poster.png")
    assert rec.description == "A cool game."
    # no local title, so the remote display name is used; local art wins
    assert rec.name == "Remote Name"
    assert lookup.calls == ["Cool Game"]


def test_game_json_overrides(tmp_path):
    game_dir = tmp_path / "Cool_Game"
    rec = _record(game_dir)
    touch(game_dir / "art" / "cover.png", png(300, 400))
    (game_dir / "game.json").write_text(json.dumps({
        "title": "Cool Game: Director's Cut",
        "cover_image": "art/cover.png",
        "description": "Curated.",
    }))
    lookup = CountingLookup(ArtworkMatch("Remote", "https://img/x.png"))

    MetadataEnricher(lookup).enrich(rec)

    assert rec.name == "Cool Game: Director's Cut"
    assert rec.icon_ref == str(game_dir / "art" / "cover.png")
    assert rec.description == "Curated."
    assert lookup.calls == []


def test_remote_lookup_is_cached_per_name(tmp_path):
    lookup = CountingLookup(ArtworkMatch(None, "https://img/cover.png"))
    enricher = MetadataEnricher(lookup)
    a = _record(tmp_path / "A")
    b = _record(tmp_path / "B")
    enricher.enrich(a)
    enricher.enrich(b)
    assert lookup.calls == ["Cool Game"]
    assert a.icon_ref == b.icon_ref == "https://img/cover.png"
    assert a.name == "Cool Game"


def test_lookup_failure_keeps_defaults(tmp_path):
    lookup = CountingLookup(error=requests.ConnectionError("offline"))
    rec = _record(tmp_path / "A")
    MetadataEnricher(lookup).enrich(rec)
    assert rec.name == "Cool Game"
    assert rec.icon_ref == ""


class FakeResponse:
    def __init__(self, data, status=200):
        self.data = data
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status}")

    def json(self):
        return {"success": True, "data": self.data}


class FakeSession:
    def __init__(self, routes):
        self.routes = routes
        self.headers = {}
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        for suffix, resp in self.routes.items():
            if url.endswith(suffix):
                return resp
        return FakeResponse([], 404)


def test_steamgrid_lookup():
    session = FakeSession({
        "/search/autocomplete/Hollow%20Knight": FakeResponse([{"id": 42, "name": "Hollow Knight"}]),
        "/grids/game/42?dimensions=600x900": FakeResponse([{"url": "https://cdn/grid.png"}]),
    })
    match = SteamGridLookup("secret", session=session).lookup("Hollow Knight")
    assert match == ArtworkMatch("Hollow Knight", "https://cdn/grid.png")
    assert session.headers["Authorization"] == "Bearer secret"


def test_steamgrid_lookup_no_results():
    session = FakeSession({"/search/autocomplete/Nothing": FakeResponse([])})
    assert SteamGridLookup("k", session=session).lookup("Nothing") is None


def test_malformed_lookup_response_keeps_local_fields(tmp_path):
    game_dir = tmp_path / "Cool_Game"
    rec = _record(game_dir)
    (game_dir / "about.txt").write_text("Local blurb.")
    session = FakeSession({
        "/search/autocomplete/Cool%20Game": FakeResponse([{"id": 7, "name": "Cool Game"}]),
        "/grids/game/7?dimensions=600x900": FakeResponse(["not-a-dict"]),
    })

    MetadataEnricher(SteamGridLookup("k", session=session)).enrich(rec)

    assert rec.description == "Local blurb."
    assert rec.name == "Cool Game"
    assert rec.icon_ref == ""


def test_sidecar_and_game_json_share_truncation(tmp_path):
    game_dir = tmp_path / "Cool_Game"
    rec = _record(game_dir)
    (game_dir / "game.json").write_text(json.dumps({"description": "y" * 250}))
    MetadataEnricher().enrich(rec)
    assert len(rec.description) == 200
    assert rec.description.endswith("...")
