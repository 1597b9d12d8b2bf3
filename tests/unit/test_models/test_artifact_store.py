"""Tests for ArtifactStore."""

from pathlib import Path

from buildreview.models.artifact import ArtifactStore


class TestArtifactStore:
    """Test artifact de-duplication and ordering."""

    def test_duplicate_path_stored_once(self):
        store = ArtifactStore()
        store.add("/work/App.ipa")
        store.add(Path("/work/App.ipa"))

        assert store.all() == (Path("/work/App.ipa"),)

    def test_normalized_paths_are_equal(self):
        store = ArtifactStore()
        store.add("/work/App.ipa", "/work/./dist/../App.ipa")
        assert len(store) == 1

    def test_first_insertion_order_kept(self):
        store = ArtifactStore()
        store.add("/work/b.zip", "/work/a.zip")
        store.add("/work/b.zip", "/work/c.zip")

        assert store.all() == (Path("/work/b.zip"), Path("/work/a.zip"), Path("/work/c.zip"))

    def test_nested_iterables_flattened(self):
        store = ArtifactStore()
        store.add(["/work/a.zip", ["/work/b.zip"]], "/work/c.zip")
        assert [path.name for path in store] == ["a.zip", "b.zip", "c.zip"]

    def test_snapshot_is_immutable(self):
        store = ArtifactStore()
        store.add("/work/a.zip")
        snapshot = store.all()
        store.add("/work/b.zip")

        assert isinstance(snapshot, tuple)
        assert len(snapshot) == 1
