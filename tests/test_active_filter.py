"""
Tests for the view selector types.
"""

from bookmark_manager.core.active_filter import (
    AbandonedView,
    ActiveFilter,
    AllView,
    CategoryView,
    FavoritesView,
    FilterType,
    FolderView,
    LabelView,
    PinnedView,
    UnknownView,
)


class TestActiveFilterFromDict:
    """Tests for ActiveFilter.from_dict."""

    def test_simple_views(self):
        """Test the id-less views map to their classes with default names."""
        assert ActiveFilter.from_dict({"type": "all", "id": "all"}) == AllView()
        assert ActiveFilter.from_dict({"type": "favorites"}) == FavoritesView()
        assert isinstance(ActiveFilter.from_dict({"type": "abandoned"}), AbandonedView)

    def test_scoped_views(self):
        """Test category, folder and pinned views carry their id."""
        category = ActiveFilter.from_dict({"type": "category", "id": "c1", "name": "Work"})
        folder = ActiveFilter.from_dict({"type": "folder", "id": "f1", "name": "Python"})
        pinned = ActiveFilter.from_dict({"type": "pinned", "id": "f2", "name": "News"})

        assert category == CategoryView("Work", category_id="c1")
        assert folder == FolderView("Python", folder_id="f1")
        assert pinned == PinnedView("News", folder_id="f2")

    def test_label_view_with_list(self):
        view = ActiveFilter.from_dict({"type": "label", "id": ["l1", "l2"], "name": "tags"})
        assert view == LabelView("tags", label_ids=frozenset({"l1", "l2"}))

    def test_label_view_without_list_selects_nothing(self):
        """Test a scalar label id yields an empty label set."""
        view = ActiveFilter.from_dict({"type": "label", "id": "l1", "name": "tags"})
        assert isinstance(view, LabelView)
        assert view.label_ids == frozenset()

    def test_unknown_type(self):
        """Test an unrecognised view type is kept as an UnknownView."""
        view = ActiveFilter.from_dict({"type": "smart", "id": "s1", "name": "Smart"})

        assert isinstance(view, UnknownView)
        assert view.kind == "smart"
        assert view.scope_id == "s1"
        assert view.filter_type is None


class TestActiveFilterShape:
    """Tests for scope ids and to_dict."""

    def test_scope_ids(self):
        assert AllView().scope_id is None
        assert CategoryView("Work", category_id="c1").scope_id == "c1"
        assert FolderView("Python", folder_id="f1").scope_id == "f1"
        assert PinnedView("News", folder_id="f2").scope_id == "f2"

    def test_filter_types(self):
        assert AllView().filter_type == FilterType.ALL
        assert PinnedView("x", folder_id="f").filter_type == FilterType.PINNED
        assert LabelView.of(["l1"]).filter_type == FilterType.LABEL

    def test_to_dict(self):
        """Test to_dict produces the {type, id, name} shape."""
        assert AllView().to_dict() == {"type": "all", "id": "all", "name": "All Bookmarks"}
        assert FolderView("Python", folder_id="f1").to_dict() == {
            "type": "folder",
            "id": "f1",
            "name": "Python",
        }
        assert LabelView.of(["l2", "l1"], name="tags").to_dict() == {
            "type": "label",
            "id": ["l1", "l2"],
            "name": "tags",
        }

    def test_to_dict_round_trip(self):
        for view in (
            FavoritesView(),
            CategoryView("Work", category_id="c1"),
            PinnedView("News", folder_id="f2"),
            LabelView.of(["l1"], name="python"),
        ):
            assert ActiveFilter.from_dict(view.to_dict()) == view

    def test_views_are_hashable(self):
        """Test frozen views can be used as dictionary keys."""
        seen = {AllView(): 1, LabelView.of(["a"]): 2}
        assert seen[LabelView.of(["a"])] == 2
